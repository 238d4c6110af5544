# progressed_hashing/config.py
"""Configuration for hashing runs."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace as _replace
from typing import Literal, Optional

DEFAULT_CHUNK_SIZE = 1 << 20

ALGORITHMS = ("blake3", "sha256")
FAILURE_POLICIES = ("continue", "abort")


@dataclass(frozen=True)
class HashingConfig:
    """Pipeline configuration for one hashing run."""

    # Parallelism
    num_workers: Optional[int] = None  # If None, defaults to os.cpu_count()
    in_flight_factor: int = 2  # Outstanding submissions per worker

    # Hashing
    chunk_size: int = DEFAULT_CHUNK_SIZE
    algorithm: Literal["blake3", "sha256"] = "blake3"

    # Failure handling
    failure_policy: Literal["continue", "abort"] = "continue"
    sentinel_digest: str = ""  # Recorded for files that failed under "continue"

    # Traversal
    follow_symlinks: bool = False

    def __post_init__(self) -> None:
        if self.num_workers is not None and self.num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {self.num_workers}")
        if self.in_flight_factor < 1:
            raise ValueError(
                f"in_flight_factor must be >= 1, got {self.in_flight_factor}"
            )
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.algorithm not in ALGORITHMS:
            raise ValueError(
                f"Unknown algorithm {self.algorithm!r}; expected one of {ALGORITHMS}"
            )
        if self.failure_policy not in FAILURE_POLICIES:
            raise ValueError(
                f"Unknown failure_policy {self.failure_policy!r}; "
                f"expected one of {FAILURE_POLICIES}"
            )

    @property
    def workers(self) -> int:
        """Resolved worker count."""
        if self.num_workers is not None:
            return self.num_workers
        return max(1, os.cpu_count() or 1)

    @property
    def max_in_flight(self) -> int:
        return self.workers * self.in_flight_factor

    def replace(self, **overrides) -> "HashingConfig":
        return _replace(self, **overrides)
