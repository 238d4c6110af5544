# progressed_hashing/types.py
"""Status events delivered to the consumer of a hashing run."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

__all__ = [
    "ErrorKind",
    "ProgressHashingError",
    "CurrentFileUpdate",
    "Started",
    "Progress",
    "Result",
    "Error",
    "WorkStatus",
    "status_to_dict",
    "status_from_dict",
    "status_to_json",
    "status_from_json",
]


class ErrorKind(str, Enum):
    """Closed set of failure kinds reported through ``Error`` events."""

    PERMISSION_DENIED = "PermissionDenied"
    NOT_FOUND = "NotFound"
    COLLECTION_FAILED = "CollectionFailed"
    FILE_HASH_FAILED = "FileHashFailed"

    @property
    def is_collection_failure(self) -> bool:
        return self is not ErrorKind.FILE_HASH_FAILED


@dataclass(frozen=True)
class ProgressHashingError:
    """A failure observed during a run."""

    kind: ErrorKind
    """What went wrong"""

    path: Optional[str] = None
    """Root directory for collection failures, the file for hash failures"""

    detail: str = ""
    """Human-readable cause, usually the OS error message"""

    @property
    def is_collection_failure(self) -> bool:
        return self.kind.is_collection_failure


@dataclass(frozen=True)
class CurrentFileUpdate:
    """Progress for one successfully hashed file."""

    current_file: str
    """Absolute path of the file that was just hashed"""

    total_hashed_files: int
    """Files hashed before this one (counter value prior to increment)"""


@dataclass(frozen=True)
class Started:
    total_file_count: int


@dataclass(frozen=True)
class Progress:
    update: CurrentFileUpdate


@dataclass(frozen=True)
class Result:
    digests: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Error:
    error: ProgressHashingError


WorkStatus = Union[Started, Progress, Result, Error]


# ---------------------------------------------------------------------------
# Wire format: externally tagged union, {"<Variant>": <payload>}
# ---------------------------------------------------------------------------

def status_to_dict(status: WorkStatus) -> Dict[str, Any]:
    """Convert a status event into a JSON-compatible tagged mapping."""
    if isinstance(status, Started):
        return {"Started": status.total_file_count}
    if isinstance(status, Progress):
        return {
            "Progress": {
                "current_file": status.update.current_file,
                "total_hashed_files": status.update.total_hashed_files,
            }
        }
    if isinstance(status, Result):
        return {"Result": dict(status.digests)}
    if isinstance(status, Error):
        err = status.error
        return {
            "Error": {
                "kind": err.kind.value,
                "path": err.path,
                "detail": err.detail,
            }
        }
    raise TypeError(f"Not a WorkStatus: {status!r}")


def status_from_dict(data: Dict[str, Any]) -> WorkStatus:
    """Rebuild a status event from its tagged mapping."""
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"Expected a single-key tagged mapping, got {data!r}")

    (tag, payload), = data.items()
    if tag == "Started":
        count = int(payload)
        if count < 0:
            raise ValueError(f"Negative file count: {count}")
        return Started(count)
    if tag == "Progress":
        return Progress(
            CurrentFileUpdate(
                current_file=str(payload["current_file"]),
                total_hashed_files=int(payload["total_hashed_files"]),
            )
        )
    if tag == "Result":
        return Result({str(k): str(v) for k, v in payload.items()})
    if tag == "Error":
        return Error(
            ProgressHashingError(
                kind=ErrorKind(payload["kind"]),
                path=payload.get("path"),
                detail=payload.get("detail", ""),
            )
        )
    raise ValueError(f"Unknown WorkStatus tag: {tag!r}")


def status_to_json(status: WorkStatus) -> str:
    return json.dumps(status_to_dict(status), sort_keys=True)


def status_from_json(text: str) -> WorkStatus:
    return status_from_dict(json.loads(text))
