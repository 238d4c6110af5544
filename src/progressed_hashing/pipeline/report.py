# progressed_hashing/pipeline/report.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from progressed_hashing.pipeline.progress import ProgressFormatter

logger = logging.getLogger(__name__)


def _abbrev(s: str, width: int = 96) -> str:
    """Return s truncated with an ellipsis if it exceeds width."""
    return s if len(s) <= width else (s[: max(0, width - 1)] + "…")


def _format_bytes(n: int) -> str:
    for unit in ("B", "KiB", "MiB"):
        if n < 1024:
            return f"{n:g} {unit}"
        n /= 1024
    return f"{n:g} GiB"


def format_run_summary(
    *,
    root: str,
    total_files: int,
    workers: int,
    algorithm: str,
    failure_policy: str,
    chunk_size: int,
    start_time: datetime,
    color: bool = True,
) -> str:
    """
    Build a formatted, human-readable summary of the planned run.
    """
    heading = f"Start Time: {start_time:%Y-%m-%d %H:%M:%S}"
    if color:
        heading = f"\033[31m{heading}\033[0m"

    lines = [
        heading,
        ("\033[4mHashing Configuration\033[0m" if color
         else "Hashing Configuration"),
        f"Root directory:             {_abbrev(root)}",
        f"Files found:                {total_files:,}",
        f"Hash algorithm:             {algorithm}",
        f"Failure policy:             {failure_policy}",
        f"Read chunk size:            {_format_bytes(chunk_size)}",
        f"Worker threads:             {workers}",
    ]
    return "\n".join(lines) + "\n"


def log_run_summary(*, color: bool = False, **kwargs) -> None:
    """Log the run summary at INFO level."""
    summary = format_run_summary(color=color, **kwargs)
    for line in summary.rstrip("\n").splitlines():
        logger.info(line)


def format_completion_summary(
    *,
    hashed: int,
    failed: int,
    runtime: timedelta,
    aborted: bool = False,
) -> str:
    """Counts, runtime and throughput for a finished run."""
    seconds = runtime.total_seconds()
    rate = hashed / seconds if seconds > 0 else 0.0

    lines = [
        "Hashing aborted!" if aborted else "Hashing completed!",
        f"Files hashed:               {hashed:,}",
    ]
    if failed:
        lines.append(f"Failed files:               {failed:,}")
    lines.append(
        f"Total runtime:              {ProgressFormatter.format_elapsed_time(seconds)}"
    )
    lines.append(f"Throughput:                 {ProgressFormatter.format_rate(rate)}")
    return "\n".join(lines) + "\n"
