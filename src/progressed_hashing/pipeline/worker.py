# progressed_hashing/pipeline/worker.py
from __future__ import annotations

import hashlib
import logging
from typing import Optional, Tuple

from blake3 import blake3
from setproctitle import setthreadtitle

from progressed_hashing.config import DEFAULT_CHUNK_SIZE
from progressed_hashing.errors import FileHashError
from progressed_hashing.pipeline.progress import EventChannel, FileCounter, FileEventGate
from progressed_hashing.types import CurrentFileUpdate, Error, Progress

logger = logging.getLogger(__name__)

__all__ = ["hash_file", "hash_and_report", "init_worker_thread"]


def _new_hasher(algorithm: str):
    if algorithm == "blake3":
        return blake3()
    if algorithm == "sha256":
        return hashlib.sha256()
    raise ValueError(f"Unknown algorithm: {algorithm!r}")


def hash_file(
    path: str,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    algorithm: str = "blake3",
) -> str:
    """
    Stream a file through a 256-bit hash and return the lowercase hex digest.

    Reads at most ``chunk_size`` bytes at a time. Raises ``FileHashError`` if
    the file cannot be opened or a read fails part way through.
    """
    hasher = _new_hasher(algorithm)
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                hasher.update(chunk)
    except OSError as exc:
        raise FileHashError(path, exc.strerror or str(exc)) from exc
    return hasher.hexdigest()


def hash_and_report(
    path: str,
    counter: FileCounter,
    channel: EventChannel,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    algorithm: str = "blake3",
    gate: Optional[FileEventGate] = None,
    halt_on_failure: bool = False,
) -> Tuple[str, Optional[str]]:
    """
    Hash one file and publish the outcome.

    Events pass through ``gate``; once a fail-fast run halts, later outcomes
    are computed but not published and the counter is left untouched. With
    ``halt_on_failure`` a failure halts the gate after sending its ``Error``.

    Returns
    -------
    (path, digest) on success, after one counter increment and one
    ``Progress`` event; (path, None) on failure, after one ``Error`` event.
    """
    if gate is None:
        gate = FileEventGate()

    try:
        digest = hash_file(path, chunk_size=chunk_size, algorithm=algorithm)
    except FileHashError as exc:
        logger.warning("Error hashing file %s: %s", path, exc.detail)
        error = Error(exc.to_progress_error())
        if halt_on_failure:
            gate.halt_with(channel, error)
        else:
            gate.publish(channel, lambda: error)
        return path, None

    def progress() -> Progress:
        return Progress(CurrentFileUpdate(
            current_file=path,
            total_hashed_files=counter.fetch_add(1),
        ))

    if not gate.publish(channel, progress):
        logger.debug("Discarding progress for %s", path)
    return path, digest


def init_worker_thread() -> None:
    """Executor initializer: label hashing threads for top/htop."""
    setthreadtitle("phash:worker")
