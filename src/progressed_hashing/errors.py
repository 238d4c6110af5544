# progressed_hashing/errors.py
"""Exceptions raised by the enumerator and the content hasher."""
from __future__ import annotations

from typing import Optional

from progressed_hashing.types import ErrorKind, ProgressHashingError

__all__ = [
    "HashingError",
    "CollectionError",
    "FileHashError",
    "classify_os_error",
]


class HashingError(Exception):
    """Base class for failures surfaced as ``Error`` events."""

    kind: ErrorKind = ErrorKind.COLLECTION_FAILED

    def __init__(self, path: Optional[str], detail: str) -> None:
        super().__init__(f"{path}: {detail}" if path else detail)
        self.path = path
        self.detail = detail

    def to_progress_error(self) -> ProgressHashingError:
        return ProgressHashingError(kind=self.kind, path=self.path, detail=self.detail)


class CollectionError(HashingError):
    """Directory traversal failed; no file list is available."""

    def __init__(
        self,
        path: Optional[str],
        detail: str,
        kind: ErrorKind = ErrorKind.COLLECTION_FAILED,
    ) -> None:
        if not kind.is_collection_failure:
            raise ValueError(f"{kind.value} is not a collection failure kind")
        super().__init__(path, detail)
        self.kind = kind


class FileHashError(HashingError):
    """A single file could not be opened or read to the end."""

    kind = ErrorKind.FILE_HASH_FAILED


def classify_os_error(exc: OSError) -> ErrorKind:
    """Map a traversal ``OSError`` onto the collection failure kinds."""
    if isinstance(exc, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        return ErrorKind.NOT_FOUND
    return ErrorKind.COLLECTION_FAILED
