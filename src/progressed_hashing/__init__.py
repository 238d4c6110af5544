"""
Concurrent recursive file hashing with incremental progress events.

Main entry points:
    begin_hashing() - lazy async sequence of WorkStatus events for a tree
    hash_directory() - synchronous convenience returning {path: digest}

Key components:
    - io.collect: directory enumeration
    - pipeline.worker: per-file content hashing
    - pipeline.progress: shared counter and event channel
    - pipeline.runner: worker pool dispatch
    - pipeline.orchestrate: run state machine and async bridge
"""

from progressed_hashing.config import HashingConfig
from progressed_hashing.errors import CollectionError, FileHashError, HashingError
from progressed_hashing.pipeline.orchestrate import (
    HashingStream,
    begin_hashing,
    hash_directory,
)
from progressed_hashing.types import (
    CurrentFileUpdate,
    Error,
    ErrorKind,
    Progress,
    ProgressHashingError,
    Result,
    Started,
    WorkStatus,
    status_from_dict,
    status_from_json,
    status_to_dict,
    status_to_json,
)

__all__ = [
    "begin_hashing",
    "hash_directory",
    "HashingStream",
    "HashingConfig",
    "HashingError",
    "CollectionError",
    "FileHashError",
    "WorkStatus",
    "Started",
    "Progress",
    "Result",
    "Error",
    "CurrentFileUpdate",
    "ErrorKind",
    "ProgressHashingError",
    "status_to_dict",
    "status_from_dict",
    "status_to_json",
    "status_from_json",
]
