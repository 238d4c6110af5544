"""Terminal progress display driven by the status event sequence."""

from __future__ import annotations

import logging
from typing import Optional

from tqdm import tqdm

from progressed_hashing.types import Error, Progress, Result, Started, WorkStatus

logger = logging.getLogger(__name__)


class HashProgressBar:
    """
    A tqdm bar fed with ``WorkStatus`` events.

    The total is unknown until ``Started`` arrives. Each ``Progress`` or
    per-file ``Error`` advances the bar by one; failures are shown in the
    postfix.
    """

    def __init__(self, *, disable: bool = False, desc: str = "Files Hashed:") -> None:
        self.disable = disable
        self.desc = desc
        self.failed = 0
        self.completed = 0
        self._bar: Optional[tqdm] = None

    def __enter__(self) -> "HashProgressBar":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def handle(self, status: WorkStatus) -> None:
        if isinstance(status, Started):
            self._open(status.total_file_count)
        elif isinstance(status, Progress):
            self._advance()
        elif isinstance(status, Error):
            if status.error.is_collection_failure:
                return
            self.failed += 1
            self._advance()
            if self._bar is not None:
                self._bar.set_postfix(failed=self.failed)
        elif isinstance(status, Result):
            self.close()

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()

    def _open(self, total: int) -> None:
        self._bar = tqdm(
            total=total,
            desc=self.desc,
            unit="files",
            ncols=100,
            disable=self.disable,
            bar_format='{desc} {percentage:3.0f}%|{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]',
        )

    def _advance(self) -> None:
        if self._bar is None:
            logger.debug("File event before Started; ignoring")
            return
        self.completed += 1
        self._bar.update(1)
