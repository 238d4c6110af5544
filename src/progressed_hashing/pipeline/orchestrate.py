# progressed_hashing/pipeline/orchestrate.py
from __future__ import annotations

import asyncio
import logging
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

from progressed_hashing.config import HashingConfig
from progressed_hashing.errors import CollectionError, FileHashError
from progressed_hashing.io.collect import collect_files_in_dir
from progressed_hashing.pipeline.display import HashProgressBar
from progressed_hashing.pipeline.progress import EventChannel, FileCounter
from progressed_hashing.pipeline.report import format_completion_summary, log_run_summary
from progressed_hashing.pipeline.runner import process_files
from progressed_hashing.types import Error, Result, Started, WorkStatus

logger = logging.getLogger(__name__)

__all__ = ["begin_hashing", "hash_directory", "run_hashing", "HashingStream"]


def run_hashing(
    root: Union[str, Path],
    channel: EventChannel,
    config: HashingConfig,
) -> None:
    """
    Blocking body of one run: enumerate, dispatch, publish the final result.

    Process
    -------
    1. Collect files; on failure publish one collection ``Error`` and stop
    2. Publish ``Started(N)``
    3. Hash on the worker pool; each file publishes ``Progress`` or ``Error``
    4. Publish ``Result`` unless the run aborted
    The channel is always closed on exit, including on unexpected errors.
    """
    start_time = datetime.now()
    root = os.fspath(root)

    try:
        try:
            paths = collect_files_in_dir(root, follow_symlinks=config.follow_symlinks)
        except CollectionError as exc:
            channel.send(Error(exc.to_progress_error()))
            return

        channel.send(Started(len(paths)))
        log_run_summary(
            root=root,
            total_files=len(paths),
            workers=config.workers,
            algorithm=config.algorithm,
            failure_policy=config.failure_policy,
            chunk_size=config.chunk_size,
            start_time=start_time,
        )

        counter = FileCounter()
        digests, failed, aborted = process_files(paths, counter, channel, config)

        if not aborted:
            channel.send(Result(digests))

        runtime = datetime.now() - start_time
        for line in format_completion_summary(
            hashed=counter.value, failed=len(failed), runtime=runtime, aborted=aborted,
        ).splitlines():
            logger.info(line)
    except Exception:
        logger.exception("Hashing run under %s failed unexpectedly", root)
        raise
    finally:
        channel.close()


class HashingStream:
    """
    Lazy, single-use async sequence of ``WorkStatus`` events for one root.

    Nothing runs until the first ``__anext__``. The blocking phase runs as one
    task on the loop's default executor. Leaving an ``async with`` block or
    calling ``aclose`` stops delivery; work already running finishes and its
    events are dropped.
    """

    def __init__(self, root: Union[str, Path], config: HashingConfig) -> None:
        self.root = root
        self.config = config
        self._channel: Optional[EventChannel] = None
        self._task: Optional[asyncio.Future] = None
        self._finished = False

    def __aiter__(self) -> "HashingStream":
        return self

    async def __anext__(self) -> WorkStatus:
        if self._finished:
            raise StopAsyncIteration
        if self._channel is None:
            self._start()

        status = await self._channel.receive()
        if status is None:
            self._finished = True
            # Re-raise anything unexpected from the blocking phase
            await self._task
            raise StopAsyncIteration
        return status

    async def aclose(self) -> None:
        self._finished = True
        if self._channel is not None:
            self._channel.close_receiver()

    async def __aenter__(self) -> "HashingStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _start(self) -> None:
        loop = asyncio.get_running_loop()
        self._channel = EventChannel(loop)
        self._task = loop.run_in_executor(
            None, run_hashing, self.root, self._channel, self.config
        )
        logger.debug("Started hashing run for %s", self.root)


def begin_hashing(
    root_path: Union[str, Path],
    config: Optional[HashingConfig] = None,
    **overrides,
) -> HashingStream:
    """
    Start describing a hashing run over ``root_path``.

    Returns a ``HashingStream``; iterate it with ``async for`` to drive the
    run. ``overrides`` are applied on top of ``config`` (or the defaults).
    """
    config = config or HashingConfig()
    if overrides:
        config = config.replace(**overrides)
    return HashingStream(root_path, config)


def hash_directory(
    root_path: Union[str, Path],
    config: Optional[HashingConfig] = None,
    *,
    show_progress: bool = True,
) -> Dict[str, str]:
    """
    Hash a tree synchronously and return ``{path: digest}``.

    Raises ``CollectionError`` if the tree cannot be walked, and
    ``FileHashError`` if the run aborted on a file under the "abort" policy.
    Under "continue", failed files map to the sentinel digest.
    """
    config = config or HashingConfig()
    return asyncio.run(_consume(root_path, config, show_progress))


async def _consume(
    root_path: Union[str, Path],
    config: HashingConfig,
    show_progress: bool,
) -> Dict[str, str]:
    digests: Optional[Dict[str, str]] = None
    first_failure = None
    started = time.perf_counter()

    async with begin_hashing(root_path, config) as stream:
        with HashProgressBar(disable=not show_progress) as bar:
            async for status in stream:
                bar.handle(status)
                if isinstance(status, Error):
                    err = status.error
                    if err.is_collection_failure:
                        raise CollectionError(err.path, err.detail, err.kind)
                    if first_failure is None:
                        first_failure = err
                elif isinstance(status, Result):
                    digests = status.digests

    if digests is None:
        if first_failure is not None:
            raise FileHashError(first_failure.path, first_failure.detail)
        raise RuntimeError(f"Hashing run for {root_path} ended without a result")

    logger.debug(
        "Hashed %d files in %.2fs", len(digests), time.perf_counter() - started
    )
    return digests
