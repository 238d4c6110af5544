"""Concurrent file hashing for the progressed hashing pipeline."""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Dict, Iterable, List, Tuple

from progressed_hashing.config import HashingConfig
from progressed_hashing.pipeline.progress import EventChannel, FileCounter, FileEventGate
from progressed_hashing.pipeline.worker import hash_and_report, init_worker_thread

logger = logging.getLogger(__name__)

__all__ = ["process_files"]


def process_files(
        paths: Iterable[str],
        counter: FileCounter,
        channel: EventChannel,
        config: HashingConfig,
) -> Tuple[Dict[str, str], List[str], bool]:
    """
    Hash files on a thread pool, publishing one event per file.

    Keeps at most ``config.max_in_flight`` submissions outstanding. Under the
    "continue" policy a failed file is recorded with ``config.sentinel_digest``;
    under "abort" the first failure stops submission and cancels work that has
    not started yet.

    Returns:
        Tuple of (digests, failed_paths, aborted). ``digests`` holds one entry
        per path unless the run was aborted.
    """
    digests: Dict[str, str] = {}
    failed: List[str] = []
    aborted = False
    workers = config.workers
    halt_on_failure = config.failure_policy == "abort"
    # Shared by all workers; halting it ends per-file events for the run
    gate = FileEventGate()

    with ThreadPoolExecutor(
            max_workers=workers,
            thread_name_prefix="phash",
            initializer=init_worker_thread,
    ) as executor:
        it = iter(paths)
        futures: Dict[Future, str] = {}

        def submit_next(n: int = 1) -> None:
            """Submit next n files to executor."""
            for _ in range(n):
                try:
                    path = next(it)
                except StopIteration:
                    return
                fut = executor.submit(
                    hash_and_report,
                    path,
                    counter,
                    channel,
                    chunk_size=config.chunk_size,
                    algorithm=config.algorithm,
                    gate=gate,
                    halt_on_failure=halt_on_failure,
                )
                futures[fut] = path

        submit_next(config.max_in_flight)

        while futures:
            done, _ = wait(futures.keys(), return_when=FIRST_COMPLETED)

            for fut in done:
                path = futures.pop(fut)
                if fut.cancelled():
                    continue

                # hash_and_report only returns; anything raised here is a bug
                _, digest = fut.result()
                if digest is not None:
                    digests[path] = digest
                    continue

                failed.append(path)
                if config.failure_policy == "abort":
                    if not aborted:
                        logger.error("Aborting run after failure on %s", path)
                    aborted = True
                else:
                    digests[path] = config.sentinel_digest

            if aborted:
                for pending in futures:
                    pending.cancel()
            else:
                submit_next(len(done))

    if failed:
        logger.info("%d files failed to hash", len(failed))
    return digests, failed, aborted
