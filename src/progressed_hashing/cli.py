"""
Command-line entry point.

Examples:
  progressed-hash /path/to/tree
  progressed-hash /path/to/tree --workers 8 --algorithm sha256 --policy abort
  progressed-hash /path/to/tree --json > events.jsonl
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from progressed_hashing.config import ALGORITHMS, DEFAULT_CHUNK_SIZE, FAILURE_POLICIES, HashingConfig
from progressed_hashing.pipeline.display import HashProgressBar
from progressed_hashing.pipeline.logger import setup_logger
from progressed_hashing.pipeline.orchestrate import begin_hashing
from progressed_hashing.types import Error, Result, status_to_json

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FILE_FAILURES = 1
EXIT_COLLECTION_FAILED = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Recursively hash every file under a directory, reporting progress as it goes."
    )
    p.add_argument("root", type=Path, help="Directory (or single file) to hash")
    p.add_argument("--workers", type=int, default=None, help="Hashing threads (default: CPU count)")
    p.add_argument("--algorithm", choices=ALGORITHMS, default="blake3", help="Hash algorithm (default: blake3)")
    p.add_argument("--policy", choices=FAILURE_POLICIES, default="continue",
                   help="What a failed file does to the run (default: continue)")
    p.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE,
                   help=f"Read size in bytes (default: {DEFAULT_CHUNK_SIZE})")
    p.add_argument("--follow-symlinks", action="store_true", help="Follow symbolic links")
    p.add_argument("--json", dest="json_out", action="store_true",
                   help="Emit every status event as a JSON line instead of a digest listing")
    p.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    p.add_argument("--log-dir", type=Path, default=None, help="Write a log file into this directory")
    p.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    args = p.parse_args(argv)

    try:
        args.config = HashingConfig(
            num_workers=args.workers,
            chunk_size=args.chunk_size,
            algorithm=args.algorithm,
            failure_policy=args.policy,
            follow_symlinks=args.follow_symlinks,
        )
    except ValueError as exc:
        p.error(str(exc))
    return args


async def run(args: argparse.Namespace, config: HashingConfig) -> int:
    exit_code = EXIT_OK
    show_bar = not (args.no_progress or args.json_out)

    async with begin_hashing(args.root, config) as stream:
        with HashProgressBar(disable=not show_bar) as bar:
            async for status in stream:
                bar.handle(status)
                if args.json_out:
                    print(status_to_json(status), flush=True)

                if isinstance(status, Error):
                    err = status.error
                    if err.is_collection_failure:
                        print(f"ERROR: {err.kind.value}: {err.path}: {err.detail}", file=sys.stderr)
                        exit_code = EXIT_COLLECTION_FAILED
                    else:
                        exit_code = EXIT_FILE_FAILURES
                elif isinstance(status, Result) and not args.json_out:
                    bar.close()
                    for path, digest in sorted(status.digests.items()):
                        print(f"{digest or '-':<64}  {path}")

    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logger(args.log_dir, level=args.log_level, console=args.log_dir is None, force=True)

    try:
        return asyncio.run(run(args, args.config))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
