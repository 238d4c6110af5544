# progressed_hashing/io/collect.py
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Set, Tuple, Union

from progressed_hashing.errors import CollectionError, classify_os_error

logger = logging.getLogger(__name__)

__all__ = ["collect_files_in_dir"]


def collect_files_in_dir(
    root: Union[str, Path],
    *,
    follow_symlinks: bool = False,
) -> List[str]:
    """
    Return absolute paths of every regular file under ``root``.

    Behavior
    --------
    - Descends depth-first in the order ``os.scandir`` yields entries; no
      sorting is applied.
    - Directories, sockets, FIFOs and devices are skipped. Symlinks are
      skipped unless ``follow_symlinks`` is set, in which case linked files are
      reported and linked directories are descended once each.
    - A regular file given as ``root`` (or a symlink to one) yields a
      single-element list; a symlinked root directory is walked.
    - Any ``OSError`` while walking raises ``CollectionError``; no partial list
      is returned.
    """
    top = os.path.abspath(os.fspath(root))

    try:
        # The root is always resolved; follow_symlinks applies below it
        if os.path.isfile(top):
            return [top]
        root_stat = os.stat(top)
    except OSError as exc:
        raise _collection_error(top, exc) from exc

    files: List[str] = []
    visited: Set[Tuple[int, int]] = {(root_stat.st_dev, root_stat.st_ino)}
    stack = [top]

    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                subdirs = []
                for entry in it:
                    if entry.is_dir(follow_symlinks=follow_symlinks):
                        if follow_symlinks:
                            st = entry.stat()
                            key = (st.st_dev, st.st_ino)
                            if key in visited:
                                logger.debug("Skipping already visited %s", entry.path)
                                continue
                            visited.add(key)
                        subdirs.append(entry.path)
                    elif entry.is_file(follow_symlinks=follow_symlinks):
                        files.append(entry.path)
        except OSError as exc:
            raise _collection_error(current, exc) from exc

        # Reversed so the first subdirectory yielded is descended first
        stack.extend(reversed(subdirs))

    logger.debug("Collected %d files under %s", len(files), top)
    return files


def _collection_error(path: str, exc: OSError) -> CollectionError:
    kind = classify_os_error(exc)
    detail = exc.strerror or str(exc)
    logger.error("Error collecting files under %s: %s", path, detail)
    return CollectionError(path, detail, kind)
