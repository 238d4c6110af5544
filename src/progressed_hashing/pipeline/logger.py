# progressed_hashing/pipeline/logger.py
from __future__ import annotations

import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logger(
    log_dir: Optional[Union[str, Path]] = None,
    *,
    level: Union[int, str] = logging.INFO,
    filename_prefix: str = "progressed_hashing",
    console: bool = False,
    rotate: bool = False,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    force: bool = False,
) -> Optional[Path]:
    """
    Configure root logging for a hashing run.

    With ``log_dir`` set, writes ``<prefix>_<timestamp>.log`` there (rotating
    if requested) and returns its path. Without it only the console handler is
    installed (if ``console``) and None is returned. ``force`` drops handlers
    installed earlier, so repeated runs in one process don't double-log.
    """
    numeric_level = _resolve_level(level)

    root = logging.getLogger()
    if force:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
    root.setLevel(numeric_level)

    fmt = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    log_path: Optional[Path] = None
    if log_dir is not None:
        directory = Path(log_dir).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = directory / f"{filename_prefix}_{ts}.log"

        if rotate:
            fhandler: logging.Handler = RotatingFileHandler(
                log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        else:
            fhandler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
        fhandler.setLevel(numeric_level)
        fhandler.setFormatter(fmt)
        root.addHandler(fhandler)

    if console:
        shandler = logging.StreamHandler()
        shandler.setLevel(numeric_level)
        shandler.setFormatter(fmt)
        root.addHandler(shandler)

    if log_path is not None:
        root.info("Logging to: %s", str(log_path))
    return log_path
