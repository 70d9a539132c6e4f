"""Logging setup.

Modules log through ``logging.getLogger(__name__)``; this only wires up
handlers for applications and the CLI.
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path

from platformdirs import user_log_dir

from .constants import PROJECT_NAME

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def default_log_file() -> Path:
    return Path(user_log_dir(PROJECT_NAME)) / f"{PROJECT_NAME}.log"


def _rotate(log_file: Path) -> None:
    """Move the previous log aside with a timestamp suffix."""
    if log_file.exists():
        stamp = time.strftime("%Y%m%d_%H%M%S")
        shutil.move(str(log_file), str(log_file.with_name(f"{log_file.stem}_{stamp}.log")))


def setup_logging(
    level: int = logging.INFO,
    log_file: Path | str | bool | None = None,
    console: bool = True,
) -> None:
    """Configure the root logger.

    ``log_file=True`` writes to the per-user log directory; a path writes
    there instead. Either way the previous file is rotated out first.
    """
    handlers: list[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler())
    if log_file:
        path = default_log_file() if log_file is True else Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _rotate(path)
        handlers.append(logging.FileHandler(path, mode="w"))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers or [logging.NullHandler()],
        force=True,
    )
