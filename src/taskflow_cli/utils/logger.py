"""Diagnostic log for TaskFlow.

Record repair, backup recovery, credential upgrades and storage failures are
reported here rather than on the terminal. The file lives in the platform
log directory and rotates at 5 MB.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

from platformdirs import user_log_dir

_APP_NAME = "taskflow_cli"
_LOG_FILE = "taskflow.log"
_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3

LOG_LEVEL_ENV = "TASKFLOW_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

_logger: logging.Logger | None = None


def _resolve_level(level: str | int | None) -> int:
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "DEBUG")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.DEBUG


def _file_handler() -> logging.Handler:
    try:
        log_dir = Path(user_log_dir(_APP_NAME))
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_dir / _LOG_FILE,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError:
        # No log file when the log directory is not writable.
        return logging.NullHandler()

    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    return handler


def get_logger(level: str | int | None = None) -> logging.Logger:
    """Return the ``taskflow_cli`` logger, attaching its file handler once.

    Modules log through ``logging.getLogger(__name__)`` and reach the file
    because every module lives under the ``taskflow_cli`` package.

    Args:
        level: Level name or number; defaults to ``$TASKFLOW_LOG_LEVEL``,
            then DEBUG. Passing a level on a later call only changes it.
    """
    global _logger
    if _logger is not None:
        if level is not None:
            _logger.setLevel(_resolve_level(level))
        return _logger

    logger = logging.getLogger(_APP_NAME)
    logger.setLevel(_resolve_level(level))
    if not logger.handlers:
        logger.addHandler(_file_handler())
    logger.propagate = False

    _logger = logger
    return _logger
