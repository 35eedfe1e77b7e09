"""
Application logging.

Every module logs through ``get_logger("<area>.<module>")`` so records share
the ``embedsifter`` namespace. The host calls ``configure_logging`` (or
``configure_from_config``) once per process; until then records propagate to
whatever the host has set up on the root logger.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from .config import AppConfig

LOG_FILE_NAME = "embedsifter.log"
LOGGER_NAMESPACE = "embedsifter"
LOG_FORMAT = "%(asctime)sZ %(levelname)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
MEGABYTE = 1024 * 1024


class UtcFormatter(logging.Formatter):
    """Formatter that renders timestamps in UTC using ISO-8601."""

    converter = time.gmtime

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return stamp.strftime(datefmt) if datefmt else stamp.isoformat(timespec="seconds")


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def _detach_handlers(logger: Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(
    log_dir: Path,
    level: Union[int, str] = logging.INFO,
    max_bytes: int = 50 * MEGABYTE,
    backup_count: int = 10,
    console: bool = True,
) -> Logger:
    """
    Attach a rotating file handler (and optionally stderr) to the app logger.

    Args:
        log_dir: Directory for ``embedsifter.log``; created when missing
        level: Numeric level or its name, case-insensitive
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files kept next to the active one
        console: Also echo records to stderr

    Returns:
        The ``embedsifter`` namespace logger

    Raises:
        ValueError: ``level`` names no logging level
    """
    app_logger = logging.getLogger(LOGGER_NAMESPACE)
    app_logger.setLevel(_resolve_level(level))
    _detach_handlers(app_logger)

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME
    formatter = UtcFormatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    file_handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    file_handler.setFormatter(formatter)
    app_logger.addHandler(file_handler)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        app_logger.addHandler(stream_handler)

    app_logger.debug("Logging to %s (rotate at %d MB, keep %d)", log_path, max_bytes // MEGABYTE, backup_count)
    return app_logger


def configure_from_config(config: AppConfig, console: bool = True) -> Logger:
    """Configure logging from the ``logging`` section of config.yml."""
    settings = config.logging
    return configure_logging(
        config.logs_dir,
        level=settings.level,
        max_bytes=settings.app_log_max_mb * MEGABYTE,
        backup_count=settings.app_log_backup_count,
        console=console,
    )


def get_logger(name: Optional[str] = None) -> Logger:
    """Logger for ``name`` under the ``embedsifter`` namespace."""
    app_logger = logging.getLogger(LOGGER_NAMESPACE)
    return app_logger.getChild(name) if name else app_logger
