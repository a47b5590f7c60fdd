"""Logging configuration utilities for simkernel.

simkernel is silent by default (a NullHandler sits on the ``simkernel``
logger). Turn output on explicitly::

    import simkernel

    simkernel.enable_console_logging(level="DEBUG")
    simkernel.enable_file_logging("logs/sim.log", max_bytes=5_000_000)
    simkernel.enable_json_logging()
    simkernel.configure_from_env()

Environment variables read by configure_from_env():
    SK_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    SK_LOG_FILE: Path to a log file (enables rotating file logging)
    SK_LOG_JSON: "1" for JSON output
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5

LOGGER_NAME = "simkernel"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _get_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _attach(handler: logging.Handler, level: LogLevel | int, formatter: logging.Formatter) -> None:
    logger = _get_logger()
    logger.setLevel(_get_level(level))
    handler.setLevel(_get_level(level))
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Log simkernel records to stderr and return the handler."""
    handler = logging.StreamHandler()
    _attach(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> RotatingFileHandler:
    """Log to a size-rotated file. Parent directories are created."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    _attach(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_json_logging(level: LogLevel | int = "INFO", path: str | Path | None = None) -> logging.Handler:
    """Log JSON records to stderr, or to a rotating file when ``path`` is given."""
    if path is None:
        handler: logging.Handler = logging.StreamHandler()
    else:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(path, maxBytes=DEFAULT_MAX_BYTES, backupCount=DEFAULT_BACKUP_COUNT)
    _attach(handler, level, JsonFormatter())
    return handler


def configure_from_env() -> None:
    """Configure logging from SK_LOGGING, SK_LOG_FILE and SK_LOG_JSON.

    Does nothing when neither SK_LOGGING nor SK_LOG_FILE is set.
    """
    level = os.environ.get("SK_LOGGING", "").upper()
    log_file = os.environ.get("SK_LOG_FILE", "")
    use_json = os.environ.get("SK_LOG_JSON", "") == "1"

    if not level and not log_file:
        return
    level = level or "INFO"

    if use_json:
        enable_json_logging(level=level, path=log_file or None)
    elif log_file:
        enable_file_logging(log_file, level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Set the level of one submodule, e.g. ``set_module_level("process.scheduler", "DEBUG")``."""
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Remove every handler and silence simkernel completely."""
    logger = _get_logger()
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
