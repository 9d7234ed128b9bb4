"""Process-wide logging for the ClearRide service.

configure_logging() is called once by the composition root. Every record is
stamped with the correlation id of the request it was emitted under, so plain
log lines can be joined with the JSON events written by log_event().
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from clearride.infra.request_context import get_request_context

LOG_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
FILE_MAX_BYTES = 5 * 1024 * 1024
FILE_BACKUP_COUNT = 3
QUIET_LOGGERS = ("httpx", "httpcore", "pymongo", "uvicorn.access")


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        context = get_request_context()
        record.correlation_id = context.correlation_id if context else "-"
        return True


def resolve_level(raw: str | None) -> int:
    level = logging.getLevelName((raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _file_handler(log_file: str) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=FILE_MAX_BYTES, backupCount=FILE_BACKUP_COUNT, encoding="utf-8")


def configure_logging(*, level: int | None = None, log_file: str | None = None) -> None:
    """Install stderr (and optionally rotating file) handlers on the root logger.

    ``level`` defaults to LOG_LEVEL and ``log_file`` to LOG_FILE. Safe to call
    again; previously installed root handlers are replaced.
    """
    if level is None:
        level = resolve_level(os.environ.get("LOG_LEVEL"))
    if log_file is None:
        log_file = os.environ.get("LOG_FILE", "").strip()

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.setLevel(level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    file_error: OSError | None = None
    if log_file:
        try:
            handlers.append(_file_handler(log_file))
        except OSError as exc:
            file_error = exc

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    correlation = CorrelationIdFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(correlation)
        root.addHandler(handler)

    if file_error is not None:
        root.warning("Could not open log file %s: %s; logging to stderr only", log_file, file_error)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
