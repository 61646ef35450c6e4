"""Logging for PromptForge.

Every module logs through a child of the ``promptforge`` logger obtained
with :func:`get_logger`.  Nothing is emitted until :func:`setup_logging`
attaches handlers, which the CLI does at start-up.

Log calls may attach context with ``extra={"kind": ..., "definition":
..., "path": ...}``; :class:`JsonFormatter` copies those fields into the
JSON line.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER_NAME = "promptforge"
DEFAULT_FORMAT = "%(levelname)-7s %(name)s: %(message)s"
VERBOSE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
CONTEXT_FIELDS: tuple[str, ...] = ("kind", "definition", "path")

_SETUP_LOCK = threading.Lock()


class JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _make_formatter(json_logs: bool, fmt: str) -> logging.Formatter:
    if json_logs:
        return JsonFormatter()
    return logging.Formatter(fmt)


def _stderr_handler(logger: logging.Logger) -> logging.Handler:
    """Return the single stderr handler on *logger*, creating it if needed."""
    existing = [
        handler
        for handler in logger.handlers
        if type(handler) is logging.StreamHandler
        and getattr(handler, "stream", None) is sys.stderr
    ]
    for duplicate in existing[1:]:
        logger.removeHandler(duplicate)
    if existing:
        return existing[0]
    handler = logging.StreamHandler(sys.stderr)
    logger.addHandler(handler)
    return handler


def _file_handler(logger: logging.Logger, log_file: str) -> logging.Handler:
    target = os.path.abspath(log_file)
    for handler in logger.handlers:
        if (
            isinstance(handler, logging.FileHandler)
            and handler.baseFilename == target
        ):
            return handler
    handler = logging.FileHandler(target, encoding="utf-8")
    logger.addHandler(handler)
    return handler


def setup_logging(
    level: int = logging.INFO,
    verbose: bool = False,
    log_file: str | None = None,
    json_logs: bool = False,
) -> None:
    """Attach handlers to the ``promptforge`` logger.

    Safe to call more than once: the stderr handler, and a file handler
    for the same path, are reconfigured in place rather than added again.

    Args:
        level: Threshold for the ``promptforge`` logger.
        verbose: Prefix stderr lines with a timestamp.
        log_file: Also append log lines to this file.  File lines always
            carry a timestamp.
        json_logs: Write JSON lines (see :class:`JsonFormatter`) to every
            handler instead of text.
    """
    with _SETUP_LOCK:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        logger.setLevel(level)

        console_format = VERBOSE_FORMAT if verbose else DEFAULT_FORMAT
        _stderr_handler(logger).setFormatter(
            _make_formatter(json_logs, console_format)
        )

        if log_file:
            _file_handler(logger, str(log_file)).setFormatter(
                _make_formatter(json_logs, VERBOSE_FORMAT)
            )


def get_logger(name: str) -> logging.Logger:
    """Return the ``promptforge.<name>`` logger, e.g. ``get_logger("resolver")``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
