"""
Structured logging for databuilder.

JSON-formatted logging with correlation IDs. Executors wrap every run in a
correlation ID (the flow instance id), so all records of one run share it.

Usage:
    from databuilder.observability import setup_structured_logging, add_correlation_id

    setup_structured_logging(level="INFO", json_format=True)

    with add_correlation_id("run_abc123"):
        logger.info("Processing")  # Will include correlation_id in log
"""

import json
import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from databuilder.utils.logging import ROOT_LOGGER_NAME, get_logger

logger = get_logger("databuilder.observability.logging")

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "message",
        "thread",
        "threadName",
        "taskName",
    }
)


def get_correlation_id() -> str | None:
    """Get current correlation ID, or None if not set."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID for current context."""
    _correlation_id.set(correlation_id)


@contextmanager
def add_correlation_id(correlation_id: str | None = None) -> Iterator[str]:
    """
    Context manager to add correlation ID to logs.

    Args:
        correlation_id: Correlation ID (auto-generated if not provided)

    Yields:
        The correlation ID
    """
    cid = correlation_id or str(uuid.uuid4())[:8]
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)


class StructuredFormatter(logging.Formatter):
    """
    JSON-formatted log formatter.

    Emits timestamp, level, logger, message, correlation ID (if set),
    exception info (if present) and any ``extra`` fields of the record.
    """

    def __init__(
        self,
        include_timestamp: bool = True,
        include_correlation_id: bool = True,
        extra_fields: dict[str, Any] | None = None,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_correlation_id = include_correlation_id
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {}

        if self.include_timestamp:
            log_data["timestamp"] = datetime.now(UTC).isoformat()
        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["message"] = record.getMessage()

        if self.include_correlation_id:
            correlation_id = get_correlation_id()
            if correlation_id:
                log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        log_data.update(self.extra_fields)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable formatter with optional correlation ID.

    Format: [timestamp] [level] [logger] [correlation_id] message
    """

    def __init__(self, include_correlation_id: bool = True):
        super().__init__()
        self.include_correlation_id = include_correlation_id

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        parts = [f"[{timestamp}]", f"[{record.levelname.ljust(8)}]", f"[{record.name}]"]

        if self.include_correlation_id:
            correlation_id = get_correlation_id()
            if correlation_id:
                parts.append(f"[{correlation_id}]")

        parts.append(record.getMessage())
        message = " ".join(parts)

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def setup_structured_logging(
    level: str = "INFO",
    json_format: bool = False,
    stream: Any = None,
    extra_fields: dict[str, Any] | None = None,
) -> logging.Logger:
    """
    Route databuilder logs through a structured formatter.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON format (True) or human-readable (False)
        stream: Output stream (defaults to sys.stderr)
        extra_fields: Extra fields to include in all logs (JSON format only)

    Returns:
        The configured databuilder logger
    """
    level_int = getattr(logging, level.upper())
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level_int)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level_int)
    formatter: logging.Formatter
    if json_format:
        formatter = StructuredFormatter(extra_fields=extra_fields)
    else:
        formatter = HumanReadableFormatter()
    handler.setFormatter(formatter)
    root.addHandler(handler)

    logger.debug(f"Structured logging configured: level={level}, json={json_format}")
    return root


def log_builder_start(flow_name: str, builder_name: str) -> None:
    """Log builder execution start."""
    log = logging.getLogger("databuilder.execution")
    log.debug(
        "Starting builder execution",
        extra={"event": "builder.start", "flow": flow_name, "builder": builder_name},
    )


def log_builder_end(
    flow_name: str,
    builder_name: str,
    success: bool,
    duration: float | None = None,
    produced: str | None = None,
    error: str | None = None,
) -> None:
    """Log builder execution end; failures at ERROR, successes at INFO."""
    log = logging.getLogger("databuilder.execution")

    extra: dict[str, Any] = {
        "event": "builder.end",
        "flow": flow_name,
        "builder": builder_name,
        "success": success,
    }
    if duration is not None:
        extra["duration_seconds"] = duration
    if produced is not None:
        extra["produced"] = produced

    if error:
        extra["error"] = error
        log.error("Builder execution failed", extra=extra)
    else:
        log.info("Builder execution completed", extra=extra)
