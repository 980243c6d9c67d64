"""Structured logging for Cacheside.

Every record carries the request it belongs to and, inside the cache-aside
layer, the cache key being served, so a miss, the store load behind it and
the cache write that follows can be correlated:

    {"level": "INFO", "message": "Created record customer7",
     "request_id": "abc-123", "cache_key": "customer7", "cache_family": "customer"}

Usage:
    configure_logging(json_format=True, level="INFO")

    with cache_key_context("customer7", "customer"):
        logger.info("Loading from store")  # Includes cache_key=customer7
"""

from __future__ import annotations

import contextvars
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

import orjson
from opentelemetry import trace

# Context variables for request correlation
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
cache_key_var: contextvars.ContextVar[tuple[str, str] | None] = contextvars.ContextVar(
    "cache_key", default=None
)

# Attributes every LogRecord has; anything else was passed through ``extra``
_RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}


@contextmanager
def cache_key_context(key: str, family: str | None = None) -> Iterator[None]:
    """Tag log records emitted inside the block with a cache key and its family."""
    token = cache_key_var.set((key, family or key))
    try:
        yield
    finally:
        cache_key_var.reset(token)


def _context_fields() -> dict[str, str]:
    fields: dict[str, str] = {}
    if request_id := request_id_var.get():
        fields["request_id"] = request_id
    if correlation_id := correlation_id_var.get():
        fields["correlation_id"] = correlation_id
    if cache_key := cache_key_var.get():
        fields["cache_key"], fields["cache_family"] = cache_key

    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        fields["trace_id"] = format(span_context.trace_id, "032x")
        fields["span_id"] = format(span_context.span_id, "016x")
    return fields


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context_fields(),
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                log_data[key] = value

        return orjson.dumps(log_data, default=str).decode()


class ConsoleFormatter(logging.Formatter):
    """Single-line human-readable output for development.

    2026-01-10 12:34:56 | INFO     | cacheside.cache.aside | Created record customer7 | key=...
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        fields = _context_fields()

        context_parts = []
        if "request_id" in fields:
            context_parts.append(f"req={fields['request_id'][:8]}")
        if "cache_key" in fields:
            context_parts.append(f"key={fields['cache_key']}")
        context = f" | {' '.join(context_parts)}" if context_parts else ""

        message = record.getMessage()
        result = f"{timestamp} | {record.levelname:8} | {record.name} | {message}{context}"
        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)
        return result


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Replace the root handlers with one stderr handler.

    Args:
        json_format: JSON lines when True, console lines otherwise
        level: Root log level name
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else ConsoleFormatter())
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("opentelemetry").setLevel(logging.WARNING)
