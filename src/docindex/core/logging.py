"""
Logging utilities for the document index.

Provides structured logging with correlation support for tracing a document
through ingestion, storage and retrieval.
"""

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO


CORRELATION_FIELDS = (
    "correlation_id",
    "document_id",
    "operation",
    "provider",
)


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured log lines.

    Each log line includes:
    - Standard log fields (timestamp, level, message, logger)
    - Correlation fields if present (document_id, operation, ...)
    """

    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        for field in CORRELATION_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable log lines with correlation context.

    Format: TIMESTAMP - LOGGER - LEVEL - MESSAGE [document_id=X operation=Y]
    """

    def __init__(self, include_timestamp: bool = True):
        if include_timestamp:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            fmt = "%(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt)

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)

        context_parts = []
        for field in ("correlation_id", "document_id", "operation"):
            value = getattr(record, field, None)
            if value is not None:
                context_parts.append(f"{field}={value}")

        if context_parts:
            return f"{base} [{' '.join(context_parts)}]"
        return base


def configure_logging(
    level: int = logging.INFO,
    structured: bool = False,
    include_timestamp: bool = True,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure logging for the docindex package.

    Installs a single stream handler on the ``docindex`` logger. Calling it
    again replaces the formatter and level instead of stacking handlers.

    Args:
        level: Logging level (default: INFO)
        include_timestamp: Whether to include timestamp in log messages
        structured: If True, output JSON-structured logs; if False, human-readable
        stream: Output stream (default: stdout)

    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger("docindex")
    package_logger.setLevel(level)

    if structured:
        formatter = StructuredFormatter(include_timestamp=include_timestamp)
    else:
        formatter = HumanReadableFormatter(include_timestamp=include_timestamp)

    handler = next(
        (h for h in package_logger.handlers if getattr(h, "_docindex_handler", False)),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler._docindex_handler = True
        package_logger.addHandler(handler)

    if stream is not None:
        handler.setStream(stream)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return package_logger


class CorrelationContext:
    """
    Context manager for adding correlation fields to log records.

    Example:
        >>> with CorrelationContext(document_id="handbook", operation="ingest"):
        ...     log_with_context(logger, logging.INFO, "Chunked document")
    """

    _local = threading.local()

    def __init__(
        self,
        document_id: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ):
        context = {
            "document_id": document_id,
            "operation": operation,
            "correlation_id": correlation_id,
            **extra,
        }
        self.context = {k: v for k, v in context.items() if v is not None}
        self._previous: Optional["CorrelationContext"] = None

    def __enter__(self) -> "CorrelationContext":
        self._previous = getattr(CorrelationContext._local, "current", None)
        CorrelationContext._local.current = self
        return self

    def __exit__(self, *args) -> None:
        CorrelationContext._local.current = self._previous

    @classmethod
    def get_current(cls) -> Dict[str, Any]:
        """Get the current correlation context."""
        current = getattr(cls._local, "current", None)
        if current is None:
            return {}
        return current.context.copy()


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """
    Log a message with correlation context.

    Merges the current CorrelationContext with any extra fields provided.
    """
    context = CorrelationContext.get_current()
    context.update(extra)
    logger.log(level, message, extra=context)
