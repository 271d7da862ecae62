"""
Centralized logging and error classification utilities for chatstream.

This module standardizes how streaming operations are logged and how
transport failures are classified before being reported to a consumer.

Features:
- Structured logging with contextual information
- Error type detection and classification for stream failures
- Performance timing for client operations
- Context-aware loggers bound to a single stream
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


class StreamErrorHandler:
    """Classifies stream failures and renders consumer-facing messages."""

    @staticmethod
    def classify_error(error: BaseException) -> str:
        """
        Classify an error raised while reading a stream.

        Args:
            error: The exception to classify

        Returns:
            Error category name
        """
        # Unwrap our own TransportError to the exception it wraps
        cause = error.__cause__ if error.__cause__ is not None else error

        if isinstance(cause, TimeoutError | httpx.TimeoutException):
            return "timeout_error"
        if isinstance(cause, httpx.TransportError):
            return "transport_error"
        if isinstance(cause, ConnectionError | OSError):
            return "connection_error"
        return "unknown_error"

    @staticmethod
    def describe(
        error: BaseException,
        operation: str,
        context: dict[str, Any] | None = None,
    ) -> str:
        """
        Log a failed operation and build the message handed to ``on_error``.

        Args:
            error: Original exception
            operation: Description of the operation that failed
            context: Additional context for logging

        Returns:
            Human readable error message
        """
        error_category = StreamErrorHandler.classify_error(error)

        logger.error(
            "Operation failed",
            operation=operation,
            error_type=type(error).__name__,
            error_category=error_category,
            error_message=str(error),
            **(context or {}),
        )

        detail = str(error) or type(error).__name__
        return f"{operation} failed: {detail}"


@asynccontextmanager
async def operation_context(
    operation: str,
    *,
    context: dict[str, Any] | None = None,
    log_timing: bool = True,
):
    """
    Async context manager for operation logging.

    Args:
        operation: Description of the operation
        context: Additional context for logging
        log_timing: Whether to log operation timing

    Yields:
        Bound logger for the operation
    """
    operation_logger = logger.bind(
        operation=operation,
        **(context or {}),
    )

    operation_logger.info("Operation started")
    start_time = time.perf_counter() if log_timing else None

    try:
        yield operation_logger

        log_data: dict[str, Any] = {}
        if log_timing and start_time is not None:
            duration = round((time.perf_counter() - start_time) * 1000, 2)
            log_data["duration_ms"] = duration

        operation_logger.info("Operation completed successfully", **log_data)

    except Exception as e:
        error_log_data: dict[str, Any] = {
            "error_type": type(e).__name__,
            "error_message": str(e),
        }
        if log_timing and start_time is not None:
            duration = round((time.perf_counter() - start_time) * 1000, 2)
            error_log_data["duration_ms"] = duration

        operation_logger.error("Operation failed", **error_log_data)
        raise


class ContextualLogger:
    """Logger that maintains context across related operations."""

    def __init__(self, base_context: dict[str, Any] | None = None):
        self.base_context = base_context or {}
        self._logger = logger.bind(**self.base_context)

    def info(self, message: str, **context: Any) -> None:
        """Log info message with context."""
        self._logger.info(message, **context)

    def warning(self, message: str, **context: Any) -> None:
        """Log warning message with context."""
        self._logger.warning(message, **context)

