#!/usr/bin/env python3
"""
Test script for logging utilities.

This validates that stream failures are classified and logged consistently.
"""

import httpx
import pytest

from chatstream.chat.exceptions import TransportError
from chatstream.logging_utils import (
    ContextualLogger,
    StreamErrorHandler,
    operation_context,
)


def wrapped(cause: Exception) -> TransportError:
    """Build a TransportError chained to ``cause`` the way byte sources do."""
    try:
        raise TransportError(str(cause)) from cause
    except TransportError as e:
        return e


class TestStreamErrorHandler:
    """Test the StreamErrorHandler class."""

    @pytest.mark.parametrize(
        ("error", "category"),
        [
            (TimeoutError("read timed out"), "timeout_error"),
            (httpx.ReadTimeout("slow"), "timeout_error"),
            (httpx.ReadError("reset"), "transport_error"),
            (ConnectionResetError("peer reset"), "connection_error"),
            (OSError("network unreachable"), "connection_error"),
            (RuntimeError("boom"), "unknown_error"),
        ],
    )
    def test_classify_error(self, error, category):
        assert StreamErrorHandler.classify_error(error) == category

    def test_classify_unwraps_transport_error(self):
        assert StreamErrorHandler.classify_error(
            wrapped(httpx.ReadTimeout("slow"))
        ) == "timeout_error"
        assert StreamErrorHandler.classify_error(
            wrapped(httpx.RemoteProtocolError("peer closed"))
        ) == "transport_error"

    def test_describe_uses_message(self):
        message = StreamErrorHandler.describe(
            ConnectionResetError("peer reset"), "Stream read", {"stream_id": "abc"}
        )
        assert message == "Stream read failed: peer reset"

    def test_describe_falls_back_to_type_name(self):
        message = StreamErrorHandler.describe(TimeoutError(), "Stream read")
        assert message == "Stream read failed: TimeoutError"


class TestOperationContext:
    """Test the operation_context async context manager."""

    @pytest.mark.asyncio
    async def test_yields_bound_logger(self):
        async with operation_context("stream_chat", context={"endpoint": "/x"}) as log:
            assert log is not None

    @pytest.mark.asyncio
    async def test_reraises_failures(self):
        with pytest.raises(ValueError, match="bad"):
            async with operation_context("stream_chat"):
                raise ValueError("bad")


class TestContextualLogger:
    """Test the ContextualLogger class."""

    def test_keeps_base_context(self):
        assert ContextualLogger({"stream_id": "abc"}).base_context == {
            "stream_id": "abc"
        }
        assert ContextualLogger().base_context == {}

    def test_logging_methods_accept_context(self):
        log = ContextualLogger({"stream_id": "abc"})
        log.info("info", chunk=1)
        log.warning("warning", chunk=2)
