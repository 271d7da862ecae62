"""
Streaming functionality for the chat client.

This module contains:
- StreamDecoder, the byte-to-event state machine
- StreamDriver, the read/decode/dispatch loop
- Byte source adapters for httpx and in-memory bodies
"""

from __future__ import annotations

from .decoder import StreamDecoder
from .driver import StreamDriver
from .models import (
    DONE_MARKER,
    ERROR_MARKER,
    DecoderState,
    ErrorKind,
    StreamEvent,
    StreamEventType,
    StreamHandlers,
)
from .source import BufferedByteSource, ByteSource, HttpxByteSource

__all__ = [
    "DONE_MARKER",
    "ERROR_MARKER",
    "BufferedByteSource",
    "ByteSource",
    "DecoderState",
    "ErrorKind",
    "HttpxByteSource",
    "StreamDecoder",
    "StreamDriver",
    "StreamEvent",
    "StreamEventType",
    "StreamHandlers",
]
