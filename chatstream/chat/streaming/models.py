"""
Streaming-specific dataclasses for the token stream decoder.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

DONE_MARKER = "[DONE]"
ERROR_MARKER = "[ERROR]"


class StreamEventType(Enum):
    """Types of decoded stream events."""
    TOKEN = "token"
    DONE = "done"
    ERROR = "error"


class ErrorKind(Enum):
    """Where a terminal error originated."""
    PROTOCOL = "protocol"
    TRANSPORT = "transport"
    RESPONSE = "response"
    CANCELLED = "cancelled"


class DecoderState(Enum):
    """Lifecycle of a StreamDecoder."""
    ACTIVE = "active"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class StreamEvent:
    """A classified event reconstructed from the byte stream."""
    event_type: StreamEventType
    content: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    implicit: bool = False
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if self.event_type is StreamEventType.TOKEN and not self.content:
            raise ValueError("Token events must carry non-empty content")

    @classmethod
    def token(cls, content: str) -> StreamEvent:
        return cls(StreamEventType.TOKEN, content=content)

    @classmethod
    def done(cls, *, implicit: bool = False) -> StreamEvent:
        return cls(StreamEventType.DONE, implicit=implicit)

    @classmethod
    def failure(
        cls, message: str, kind: ErrorKind = ErrorKind.PROTOCOL
    ) -> StreamEvent:
        return cls(StreamEventType.ERROR, error=message, error_kind=kind)

    @property
    def is_terminal(self) -> bool:
        """True for DONE and ERROR events."""
        return self.event_type is not StreamEventType.TOKEN


# Callbacks may be plain functions or coroutine functions
TokenCallback = Callable[[str], Awaitable[None] | None]
DoneCallback = Callable[[], Awaitable[None] | None]
ErrorCallback = Callable[[str], Awaitable[None] | None]


def _ignore(*_args: object) -> None:
    return None


@dataclass
class StreamHandlers:
    """Consumer callback surface plus an optional cancellation signal."""
    on_token: TokenCallback = _ignore
    on_done: DoneCallback = _ignore
    on_error: ErrorCallback = _ignore
    cancel_event: asyncio.Event | None = None
