"""
Chat endpoint integration.

This package provides:
- Request construction and response validation over httpx
- Incremental decoding of the token stream into typed events
- A driving loop with cooperative cancellation
"""

from __future__ import annotations

from .client import StreamChatClient, classify_error_response
from .exceptions import ResponseError, StreamClientError, TransportError
from .models import ChatRequest, ClientConfig

__all__ = [
    "ChatRequest",
    "ClientConfig",
    "ResponseError",
    "StreamChatClient",
    "StreamClientError",
    "TransportError",
    "classify_error_response",
]
