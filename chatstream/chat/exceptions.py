"""
Error types for the chat streaming client.

Stream failures never escape the decoder or driver as exceptions; these
types are raised at the transport and response seams and converted into a
single error event before reaching the consumer.
"""

from __future__ import annotations


class StreamClientError(Exception):
    """Base chat client error with response context."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}


class TransportError(StreamClientError):
    """Reading from the byte source failed (reset, timeout, closed socket)."""
    pass


class ResponseError(StreamClientError):
    """The initiating request did not succeed."""
    pass
