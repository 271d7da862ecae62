"""
Request and client configuration models for the chat endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """
    Body POSTed to the chat endpoint.

    Unknown fields are passed through untouched; ``stream`` is always sent
    as true because the client only speaks the streaming protocol.
    """
    model_config = ConfigDict(extra="allow")

    message: str = Field(min_length=1)
    system_message: str | None = None
    stream: bool = True

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(exclude_none=True)
        payload["stream"] = True
        return payload


@dataclass(frozen=True)
class ClientConfig:
    """Connection and decoding settings for StreamChatClient."""
    base_url: str
    endpoint: str = "/api/chat"

    # Connection settings
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    write_timeout: float = 10.0
    pool_timeout: float = 10.0

    # Stream decoding
    chunk_size: int | None = None
    encoding: str = "utf-8"
    keep_content_before_error: bool = False

    # Request defaults
    system_message: str | None = None
