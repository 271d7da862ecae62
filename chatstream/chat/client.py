"""
HTTP chat client for the token-streaming chat endpoint.

The client owns request construction and response validation only. Once a
successful response is in hand its body is handed to a StreamDriver; every
failure path resolves to exactly one ``on_error`` call.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx

from ..logging_utils import operation_context
from .exceptions import ResponseError
from .models import ChatRequest, ClientConfig
from .streaming.decoder import StreamDecoder
from .streaming.driver import CANCELLED_MESSAGE, StreamDriver, invoke_callback
from .streaming.models import ErrorKind, StreamEvent, StreamHandlers
from .streaming.source import HttpxByteSource


def classify_error_response(status_code: int, body: str | None) -> ResponseError:
    """
    Classify a non-2xx response body.

    A JSON object carrying an ``error`` field is reported as a backend error,
    anything else as an HTTP failure with the raw body. ``body`` is None when
    the body could not be read at all.
    """
    if body is None:
        return ResponseError(
            f"HTTP {status_code}: unable to read error body",
            status_code=status_code,
        )

    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        data = None

    if isinstance(data, dict) and data.get("error"):
        return ResponseError(
            f"Backend error: {data['error']}",
            status_code=status_code,
            response_data=data,
        )

    return ResponseError(
        f"HTTP {status_code}: {body or 'Request failed'}",
        status_code=status_code,
    )


class StreamChatClient:
    """Streaming chat client over httpx with a pluggable transport."""

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.client: httpx.AsyncClient = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(
                connect=config.connect_timeout,
                read=config.read_timeout,
                write=config.write_timeout,
                pool=config.pool_timeout,
            ),
            transport=transport,
        )

    def _build_request(self, request: ChatRequest | dict[str, Any]) -> ChatRequest:
        if isinstance(request, ChatRequest):
            chat_request = request
        else:
            chat_request = ChatRequest.model_validate(request)

        if chat_request.system_message is None and self.config.system_message:
            chat_request = chat_request.model_copy(
                update={"system_message": self.config.system_message}
            )
        return chat_request

    def _new_decoder(self) -> StreamDecoder:
        return StreamDecoder(
            self.config.encoding,
            keep_content_before_error=self.config.keep_content_before_error,
        )

    async def stream_chat(
        self,
        request: ChatRequest | dict[str, Any],
        handlers: StreamHandlers,
    ) -> StreamEvent:
        """
        Send a chat message and stream the reply into ``handlers``.

        Returns the terminal event that was delivered to the consumer.
        """
        chat_request = self._build_request(request)

        if handlers.cancel_event is not None and handlers.cancel_event.is_set():
            return await self._fail(handlers, CANCELLED_MESSAGE, ErrorKind.CANCELLED)

        async with operation_context(
            "stream_chat", context={"endpoint": self.config.endpoint}
        ) as op_logger:
            http_request = self.client.build_request(
                "POST", self.config.endpoint, json=chat_request.to_payload()
            )
            try:
                response = await self._send_or_cancel(
                    http_request, handlers.cancel_event
                )
            except httpx.HTTPError as e:
                op_logger.error("Request failed", error_message=str(e))
                return await self._fail(
                    handlers, f"Network error: {e!s}", ErrorKind.TRANSPORT
                )

            if response is None:
                op_logger.info("Cancelled while awaiting response")
                return await self._fail(
                    handlers, CANCELLED_MESSAGE, ErrorKind.CANCELLED
                )

            try:
                op_logger.info(
                    "Response received",
                    status_code=response.status_code,
                    content_type=response.headers.get("content-type", ""),
                )

                if not response.is_success:
                    error = await self._read_response_error(response)
                    return await self._fail(
                        handlers, error.message, ErrorKind.RESPONSE
                    )

                driver = StreamDriver(
                    HttpxByteSource(response, self.config.chunk_size),
                    self._new_decoder(),
                    handlers.cancel_event,
                )
                terminal = await driver.run(handlers)
                op_logger.info(
                    "Stream finished",
                    stream_id=driver.stream_id,
                    event_type=terminal.event_type.value,
                )
                return terminal
            finally:
                await response.aclose()

    async def _send_or_cancel(
        self, request: httpx.Request, cancel_event: asyncio.Event | None
    ) -> httpx.Response | None:
        """Send the request, or return None if cancellation wins the race."""
        if cancel_event is None:
            return await self.client.send(request, stream=True)

        send_task = asyncio.ensure_future(self.client.send(request, stream=True))
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {send_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            pending = [task for task in (send_task, cancel_task) if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if send_task in done:
            return send_task.result()
        if not send_task.cancelled() and send_task.exception() is None:
            await send_task.result().aclose()
        return None

    async def _read_response_error(self, response: httpx.Response) -> ResponseError:
        try:
            await response.aread()
            body: str | None = response.text
        except httpx.HTTPError:
            body = None
        return classify_error_response(response.status_code, body)

    @staticmethod
    async def _fail(
        handlers: StreamHandlers, message: str, kind: ErrorKind
    ) -> StreamEvent:
        await invoke_callback(handlers.on_error, message)
        return StreamEvent.failure(message, kind)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> StreamChatClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
