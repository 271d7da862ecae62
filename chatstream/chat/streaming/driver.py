"""
Driving loop that pulls chunks from a byte source through a StreamDecoder.

Events can be consumed lazily with ``iter_events()`` or dispatched to the
consumer's callbacks with ``run()``. Either way the stream ends with exactly
one DONE or ERROR event and the byte source is cancelled on the way out.
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

from ...logging_utils import ContextualLogger, StreamErrorHandler
from .decoder import StreamDecoder
from .models import ErrorKind, StreamEvent, StreamEventType, StreamHandlers
from .source import ByteSource

CANCELLED_MESSAGE = "Stream cancelled"


class StreamDriver:
    """Single-flow read/decode/dispatch loop with cooperative cancellation."""

    def __init__(
        self,
        source: ByteSource,
        decoder: StreamDecoder | None = None,
        cancel_event: asyncio.Event | None = None,
        stream_id: str | None = None,
    ):
        self.source = source
        self.decoder = decoder or StreamDecoder()
        self.cancel_event = cancel_event
        self.stream_id = stream_id or uuid.uuid4().hex[:12]
        self.terminal_event: StreamEvent | None = None
        self._log = ContextualLogger({"stream_id": self.stream_id})

    def _cancel_requested(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    async def _read_or_cancel(self) -> tuple[bytes, bool] | None:
        """Read the next chunk, or return None if cancellation wins the race."""
        if self.cancel_event is None:
            return await self.source.read_next()

        read_task = asyncio.ensure_future(self.source.read_next())
        cancel_task = asyncio.ensure_future(self.cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {read_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            pending = [task for task in (read_task, cancel_task) if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if read_task in done:
            return read_task.result()
        return None

    async def _close_source(self) -> None:
        try:
            await self.source.cancel()
        except Exception as e:
            # Best effort: the stream outcome is already decided
            self._log.warning(
                "Failed to cancel byte source",
                error_type=type(e).__name__,
                error_message=str(e),
            )

    async def iter_events(self) -> AsyncGenerator[StreamEvent]:
        """
        Yield decoded events until the stream terminates.

        Terminal conditions:
        - ``[DONE]`` / ``[ERROR]`` marker detected by the decoder
        - natural end of the source (flushed tokens, then implicit DONE)
        - read failure (ERROR with ErrorKind.TRANSPORT)
        - cancellation before termination (ERROR with ErrorKind.CANCELLED)
        """
        if self.terminal_event is not None:
            return

        try:
            while True:
                if self._cancel_requested():
                    yield self._finish(
                        StreamEvent.failure(CANCELLED_MESSAGE, ErrorKind.CANCELLED)
                    )
                    return

                try:
                    result = await self._read_or_cancel()
                except Exception as e:
                    # TransportError from HttpxByteSource, raw errors from others
                    message = StreamErrorHandler.describe(
                        e, "Stream read", {"stream_id": self.stream_id}
                    )
                    yield self._finish(
                        StreamEvent.failure(message, ErrorKind.TRANSPORT)
                    )
                    return

                if result is None:
                    continue  # cancellation won; reported at the top of the loop

                chunk, is_end = result
                if chunk:
                    for event in self.decoder.feed(chunk):
                        if event.is_terminal:
                            yield self._finish(event)
                            return
                        yield event

                if is_end:
                    for event in self.decoder.finalize():
                        yield event
                    yield self._finish(StreamEvent.done(implicit=True))
                    return
        finally:
            await self._close_source()

    def _finish(self, event: StreamEvent) -> StreamEvent:
        self.terminal_event = event
        self._log.info(
            "Stream terminated",
            event_type=event.event_type.value,
            error_kind=event.error_kind.value if event.error_kind else None,
            implicit=event.implicit,
            **self.decoder.get_stats(),
        )
        return event

    async def run(self, handlers: StreamHandlers) -> StreamEvent:
        """
        Dispatch every event to the consumer callbacks.

        Returns the terminal event. Exceptions raised by callbacks propagate
        after the byte source has been cancelled.
        """
        if handlers.cancel_event is not None and self.cancel_event is None:
            self.cancel_event = handlers.cancel_event

        events = self.iter_events()
        try:
            async for event in events:
                if event.event_type is StreamEventType.TOKEN:
                    await invoke_callback(handlers.on_token, event.content)
                elif event.event_type is StreamEventType.DONE:
                    await invoke_callback(handlers.on_done)
                else:
                    await invoke_callback(handlers.on_error, event.error)
        finally:
            await events.aclose()

        if self.terminal_event is None:
            raise RuntimeError(
                f"Stream {self.stream_id} ended without a terminal event"
            )
        return self.terminal_event


async def invoke_callback(
    callback: Callable[..., Awaitable[None] | None], *args: Any
) -> None:
    """Call a consumer callback, awaiting the result if it is a coroutine."""
    result = callback(*args)
    if inspect.isawaitable(result):
        await result
