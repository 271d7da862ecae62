from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Protocol

import httpx

from ..exceptions import TransportError


class ByteSource(Protocol):
    """
    Interface for the transport a StreamDriver pulls bytes from.
    """

    async def read_next(self) -> tuple[bytes, bool]:
        """
        Return the next chunk and whether the source reached its end.
        May suspend. Raises TransportError when the read itself fails.
        """
        ...

    async def cancel(self) -> None:
        """
        Stop the underlying transport. Safe to call repeatedly and after
        end of stream.
        """
        ...


class HttpxByteSource:
    """
    Byte source over the body of an open streaming httpx response.

    Chunks come from ``aiter_bytes``, so any Content-Encoding is already
    undone before the decoder sees them.
    """

    def __init__(self, response: httpx.Response, chunk_size: int | None = None):
        self._response = response
        self._iterator: AsyncGenerator[bytes] = response.aiter_bytes(chunk_size)
        self._finished = False
        self._cancelled = False

    async def read_next(self) -> tuple[bytes, bool]:
        if self._finished or self._cancelled:
            return b"", True

        try:
            chunk = await anext(self._iterator)
        except StopAsyncIteration:
            self._finished = True
            return b"", True
        except (httpx.HTTPError, TimeoutError, OSError) as e:
            raise TransportError(str(e) or type(e).__name__) from e

        return chunk, False

    async def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        await self._iterator.aclose()
        await self._response.aclose()


class BufferedByteSource:
    """Byte source serving chunks held in memory."""

    def __init__(self, *chunks: bytes):
        self._chunks = list(chunks)
        self._position = 0
        self.cancel_calls = 0

    async def read_next(self) -> tuple[bytes, bool]:
        if self.cancel_calls or self._position >= len(self._chunks):
            return b"", True
        chunk = self._chunks[self._position]
        self._position += 1
        return chunk, False

    async def cancel(self) -> None:
        self.cancel_calls += 1
