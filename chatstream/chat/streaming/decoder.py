"""
Incremental decoder for the unframed chat token stream.

The backend writes plain text chunks and terminates the body with either a
literal ``[DONE]`` or a literal ``[ERROR]`` followed by the error message.
Chunk boundaries are arbitrary: a multi-byte character or a marker may be
split across any number of reads.
"""

from __future__ import annotations

import codecs

import structlog

from .models import (
    DONE_MARKER,
    ERROR_MARKER,
    DecoderState,
    ErrorKind,
    StreamEvent,
)

logger = structlog.get_logger(__name__)

MARKERS = (ERROR_MARKER, DONE_MARKER)


def partial_marker_length(text: str, markers: tuple[str, ...] = MARKERS) -> int:
    """
    Length of the longest suffix of ``text`` that is a proper prefix of a marker.

    Such a suffix cannot be classified yet: the next chunk may complete it
    into a marker or prove it to be ordinary content.
    """
    longest = max(len(marker) for marker in markers) - 1
    for size in range(min(longest, len(text)), 0, -1):
        tail = text[-size:]
        if any(marker.startswith(tail) for marker in markers):
            return size
    return 0


class StreamDecoder:
    """
    State machine turning raw byte chunks into token/done/error events.

    Features:
    - Streaming UTF-8 decode that carries incomplete sequences between chunks
    - Marker detection across any number of chunk boundaries
    - Replacement-character policy for malformed bytes (never raises)
    - Statistics tracking for monitoring
    """

    def __init__(
        self,
        encoding: str = "utf-8",
        *,
        keep_content_before_error: bool = False,
    ):
        self.encoding = encoding
        self.keep_content_before_error = keep_content_before_error
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""
        self.state = DecoderState.ACTIVE
        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict[str, int]:
        return {
            'chunks_received': 0,
            'bytes_received': 0,
            'tokens_emitted': 0,
            'characters_emitted': 0,
            'held_back_chars': 0,
        }

    @property
    def is_terminated(self) -> bool:
        return self.state is DecoderState.TERMINATED

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """
        Decode the next chunk and classify it into events.

        Returns an empty list for empty chunks, for text that is entirely
        held back as a possible marker prefix, and for any call made after
        the decoder terminated.
        """
        if self.is_terminated:
            logger.debug("Ignoring chunk after termination", size=len(chunk))
            return []
        if not chunk:
            return []

        self.stats['chunks_received'] += 1
        self.stats['bytes_received'] += len(chunk)

        decoded = self._decoder.decode(chunk)
        if not decoded:
            return []

        text = self._pending + decoded
        self._pending = ""

        error_index = text.find(ERROR_MARKER)
        if error_index >= 0:
            events = []
            if error_index > 0 and self.keep_content_before_error:
                events.append(self._token(text[:error_index]))
            events.append(
                StreamEvent.failure(text[error_index:], ErrorKind.PROTOCOL)
            )
            self._terminate("error_marker")
            return events

        done_index = text.find(DONE_MARKER)
        if done_index >= 0:
            events = []
            if done_index > 0:
                events.append(self._token(text[:done_index]))
            events.append(StreamEvent.done())
            self._terminate("done_marker")
            return events

        held = partial_marker_length(text)
        if held:
            self._pending = text[-held:]
            text = text[:-held]
        self.stats['held_back_chars'] = len(self._pending)

        if not text:
            return []
        return [self._token(text)]

    def finalize(self) -> list[StreamEvent]:
        """
        Flush residual decoder output at natural end of stream.

        Incomplete trailing bytes become U+FFFD. The decoder stays ACTIVE;
        deciding that a marker-less stream is an implicit success is left to
        the caller.
        """
        if self.is_terminated:
            return []

        residual = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        self.stats['held_back_chars'] = 0

        if not residual:
            return []
        return [self._token(residual)]

    def _token(self, text: str) -> StreamEvent:
        self.stats['tokens_emitted'] += 1
        self.stats['characters_emitted'] += len(text)
        return StreamEvent.token(text)

    def _terminate(self, reason: str) -> None:
        self.state = DecoderState.TERMINATED
        self._pending = ""
        self.stats['held_back_chars'] = 0
        logger.debug("Stream decoder terminated", reason=reason, **self.stats)

    def get_stats(self) -> dict[str, int]:
        """Get decoding statistics for monitoring."""
        return self.stats.copy()

    def reset(self) -> None:
        """Reset decoder state for a new stream."""
        self._decoder = codecs.getincrementaldecoder(self.encoding)(
            errors="replace"
        )
        self._pending = ""
        self.state = DecoderState.ACTIVE
        self.stats = self._empty_stats()
