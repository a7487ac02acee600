"""Decode session owning the buffer of one live stream."""

from .decoder import decode
from .models import ParsedEvent


class DecodeSession:
    """
    Accumulates chunks of one task stream and decodes them as they arrive.

    The buffer belongs to this session alone; each stream gets its own
    session.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._closed = False
        self.events_decoded = 0

    @property
    def remainder(self) -> str:
        """Text received but not yet part of a complete event."""
        return self._buffer

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, chunk: str) -> list[ParsedEvent]:
        """
        Append a chunk and return the events it completed.

        Args:
            chunk: Next text fragment from the transport

        Returns:
            Events completed by this chunk, in stream order
        """
        if self._closed:
            raise RuntimeError("Decode session already closed")

        result = decode(self._buffer + chunk)
        self._buffer = result.remainder
        self.events_decoded += len(result.events)
        return result.events

    def close(self) -> list[ParsedEvent]:
        """Decode whatever is left once the stream has ended or was aborted."""
        if self._closed:
            return []
        self._closed = True

        result = decode(self._buffer, final=True)
        self._buffer = ""
        self.events_decoded += len(result.events)
        return result.events
