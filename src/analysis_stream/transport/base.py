"""Chunk transport interface and cancellable chunk iteration."""

from typing import AsyncIterator, Protocol

from hyx.timeout.api import timeout

from analysis_stream.execution.cancellation import CancellationToken


class ChunkTransport(Protocol):
    """
    Delivers the text chunks of one remote task execution.

    Implementations do not interpret the text. They stop with
    StreamCancelledError once ``token`` is cancelled.
    """

    def stream(self, task: str, token: CancellationToken) -> AsyncIterator[str]:
        ...


async def iter_chunks(
    source: AsyncIterator[str],
    token: CancellationToken,
    idle_timeout: float | None = None,
) -> AsyncIterator[str]:
    """
    Yield chunks from ``source`` until it ends or ``token`` fires.

    Each wait for the next chunk is raced against the token, so a stalled
    source still reacts to cancellation.

    Args:
        source: Raw chunk iterator (e.g. an HTTP response body)
        token: Cancellation token of the current run
        idle_timeout: Longest wait for one chunk in seconds; None waits forever

    Raises:
        StreamCancelledError: When the token is cancelled
        MaxDurationExceeded: When no chunk arrives within idle_timeout
    """
    iterator = source.__aiter__()
    read = _read_next
    if idle_timeout is not None:
        read = timeout(max_delay_secs=idle_timeout)(_read_next)

    try:
        while True:
            token.raise_if_cancelled()
            chunk = await token.race(read(iterator))
            if chunk is None:
                return
            if chunk:
                yield chunk
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


async def _read_next(iterator: AsyncIterator[str]) -> str | None:
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return None
