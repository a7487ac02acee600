"""Cooperative cancellation shared by a run and its task streams."""

import asyncio
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Awaitable, Iterator, TypeVar

from analysis_stream.core.exceptions import StreamCancelledError


T = TypeVar("T")

DEFAULT_REASON = "Execution stopped by user."

_current: ContextVar["CancellationToken | None"] = ContextVar(
    "analysis_stream_cancellation", default=None
)


class CancellationToken:
    """
    One-shot cancellation latch.

    Once cancelled it stays cancelled; a new run creates a new token.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = DEFAULT_REASON) -> bool:
        """
        Set the latch.

        Returns:
            False if it was already set
        """
        if self._event.is_set():
            return False
        self._reason = reason
        self._event.set()
        return True

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise StreamCancelledError(self._reason or DEFAULT_REASON)

    async def race(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the token fires first.

        A result that is ready together with the cancellation is still
        returned. Otherwise the pending work is cancelled and
        StreamCancelledError is raised.
        """
        self.raise_if_cancelled()

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {work, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            waiter.cancel()
            if not work.done():
                work.cancel()
                await asyncio.gather(work, return_exceptions=True)

        if work in done:
            return work.result()
        raise StreamCancelledError(self._reason or DEFAULT_REASON)


def current_cancellation() -> CancellationToken | None:
    """Token of the goal run executing in the current context, if any."""
    return _current.get()


@contextmanager
def cancellation_scope(token: CancellationToken) -> Iterator[CancellationToken]:
    """Make ``token`` the current cancellation token inside the block."""
    reset = _current.set(token)
    try:
        yield token
    finally:
        _current.reset(reset)
