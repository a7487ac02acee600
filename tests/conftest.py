"""Pytest fixtures for testing."""

import asyncio
from typing import AsyncIterator

import pytest
import pytest_asyncio

from analysis_stream.config.settings import Settings
from analysis_stream.events.emitter import EventEmitter
from analysis_stream.events.models import Event
from analysis_stream.execution.cancellation import CancellationToken
from analysis_stream.execution.models import GoalRecord
from analysis_stream.transport.base import iter_chunks


class ScriptedTransport:
    """
    In-memory chunk transport.

    Replays scripted chunks per task. Exceptions in a script are raised at
    that point; tasks listed in ``stall`` wait forever after their chunks
    until the token is cancelled.
    """

    def __init__(
        self,
        scripts: dict[str, list[str | Exception]],
        stall: set[str] | None = None,
    ):
        self.scripts = scripts
        self.stall = stall or set()
        self.requested: list[str] = []

    async def stream(self, task: str, token: CancellationToken) -> AsyncIterator[str]:
        self.requested.append(task)
        async for chunk in iter_chunks(self._source(task), token):
            yield chunk

    async def _source(self, task: str) -> AsyncIterator[str]:
        for item in self.scripts.get(task, []):
            await asyncio.sleep(0)
            if isinstance(item, Exception):
                raise item
            yield item
        if task in self.stall:
            await asyncio.Event().wait()


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        api_base_url="http://backend.test",
        session_id="sess-1",
        log_level="DEBUG",
    )


@pytest_asyncio.fixture
async def event_queue() -> asyncio.Queue[Event]:
    """Create event queue for testing."""
    return asyncio.Queue()


@pytest_asyncio.fixture
async def event_emitter(event_queue: asyncio.Queue[Event]) -> EventEmitter:
    """Create event emitter for testing."""
    return EventEmitter(event_queue)


@pytest.fixture
def goals() -> list[GoalRecord]:
    """Three pending goals."""
    return [
        GoalRecord(title="Revenue", description="total revenue by month"),
        GoalRecord(title="Payers", description="top payers by volume"),
        GoalRecord(title="Lag", description="payment lag by department"),
    ]


@pytest.fixture
def scripted_transport():
    """Factory for ScriptedTransport."""
    return ScriptedTransport
