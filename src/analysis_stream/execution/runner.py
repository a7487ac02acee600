"""Goal executor piping one streamed task through decoder and aggregator."""

from __future__ import annotations

from contextlib import aclosing
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from analysis_stream.core.exceptions import AnalysisStreamError, StreamCancelledError
from analysis_stream.events.emitter import EventEmitter
from analysis_stream.events.models import (
    StreamErrorEvent,
    StreamEventDecoded,
    TurnCompletedEvent,
)
from analysis_stream.stream.models import ParsedEvent
from analysis_stream.stream.session import DecodeSession
from analysis_stream.turns.conversation import Conversation
from analysis_stream.turns.models import ComplexBotTurn, RenderableTurn
from analysis_stream.utils.logging import get_logger

from .cancellation import CancellationToken, current_cancellation

if TYPE_CHECKING:
    from analysis_stream.transport.base import ChunkTransport


logger = get_logger(__name__)


@dataclass
class TaskResult:
    """What one streamed task contributed to the conversation."""

    task: str
    events: list[ParsedEvent] = field(default_factory=list)
    turns: list[RenderableTurn] = field(default_factory=list)

    @property
    def final_answer(self) -> str | None:
        """Answer of the last answered bot turn, if any."""
        for turn in reversed(self.turns):
            if isinstance(turn, ComplexBotTurn) and turn.final_answer is not None:
                return turn.final_answer
        return None


class StreamingGoalRunner:
    """
    Runs a goal description as a streamed task.

    Flow per task:
    1. Record the description as a user turn
    2. Feed transport chunks through a DecodeSession
    3. Append decoded events to the conversation as they arrive
    4. When the stream ends, decode the remainder and close the open bot turn

    The remainder is decoded on every exit, so text received before a
    cancellation or failure still reaches the conversation. On cancellation
    StreamCancelledError is re-raised. On other failures an error notice is
    added as a plain bot message before the exception propagates to the
    controller.
    """

    def __init__(
        self,
        transport: ChunkTransport,
        conversation: Conversation | None = None,
        emitter: EventEmitter | None = None,
    ):
        self._transport = transport
        self.conversation = conversation or Conversation()
        self._emitter = emitter

    async def __call__(
        self,
        description: str,
        token: CancellationToken | None = None,
    ) -> TaskResult:
        token = token or current_cancellation() or CancellationToken()
        result = TaskResult(task=description)
        session = DecodeSession()

        await self._publish_turns(result, self.conversation.add_user(description))

        try:
            async with aclosing(self._transport.stream(description, token)) as chunks:
                async for chunk in chunks:
                    await self._deliver(result, session.feed(chunk))
        except StreamCancelledError:
            await self._deliver(result, session.close())
            logger.info("Stream aborted by user", events=session.events_decoded)
            raise
        except Exception as e:
            await self._deliver(result, session.close())
            recoverable = e.recoverable if isinstance(e, AnalysisStreamError) else True
            await self._emit(StreamErrorEvent.create(str(e), recoverable=recoverable))
            await self._publish_turns(result, self.conversation.add_bot_text(f"**Error:** {e}"))
            raise
        else:
            await self._deliver(result, session.close())
            logger.debug("Stream finished", events=session.events_decoded)
        finally:
            await self._publish_turns(result, self.conversation.close())

        return result

    async def _deliver(self, result: TaskResult, events: list[ParsedEvent]) -> None:
        if not events:
            return
        result.events.extend(events)
        for event in events:
            await self._emit(StreamEventDecoded.create(event))
        await self._publish_turns(result, self.conversation.add_events(events))

    async def _publish_turns(self, result: TaskResult, turns: list[RenderableTurn]) -> None:
        result.turns.extend(turns)
        for turn in turns:
            await self._emit(TurnCompletedEvent.create(turn))

    async def _emit(self, event) -> None:
        if self._emitter:
            await self._emitter.emit(event)
