"""Group conversation entries into renderable turns."""

from typing import Iterable

from analysis_stream.stream.decoder import split_final_answer
from analysis_stream.stream.models import ParsedEvent
from analysis_stream.utils.logging import get_logger

from .models import (
    BotMessage,
    ComplexBotTurn,
    ConversationEntry,
    RenderableTurn,
    SimpleBotTurn,
    UserMessage,
    UserTurn,
)


logger = get_logger(__name__)


class TurnAggregator:
    """
    Incrementally groups entries into turns.

    Bot events collect in one open accumulator until a final answer, a user
    message or a plain bot message closes it. Feeding a history in slices
    and then calling ``close`` gives the same turns as ``aggregate`` over
    the whole history.
    """

    def __init__(self) -> None:
        self._turns: list[RenderableTurn] = []
        self._open: list[ParsedEvent] = []

    @property
    def turns(self) -> list[RenderableTurn]:
        """Finalized turns in order."""
        return list(self._turns)

    @property
    def pending(self) -> tuple[ParsedEvent, ...]:
        """Events of the bot turn still in progress."""
        return tuple(self._open)

    def append(self, entry: ConversationEntry) -> list[RenderableTurn]:
        """
        Add one entry.

        Returns:
            Turns finalized by this entry
        """
        if isinstance(entry, UserMessage):
            finished = self._flush()
            finished.append(self._finish(UserTurn(content=entry.content)))
            return finished

        if isinstance(entry, BotMessage):
            if entry.parsed is None:
                finished = self._flush()
                finished.append(self._finish(SimpleBotTurn(text=entry.text)))
                return finished
            return self._add_event(entry.parsed)

        return self._add_event(entry)

    def extend(self, entries: Iterable[ConversationEntry]) -> list[RenderableTurn]:
        """Add entries in order and return the turns they finalized."""
        finished: list[RenderableTurn] = []
        for entry in entries:
            finished.extend(self.append(entry))
        return finished

    def close(self) -> list[RenderableTurn]:
        """Flush the open bot turn at stream end."""
        return self._flush()

    def snapshot(self) -> list[RenderableTurn]:
        """Finalized turns plus the in-progress bot turn, without closing it."""
        turns = list(self._turns)
        if self._open:
            turns.append(ComplexBotTurn(thought_sequence=tuple(self._open)))
        return turns

    def _add_event(self, event: ParsedEvent) -> list[RenderableTurn]:
        final_answer, remaining = extract_final_answer(event)
        if final_answer is None:
            self._open.append(event)
            return []

        if remaining.blocks:
            self._open.append(remaining)
        return self._flush(final_answer)

    def _flush(self, final_answer: str | None = None) -> list[RenderableTurn]:
        thoughts = tuple(self._open)
        self._open = []

        if not thoughts and not final_answer:
            return []

        logger.debug(
            "Closing bot turn",
            thoughts=len(thoughts),
            answered=final_answer is not None,
        )
        return [self._finish(ComplexBotTurn(thought_sequence=thoughts, final_answer=final_answer))]

    def _finish(self, turn: RenderableTurn) -> RenderableTurn:
        self._turns.append(turn)
        return turn


def extract_final_answer(event: ParsedEvent) -> tuple[str | None, ParsedEvent]:
    """
    Pull the final answer out of an event.

    The decoder already routes answers of ``final`` events; marker blocks on
    any other kind are handled here as well.

    Returns:
        The answer (or None) and the event without answer blocks
    """
    if event.final_answer is not None:
        return event.final_answer, event.with_blocks(event.blocks)

    remaining, answer = split_final_answer(event.blocks)
    if answer is None:
        return None, event
    return answer, event.with_blocks(remaining)


def aggregate(entries: Iterable[ConversationEntry]) -> list[RenderableTurn]:
    """Group a complete history into turns, closing any open bot turn."""
    aggregator = TurnAggregator()
    aggregator.extend(entries)
    aggregator.close()
    return aggregator.turns
