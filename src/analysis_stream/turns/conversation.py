"""Conversation log with its derived turns."""

from typing import Iterable

from analysis_stream.stream.models import ParsedEvent

from .aggregator import TurnAggregator
from .models import BotMessage, ConversationEntry, RenderableTurn, UserMessage


class Conversation:
    """
    Ordered message log of a chat session.

    Entries are kept verbatim; turns are maintained incrementally and always
    match ``aggregate(entries)`` once the current stream is closed.
    """

    def __init__(self) -> None:
        self._entries: list[ConversationEntry] = []
        self._aggregator = TurnAggregator()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[ConversationEntry]:
        return list(self._entries)

    @property
    def turns(self) -> list[RenderableTurn]:
        """Turns including the bot turn still being streamed."""
        return self._aggregator.snapshot()

    def add_user(self, content: str) -> list[RenderableTurn]:
        return self._add([UserMessage(content=content)])

    def add_events(self, events: Iterable[ParsedEvent]) -> list[RenderableTurn]:
        return self._add([BotMessage(parsed=event) for event in events])

    def add_bot_text(self, text: str) -> list[RenderableTurn]:
        return self._add([BotMessage(text=text)])

    def close(self) -> list[RenderableTurn]:
        """Close the bot turn in progress at the end of a stream."""
        return self._aggregator.close()

    def _add(self, entries: list[ConversationEntry]) -> list[RenderableTurn]:
        self._entries.extend(entries)
        return self._aggregator.extend(entries)
