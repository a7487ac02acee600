"""Event emitter for publishing events."""

import asyncio
from typing import Any, Callable

from analysis_stream.utils.logging import get_logger

from .models import Event
from .types import EventType


logger = get_logger(__name__)

EventHandler = Callable[[Event], Any]


class EventEmitter:
    """
    Publish events to subscribers.

    Design Pattern: Observer Pattern

    Handlers subscribe by pattern ("goal.status", "stream.*", "*"). When a
    queue is given, every event is also put on it, for hosts that relay
    progress as SSE.
    """

    def __init__(self, queue: asyncio.Queue[Event] | None = None):
        self._queue = queue
        self._handlers: dict[str, list[tuple[str, EventHandler]]] = {}
        self._handler_counter = 0

    def subscribe(self, pattern: str, handler: EventHandler) -> str:
        """
        Subscribe to events matching pattern.

        Args:
            pattern: Event type pattern (e.g., "goal.*", "turn.completed")
            handler: Callback function to handle events

        Returns:
            Subscription ID for unsubscribing
        """
        self._handler_counter += 1
        sub_id = f"sub_{self._handler_counter}"

        self._handlers.setdefault(pattern, []).append((sub_id, handler))
        return sub_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """Unsubscribe a handler by subscription ID."""
        for handlers in self._handlers.values():
            for i, (sub_id, _) in enumerate(handlers):
                if sub_id == subscription_id:
                    handlers.pop(i)
                    return True
        return False

    async def emit(self, event: Event) -> None:
        """Deliver event to the queue and all matching handlers."""
        if self._queue is not None:
            await self._queue.put(event)

        for _, handler in self._get_matching_handlers(event.event_type):
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Event handler error: {e}", exc_info=True)

    def _get_matching_handlers(
        self, event_type: EventType
    ) -> list[tuple[str, EventHandler]]:
        """Get handlers matching the event type."""
        matching = []
        event_str = event_type.value

        for pattern, handlers in self._handlers.items():
            if self._pattern_matches(pattern, event_str):
                matching.extend(handlers)

        return matching

    def _pattern_matches(self, pattern: str, event_type: str) -> bool:
        """Check if pattern matches event type."""
        if pattern == "*":
            return True
        if pattern == event_type:
            return True
        if pattern.endswith(".*"):
            prefix = pattern[:-2]
            return event_type.startswith(prefix + ".")
        return False
