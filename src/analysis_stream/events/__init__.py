"""Progress events published by the execution pipeline."""

from analysis_stream.events.types import EventType
from analysis_stream.events.models import (
    Event,
    GoalStatusEvent,
    RunFinishedEvent,
    RunStartedEvent,
    StreamErrorEvent,
    StreamEventDecoded,
    TurnCompletedEvent,
)
from analysis_stream.events.emitter import EventEmitter

__all__ = [
    "EventType",
    "Event",
    "EventEmitter",
    "GoalStatusEvent",
    "RunFinishedEvent",
    "RunStartedEvent",
    "StreamErrorEvent",
    "StreamEventDecoded",
    "TurnCompletedEvent",
]
