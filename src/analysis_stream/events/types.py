"""Event type enumerations."""

from enum import Enum


class EventType(str, Enum):
    """Events published while goals run."""

    # Run events
    RUN_STARTED = "run.started"
    RUN_FINISHED = "run.finished"

    # Goal events
    GOAL_STATUS = "goal.status"

    # Stream events
    STREAM_EVENT = "stream.event"  # One decoded ParsedEvent
    STREAM_ERROR = "stream.error"

    # Turn events
    TURN_COMPLETED = "turn.completed"
