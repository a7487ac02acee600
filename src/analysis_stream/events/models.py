"""Event data models."""

import json
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from .types import EventType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Event(BaseModel):
    """Base event model."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: EventType
    timestamp: datetime = Field(default_factory=_utcnow)
    run_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps({
            "id": self.id,
            "type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "run_id": self.run_id,
            "data": self.data,
        })

    def to_sse(self) -> str:
        """Format event for SSE stream."""
        return f"event: {self.event_type.value}\ndata: {self.to_json()}\n\n"


class RunStartedEvent(Event):
    """A batch or single-goal run started."""

    event_type: EventType = EventType.RUN_STARTED

    @classmethod
    def create(cls, goals: list[int], run_id: str | None = None) -> "RunStartedEvent":
        return cls(run_id=run_id, data={"goals": goals})


class RunFinishedEvent(Event):
    """A run reached a terminal state."""

    event_type: EventType = EventType.RUN_FINISHED

    @classmethod
    def create(
        cls,
        state: str,
        statuses: dict[int, str],
        run_id: str | None = None,
    ) -> "RunFinishedEvent":
        return cls(
            run_id=run_id,
            data={"state": state, "statuses": {str(k): v for k, v in statuses.items()}},
        )


class GoalStatusEvent(Event):
    """A goal changed status."""

    event_type: EventType = EventType.GOAL_STATUS

    @classmethod
    def create(
        cls,
        title: str,
        status: str,
        index: int | None = None,
        error: str | None = None,
        run_id: str | None = None,
    ) -> "GoalStatusEvent":
        data: dict[str, Any] = {"index": index, "title": title, "status": status}
        if error:
            data["error"] = error
        return cls(run_id=run_id, data=data)


class StreamEventDecoded(Event):
    """A complete record was decoded from a task stream."""

    event_type: EventType = EventType.STREAM_EVENT

    @classmethod
    def create(cls, parsed: Any, run_id: str | None = None) -> "StreamEventDecoded":
        return cls(run_id=run_id, data=parsed.model_dump(mode="json"))


class StreamErrorEvent(Event):
    """A task stream failed."""

    event_type: EventType = EventType.STREAM_ERROR

    @classmethod
    def create(
        cls,
        message: str,
        recoverable: bool = True,
        run_id: str | None = None,
    ) -> "StreamErrorEvent":
        return cls(run_id=run_id, data={"error_message": message, "recoverable": recoverable})


class TurnCompletedEvent(Event):
    """A conversational turn was finalized."""

    event_type: EventType = EventType.TURN_COMPLETED

    @classmethod
    def create(cls, turn: Any, run_id: str | None = None) -> "TurnCompletedEvent":
        return cls(run_id=run_id, data=turn.model_dump(mode="json"))
