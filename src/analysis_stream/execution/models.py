"""Goal and run state models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class GoalStatus(str, Enum):
    """Status of a goal within one generation."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self in (GoalStatus.COMPLETED, GoalStatus.FAILED, GoalStatus.STOPPED)


class RunState(str, Enum):
    """Status of the controller's current or last run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    HALTED = "halted"  # Stopped after a goal failed


_TRANSITIONS: dict[GoalStatus, frozenset[GoalStatus]] = {
    GoalStatus.PENDING: frozenset({GoalStatus.RUNNING}),
    GoalStatus.RUNNING: frozenset(
        {GoalStatus.COMPLETED, GoalStatus.FAILED, GoalStatus.STOPPED}
    ),
}


@dataclass
class GoalRecord:
    """
    A named analytic objective and its execution status.

    Status only moves forward; re-running a goal uses a fresh record
    (``fresh()``) rather than rewinding this one.
    """

    title: str
    description: str
    status: GoalStatus = GoalStatus.PENDING
    error: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> GoalRecord:
        return cls(title=data["title"], description=data["description"])

    def transition(self, status: GoalStatus) -> None:
        """Move to ``status``, rejecting backward or skipped steps."""
        if status not in _TRANSITIONS.get(self.status, frozenset()):
            raise ValueError(
                f"Invalid goal transition {self.status.value} -> {status.value}"
            )
        self.status = status

    def fresh(self) -> GoalRecord:
        """New pending record for the same goal."""
        return replace(self, status=GoalStatus.PENDING, error=None)


@dataclass
class RunOutcome:
    """Result of one controller run."""

    run_id: str
    state: RunState
    goals: list[GoalRecord] = field(default_factory=list)
    executed: list[int] = field(default_factory=list)  # Indices that entered running

    @property
    def statuses(self) -> list[GoalStatus]:
        return [goal.status for goal in self.goals]

    @property
    def succeeded(self) -> bool:
        return self.state == RunState.COMPLETED and all(
            self.goals[i].status == GoalStatus.COMPLETED for i in self.executed
        )

    def count(self, status: GoalStatus) -> int:
        return sum(1 for goal in self.goals if goal.status == status)
