"""Goal execution: sequential runs with cooperative cancellation."""

from analysis_stream.execution.models import GoalRecord, GoalStatus, RunOutcome, RunState
from analysis_stream.execution.cancellation import (
    CancellationToken,
    cancellation_scope,
    current_cancellation,
)
from analysis_stream.execution.controller import GoalExecutor, TaskExecutionController
from analysis_stream.execution.runner import StreamingGoalRunner, TaskResult

__all__ = [
    "CancellationToken",
    "GoalExecutor",
    "GoalRecord",
    "GoalStatus",
    "RunOutcome",
    "RunState",
    "StreamingGoalRunner",
    "TaskExecutionController",
    "TaskResult",
    "cancellation_scope",
    "current_cancellation",
]
