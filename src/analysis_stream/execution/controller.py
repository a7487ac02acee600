"""Sequential goal execution with cooperative cancellation."""

import asyncio
import inspect
from dataclasses import replace
from typing import Any, Awaitable, Callable, Iterable
from uuid import uuid4

from analysis_stream.core.exceptions import ControllerBusyError, StreamCancelledError
from analysis_stream.events.emitter import EventEmitter
from analysis_stream.events.models import (
    Event,
    GoalStatusEvent,
    RunFinishedEvent,
    RunStartedEvent,
)
from analysis_stream.utils.logging import get_logger

from .cancellation import CancellationToken, cancellation_scope
from .models import GoalRecord, GoalStatus, RunOutcome, RunState


logger = get_logger(__name__)


# async (description) -> Any  or  async (description, token) -> Any
GoalExecutor = Callable[..., Awaitable[Any]]


class TaskExecutionController:
    """
    Runs goals one at a time through an injected executor.

    Features:
    - Strictly sequential execution in index order, never concurrent
    - Batch selection by goal index
    - Cooperative cancellation checked before each goal
    - Halt on first failure unless continue-on-failure is enabled
    - Failures reported through goal status, never raised

    The executor receives the goal description, plus the run's
    CancellationToken when it accepts a second argument. The token is also
    reachable via ``current_cancellation()`` while the executor runs.
    """

    def __init__(
        self,
        executor: GoalExecutor,
        emitter: EventEmitter | None = None,
        continue_on_failure: bool = False,
    ):
        """
        Initialize controller.

        Args:
            executor: Async callable running one goal description
            emitter: Optional emitter for run and goal status events
            continue_on_failure: Keep running the batch after a failed goal
        """
        self._executor = executor
        self._emitter = emitter
        self._continue_on_failure = continue_on_failure
        self._passes_token = _accepts_token(executor)

        self._goals: list[GoalRecord] = []
        self._queue: list[int] = []
        self._cursor = 0
        self._token: CancellationToken | None = None
        self._state = RunState.IDLE
        self._busy = False
        self._run_id: str | None = None

    # Observation

    @property
    def goals(self) -> tuple[GoalRecord, ...]:
        return tuple(self._goals)

    @property
    def statuses(self) -> list[GoalStatus]:
        return [goal.status for goal in self._goals]

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def queue(self) -> tuple[int, ...]:
        return tuple(self._queue)

    @property
    def cursor(self) -> int:
        """Number of queued goals started in the current run."""
        return self._cursor

    @property
    def is_running(self) -> bool:
        return self._busy

    # Commands

    def load_goals(self, goals: Iterable[GoalRecord]) -> None:
        """Replace the goal list with a new generation, all pending."""
        if self._busy:
            raise ControllerBusyError()
        self._goals = [goal.fresh() for goal in goals]
        self._queue = []
        self._cursor = 0
        self._state = RunState.IDLE
        logger.debug("Loaded goals", count=len(self._goals))

    def cancel(self, reason: str = "Execution stopped by user.") -> bool:
        """
        Signal cancellation to the active run.

        The goal currently running is not torn down here; its stream sees
        the token and ends as stopped. No further goal starts.

        Returns:
            True if a run was active and had not been cancelled yet
        """
        if not self._busy or self._token is None:
            return False
        if self._token.cancel(reason):
            logger.info("Cancellation requested", run_id=self._run_id, reason=reason)
            return True
        return False

    async def run(
        self,
        goals: Iterable[GoalRecord] | None = None,
        selection: Iterable[int] | None = None,
        *,
        continue_on_failure: bool | None = None,
    ) -> RunOutcome:
        """
        Run goals sequentially.

        Args:
            goals: New goal generation; None reruns the loaded goals
            selection: Goal indices to run; None or empty runs all goals
            continue_on_failure: Override the controller default

        Returns:
            RunOutcome with per-goal terminal statuses
        """
        if self._busy:
            raise ControllerBusyError()

        # Validate the selection before a new generation replaces the old one
        generation = [goal.fresh() for goal in goals] if goals is not None else None
        queue = self._build_queue(
            selection, len(generation if generation is not None else self._goals)
        )
        if generation is not None:
            self.load_goals(generation)

        halt_on_failure = not (
            self._continue_on_failure if continue_on_failure is None else continue_on_failure
        )

        # Queued goals start a new generation
        for index in queue:
            self._goals[index] = self._goals[index].fresh()

        token = self._begin(queue)
        run_id = self._run_id
        executed: list[int] = []
        halted = False

        logger.info("Starting goal run", run_id=run_id, goals=len(queue))

        try:
            await self._emit(RunStartedEvent.create(goals=queue, run_id=run_id))

            for position, index in enumerate(queue):
                if token.cancelled:
                    logger.info(
                        "Execution stopped by user",
                        run_id=run_id,
                        remaining=len(queue) - position,
                    )
                    break

                self._cursor = position + 1
                executed.append(index)
                status = await self._execute(self._goals[index], token, index)

                if status == GoalStatus.FAILED and halt_on_failure:
                    logger.warning("Batch halted after failed goal", run_id=run_id, index=index)
                    halted = True
                    break
        except asyncio.CancelledError:
            token.cancel()
            raise
        finally:
            if halted:
                self._state = RunState.HALTED
            elif token.cancelled:
                self._state = RunState.CANCELLED
            else:
                self._state = RunState.COMPLETED
            self._busy = False

        outcome = RunOutcome(
            run_id=run_id,
            state=self._state,
            goals=[replace(goal) for goal in self._goals],
            executed=executed,
        )
        await self._emit(
            RunFinishedEvent.create(
                state=self._state.value,
                statuses={i: self._goals[i].status.value for i in queue},
                run_id=run_id,
            )
        )
        logger.info(
            "Goal run finished",
            run_id=run_id,
            state=self._state.value,
            completed=outcome.count(GoalStatus.COMPLETED),
            failed=outcome.count(GoalStatus.FAILED),
            stopped=outcome.count(GoalStatus.STOPPED),
        )
        return outcome

    async def run_single(self, goal: GoalRecord) -> GoalRecord:
        """
        Run one ad-hoc goal outside the batch.

        The batch goal list is left untouched; the returned record carries
        this run's status. ``cancel()`` applies as for a batch.
        """
        if self._busy:
            raise ControllerBusyError()

        record = goal.fresh()
        token = self._begin([])
        run_id = self._run_id

        try:
            await self._emit(RunStartedEvent.create(goals=[], run_id=run_id))
            await self._execute(record, token, None)
        except asyncio.CancelledError:
            token.cancel()
            raise
        finally:
            if record.status == GoalStatus.FAILED:
                self._state = RunState.HALTED
            elif token.cancelled:
                self._state = RunState.CANCELLED
            else:
                self._state = RunState.COMPLETED
            self._busy = False

        await self._emit(
            RunFinishedEvent.create(state=self._state.value, statuses={}, run_id=run_id)
        )
        return record

    # Internals

    def _build_queue(self, selection: Iterable[int] | None, count: int) -> list[int]:
        queue = sorted(set(selection or ()))
        if not queue:
            return list(range(count))

        invalid = [i for i in queue if not 0 <= i < count]
        if invalid:
            raise ValueError(f"Goal indices out of range: {invalid}")
        return queue

    def _begin(self, queue: list[int]) -> CancellationToken:
        self._busy = True
        self._token = CancellationToken()
        self._queue = list(queue)
        self._cursor = 0
        self._state = RunState.RUNNING
        self._run_id = str(uuid4())
        return self._token

    async def _execute(
        self,
        goal: GoalRecord,
        token: CancellationToken,
        index: int | None,
    ) -> GoalStatus:
        """Run one goal and record its terminal status."""
        goal.transition(GoalStatus.RUNNING)
        await self._emit_status(goal, index)
        logger.info("Running goal", run_id=self._run_id, index=index, title=goal.title)

        status = GoalStatus.COMPLETED
        error: str | None = None
        try:
            with cancellation_scope(token):
                if self._passes_token:
                    await self._executor(goal.description, token)
                else:
                    await self._executor(goal.description)
        except StreamCancelledError:
            status = GoalStatus.STOPPED
        except asyncio.CancelledError:
            token.cancel()
            goal.transition(GoalStatus.STOPPED)
            await self._emit_status(goal, index)
            if _task_cancelling():
                raise
            logger.info("Goal stopped", run_id=self._run_id, index=index)
            return goal.status
        except Exception as e:
            if token.cancelled:
                status = GoalStatus.STOPPED
            else:
                status = GoalStatus.FAILED
                error = str(e)
                logger.error(
                    f"Goal failed: {e}",
                    run_id=self._run_id,
                    index=index,
                    title=goal.title,
                    exc_info=True,
                )
        else:
            if token.cancelled:
                status = GoalStatus.STOPPED

        goal.transition(status)
        goal.error = error
        await self._emit_status(goal, index)

        if status == GoalStatus.STOPPED:
            logger.info("Goal stopped", run_id=self._run_id, index=index)
        elif status == GoalStatus.COMPLETED:
            logger.info("Goal completed", run_id=self._run_id, index=index)
        return status

    async def _emit_status(self, goal: GoalRecord, index: int | None) -> None:
        await self._emit(
            GoalStatusEvent.create(
                title=goal.title,
                status=goal.status.value,
                index=index,
                error=goal.error,
                run_id=self._run_id,
            )
        )

    async def _emit(self, event: Event) -> None:
        if self._emitter:
            await self._emitter.emit(event)


def _accepts_token(executor: GoalExecutor) -> bool:
    """Whether the executor takes the cancellation token as second argument."""
    try:
        params = list(inspect.signature(executor).parameters.values())
    except (TypeError, ValueError):
        return False

    positional = 0
    for param in params:
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            positional += 1
    return positional >= 2


def _task_cancelling() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0
