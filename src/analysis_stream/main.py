"""Command-line entry point: run analysis goals against the backend."""

import argparse
import asyncio
import signal
import sys

from analysis_stream import __version__
from analysis_stream.config.settings import Settings, get_settings
from analysis_stream.execution.controller import TaskExecutionController
from analysis_stream.execution.models import GoalRecord, GoalStatus, RunOutcome
from analysis_stream.execution.runner import StreamingGoalRunner
from analysis_stream.goals.source import HttpGoalSource, load_goals_file
from analysis_stream.transport.http import HttpTaskTransport
from analysis_stream.turns.models import ComplexBotTurn, RenderableTurn, SimpleBotTurn, UserTurn
from analysis_stream.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)


def render_turn(turn: RenderableTurn) -> str:
    """Plain-text rendering of one turn."""
    if isinstance(turn, UserTurn):
        return f"> {turn.content}"
    if isinstance(turn, SimpleBotTurn):
        return turn.text

    lines = []
    for event in turn.thought_sequence:
        for block in event.blocks:
            lines.append(f"  [{event.event_kind}] {block.label.value}: {block.content}")
    if turn.final_answer is not None:
        lines.append(f"Answer: {turn.final_answer}")
    return "\n".join(lines)


def setup_signal_handlers(controller: TaskExecutionController) -> None:
    """Cancel the active run on SIGINT / SIGTERM."""

    def handle_signal(sig: signal.Signals) -> None:
        logger.info(f"Received signal {sig.name}")
        controller.cancel()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: handle_signal(s))
    except NotImplementedError:
        # Windows doesn't support add_signal_handler
        logger.warning("Signal handlers not supported on this platform")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="analysis-stream",
        description="Run analysis goals as streamed tasks, one at a time.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--session", help="analysis session id (default: SESSION_ID)")

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--goals", metavar="FILE", help="JSON file with goals to run")
    source.add_argument("--generate", metavar="GOAL", help="generate KPI goals from a high-level goal")
    source.add_argument("--task", help="run a single ad-hoc task")

    parser.add_argument(
        "--select",
        metavar="INDEX",
        type=int,
        nargs="+",
        help="run only these goal indices (0-based)",
    )
    parser.add_argument(
        "--continue-on-failure",
        action="store_true",
        default=None,
        help="keep running remaining goals after a failure",
    )
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    transport = HttpTaskTransport(settings, session_id=args.session)
    runner = StreamingGoalRunner(transport)
    controller = TaskExecutionController(
        runner,
        continue_on_failure=settings.continue_on_failure,
    )
    setup_signal_handlers(controller)

    try:
        if args.task:
            record = await controller.run_single(GoalRecord(title="Ad-hoc task", description=args.task))
            exit_code = 0 if record.status == GoalStatus.COMPLETED else 1
        else:
            goals = await _load_goals(args, settings)
            if not goals:
                print("No goals to execute.")
                return 0
            outcome = await controller.run(
                goals,
                selection=args.select,
                continue_on_failure=args.continue_on_failure,
            )
            _print_statuses(outcome)
            exit_code = 0 if outcome.succeeded else 1
    finally:
        await transport.close()

    for turn in runner.conversation.turns:
        print(render_turn(turn))
        print()
    return exit_code


async def _load_goals(args: argparse.Namespace, settings: Settings) -> list[GoalRecord]:
    if args.goals:
        return load_goals_file(args.goals)

    source = HttpGoalSource(settings, session_id=args.session)
    try:
        goals = await source.generate(args.generate)
    finally:
        await source.close()
    for index, goal in enumerate(goals):
        print(f"{index}: {goal.title}")
    return goals


def _print_statuses(outcome: RunOutcome) -> None:
    print(f"Run {outcome.state.value}")
    for index, goal in enumerate(outcome.goals):
        suffix = f" ({goal.error})" if goal.error else ""
        print(f"  [{goal.status.value:>9}] {index}: {goal.title}{suffix}")
    print()


def main(argv: list[str] | None = None) -> int:
    """Entry point for the analysis-stream command."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
