"""Event kind and block label enumerations."""

from enum import Enum


class EventKind(str, Enum):
    """Event kinds emitted by the backend task runner.

    The set is open: unknown kind tokens are kept as plain strings on
    ParsedEvent.event_kind.
    """

    STARTED = "started"
    THOUGHT = "thought"
    ACTION = "action"
    RESULTS = "results"
    FINAL = "final"
    SUMMARY = "summary"


class BlockLabel(str, Enum):
    """Labels a payload section can carry."""

    # Matched inside payload text as "<label>:"
    THOUGHT = "Thought"
    ACTION = "Action"
    RESULTS = "Results"
    FINAL_ANSWER = "Final Answer"

    # Assigned to unlabelled text
    SUMMARY = "Summary"
    DATA = "Data"


# Scan order for payload labels
PAYLOAD_LABELS: tuple[BlockLabel, ...] = (
    BlockLabel.THOUGHT,
    BlockLabel.ACTION,
    BlockLabel.RESULTS,
    BlockLabel.FINAL_ANSWER,
)
