"""Incremental decoder for the task runner's event stream.

The backend streams records shaped like server-sent events:

    event: thought
    data: Thought: look at the sales table
    data: Action: sum the revenue column

Each record starts with an ``event:`` line naming its kind, followed by
``data:`` lines carrying the payload. The payload is split into labelled
blocks (``Thought:``, ``Action:``, ``Results:``, ``Final Answer:``).

``decode`` is pure: it takes everything buffered so far and returns the
complete events plus the text that still has to wait for more input. It
never raises; malformed records are dropped.
"""

import re
from typing import NamedTuple

from analysis_stream.utils.logging import get_logger

from .models import LabeledBlock, ParsedEvent
from .types import PAYLOAD_LABELS, BlockLabel, EventKind


logger = get_logger(__name__)

_BOUNDARY = re.compile(r"^event:", re.IGNORECASE | re.MULTILINE)
_HEADER = re.compile(r"event:[ \t]*(\w+)", re.IGNORECASE)
_DATA_MARKER = re.compile(r"^data:\s*", re.IGNORECASE)
_LABEL = re.compile(
    "|".join(f"({re.escape(label.value)}):" for label in PAYLOAD_LABELS),
    re.IGNORECASE,
)

FINAL_ANSWER_MARKER = re.compile(r"^\s*\[final answer\]:\s*", re.IGNORECASE)
_ANSWER_LINE = re.compile(r"^[ \t]*\[final answer\]:", re.IGNORECASE | re.MULTILINE)


class DecodeResult(NamedTuple):
    """Events extracted from a buffer and the text left to decode."""

    events: list[ParsedEvent]
    remainder: str


def decode(buffer: str, *, final: bool = False) -> DecodeResult:
    """
    Extract complete event records from buffered stream text.

    A record is complete once the next ``event:`` line has arrived; more
    ``data:`` lines may still follow until then, so the trailing record is
    kept as remainder. With ``final=True`` (end of stream) the trailing
    record is taken as it is.

    Args:
        buffer: All stream text not consumed by earlier calls
        final: Whether no more text will follow

    Returns:
        DecodeResult with the decoded events and the unconsumed remainder
    """
    starts = [match.start() for match in _BOUNDARY.finditer(buffer)]
    if not starts:
        return DecodeResult([], "" if final else buffer)

    if starts[0] > 0:
        _drop(buffer[: starts[0]], "text before first event")

    segments = [
        buffer[start:end] for start, end in zip(starts, starts[1:] + [len(buffer)])
    ]
    *complete, trailing = segments

    remainder = ""
    if final:
        complete.append(trailing)
    else:
        remainder = trailing

    events = []
    for segment in complete:
        event = parse_event(segment)
        if event is not None:
            events.append(event)

    return DecodeResult(events, remainder)


def parse_event(segment: str) -> ParsedEvent | None:
    """
    Parse one record that starts at an ``event:`` line.

    Returns:
        The event, or None when the record has no kind token or no content
    """
    header, _, body = segment.partition("\n")
    match = _HEADER.match(header.strip())
    if not match:
        _drop(segment, "missing event kind")
        return None

    event_kind = match.group(1).lower()
    payload = extract_payload(body)
    blocks = split_blocks(payload)

    final_answer = None
    if event_kind == EventKind.FINAL.value:
        blocks, final_answer = split_final_answer(blocks)

    if not blocks and final_answer is None:
        return None

    return ParsedEvent(event_kind=event_kind, blocks=tuple(blocks), final_answer=final_answer)


def extract_payload(body: str) -> str:
    """Strip ``data:`` markers from payload lines and join them."""
    lines = []
    for line in body.split("\n"):
        line = line.strip()
        if line.startswith(":"):
            # SSE comment, e.g. keepalive
            continue
        lines.append(_DATA_MARKER.sub("", line, count=1).strip())
    return "\n".join(lines).strip()


def split_blocks(text: str) -> list[LabeledBlock]:
    """
    Split payload text into labelled blocks.

    Labels are found by a case-insensitive substring search, so a label word
    quoted inside another block's text also starts a new block. A line
    opening with the ``[Final Answer]:`` marker starts a block of its own,
    marker included.
    """
    blocks: list[LabeledBlock] = []
    cursor = 0

    while cursor < len(text):
        found = _find_block(text, cursor)
        if found is None:
            _add_summary(blocks, text[cursor:])
            break

        start, content_start, label = found
        _add_summary(blocks, text[cursor:start])

        following = _find_block(text, content_start)
        end = following[0] if following else len(text)
        if label is None:
            blocks.append(LabeledBlock(label=BlockLabel.SUMMARY, content=text[start:end].strip()))
        else:
            blocks.append(LabeledBlock(label=label, content=text[content_start:end].strip()))
        cursor = end

    if not blocks and text:
        blocks.append(LabeledBlock(label=BlockLabel.DATA, content=text))

    return blocks


def split_final_answer(
    blocks: list[LabeledBlock] | tuple[LabeledBlock, ...],
) -> tuple[list[LabeledBlock], str | None]:
    """
    Separate ``[Final Answer]:`` blocks from the rest.

    Returns:
        The remaining blocks and the first answer text with its marker
        stripped, or None when no block carries the marker
    """
    remaining = []
    answers = []
    for block in blocks:
        marker = FINAL_ANSWER_MARKER.match(block.content)
        if marker:
            answers.append(block.content[marker.end() :].strip())
        else:
            remaining.append(block)
    return remaining, (answers[0] if answers else None)


def _find_block(text: str, pos: int) -> tuple[int, int, BlockLabel | None] | None:
    """Earliest block start at or after ``pos``: (start, content start, label).

    The label is None for a ``[Final Answer]:`` line.
    """
    found = []
    label = _LABEL.search(text, pos)
    if label:
        found.append((label.start(), label.end(), PAYLOAD_LABELS[label.lastindex - 1]))
    answer = _ANSWER_LINE.search(text, pos)
    if answer:
        found.append((answer.start(), answer.end(), None))
    return min(found, key=lambda item: item[0]) if found else None


def _add_summary(blocks: list[LabeledBlock], text: str) -> None:
    text = text.strip()
    if text:
        blocks.append(LabeledBlock(label=BlockLabel.SUMMARY, content=text))


def _drop(text: str, reason: str) -> None:
    logger.debug("Dropping malformed stream text", reason=reason, preview=text[:80])
