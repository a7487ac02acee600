"""Stream decoding: raw task stream text to ParsedEvent records."""

from analysis_stream.stream.types import BlockLabel, EventKind
from analysis_stream.stream.models import LabeledBlock, ParsedEvent
from analysis_stream.stream.decoder import (
    DecodeResult,
    decode,
    parse_event,
    split_blocks,
    split_final_answer,
)
from analysis_stream.stream.session import DecodeSession

__all__ = [
    "BlockLabel",
    "EventKind",
    "LabeledBlock",
    "ParsedEvent",
    "DecodeResult",
    "DecodeSession",
    "decode",
    "parse_event",
    "split_blocks",
    "split_final_answer",
]
