"""Decoded stream records."""

from pydantic import BaseModel, ConfigDict

from .types import BlockLabel, EventKind


class LabeledBlock(BaseModel):
    """One labelled section of an event payload."""

    model_config = ConfigDict(frozen=True)

    label: BlockLabel
    content: str


class ParsedEvent(BaseModel):
    """A complete event record decoded from the task stream."""

    model_config = ConfigDict(frozen=True)

    event_kind: str
    blocks: tuple[LabeledBlock, ...] = ()
    final_answer: str | None = None

    @property
    def kind(self) -> EventKind | None:
        """Known kind of this event, None for tokens outside EventKind."""
        try:
            return EventKind(self.event_kind)
        except ValueError:
            return None

    @property
    def has_final_answer(self) -> bool:
        return self.final_answer is not None

    def with_blocks(self, blocks: tuple[LabeledBlock, ...] | list[LabeledBlock]) -> "ParsedEvent":
        """Copy of this event carrying other blocks and no final answer."""
        return ParsedEvent(event_kind=self.event_kind, blocks=tuple(blocks))

    def text(self) -> str:
        """Render blocks as "Label: content" lines."""
        return "\n".join(f"{block.label.value}: {block.content}" for block in self.blocks)
