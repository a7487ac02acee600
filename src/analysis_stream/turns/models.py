"""Conversation entries and renderable turns."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from analysis_stream.stream.models import ParsedEvent


# =============================================================================
# CONVERSATION ENTRIES (input to aggregation)
# =============================================================================


class UserMessage(BaseModel):
    """A task or question submitted by the user."""

    model_config = ConfigDict(frozen=True)

    content: str


class BotMessage(BaseModel):
    """
    Something the bot said.

    Either a decoded stream event (``parsed``) or plain text such as an
    error notice.
    """

    model_config = ConfigDict(frozen=True)

    parsed: ParsedEvent | None = None
    text: str = ""


# A bare ParsedEvent counts as bot output
ConversationEntry = Union[UserMessage, BotMessage, ParsedEvent]


# =============================================================================
# RENDERABLE TURNS (output of aggregation)
# =============================================================================


class UserTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["user"] = "user"
    content: str


class SimpleBotTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["bot-simple"] = "bot-simple"
    text: str


class ComplexBotTurn(BaseModel):
    """A bot response made of a thought sequence and an optional answer."""

    model_config = ConfigDict(frozen=True)

    type: Literal["bot-complex"] = "bot-complex"
    thought_sequence: tuple[ParsedEvent, ...] = ()
    final_answer: str | None = None

    @model_validator(mode="after")
    def _not_empty(self) -> "ComplexBotTurn":
        if not self.thought_sequence and not self.final_answer:
            raise ValueError("ComplexBotTurn needs thoughts or a final answer")
        return self

    @property
    def is_answered(self) -> bool:
        return self.final_answer is not None


RenderableTurn = Annotated[
    Union[UserTurn, SimpleBotTurn, ComplexBotTurn],
    Field(discriminator="type"),
]
