"""Turn aggregation: decoded events to conversational turns."""

from analysis_stream.turns.models import (
    BotMessage,
    ComplexBotTurn,
    ConversationEntry,
    RenderableTurn,
    SimpleBotTurn,
    UserMessage,
    UserTurn,
)
from analysis_stream.turns.aggregator import TurnAggregator, aggregate, extract_final_answer
from analysis_stream.turns.conversation import Conversation

__all__ = [
    "BotMessage",
    "ComplexBotTurn",
    "Conversation",
    "ConversationEntry",
    "RenderableTurn",
    "SimpleBotTurn",
    "TurnAggregator",
    "UserMessage",
    "UserTurn",
    "aggregate",
    "extract_final_answer",
]
