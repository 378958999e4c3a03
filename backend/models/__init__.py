"""Data models for EcoLakbay AI services."""
from .llm import ChatMessage, FunctionDeclaration, TextReply, ToolCallReply, ModelReply
from .conversation import ConversationContext, Turn
from .location import GeocodedLocation, LocationFound, LocationNotFound, ToolResult
from .quiz import Quiz, QuizQuestion, QuestionResult, GradeResult
from .trip import TripPreferences

__all__ = [
    "ChatMessage",
    "FunctionDeclaration",
    "TextReply",
    "ToolCallReply",
    "ModelReply",
    "ConversationContext",
    "Turn",
    "GeocodedLocation",
    "LocationFound",
    "LocationNotFound",
    "ToolResult",
    "Quiz",
    "QuizQuestion",
    "QuestionResult",
    "GradeResult",
    "TripPreferences",
]
