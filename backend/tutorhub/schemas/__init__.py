"""Pydantic schemas for API request/response validation."""

from tutorhub.schemas.chat import (
    ChatMessageRead,
    ChatMessageRequest,
    ChatReplyResponse,
    EvaluationRead,
    TaskChatReplyResponse,
)
from tutorhub.schemas.settings import AppSettingsRead, AppSettingsUpdate
from tutorhub.schemas.user import LeaderboardEntry

__all__ = [
    # Chat
    "ChatMessageRead",
    "ChatMessageRequest",
    "ChatReplyResponse",
    "EvaluationRead",
    "TaskChatReplyResponse",
    # Settings
    "AppSettingsRead",
    "AppSettingsUpdate",
    # Leaderboard
    "LeaderboardEntry",
]
