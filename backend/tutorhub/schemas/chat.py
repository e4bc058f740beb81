"""Pydantic schemas for AI chat operations."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from tutorhub.schemas.base import BaseSchema

ContextType = Literal["general", "lecture", "task", "topic"]


# Request schemas
class ChatMessageRequest(BaseSchema):
    """Request to send a chat message."""

    message: str = Field(..., min_length=1, max_length=10000)
    context_type: ContextType | None = None
    context_id: int | None = Field(None, ge=1)


# Response schemas
class EvaluationRead(BaseModel):
    """Grading outcome of a task-assistant turn."""

    is_correct: bool
    score: int


class ChatReplyResponse(BaseModel):
    """Reply to a professor chat message."""

    ai_reply: str


class TaskChatReplyResponse(ChatReplyResponse):
    """Reply to a task chat message; evaluation is set on grading turns."""

    evaluation: EvaluationRead | None = None


class ChatMessageRead(BaseSchema):
    """Stored chat exchange."""

    id: int
    user_id: int
    context_type: str
    context_id: int | None
    user_message: str
    ai_reply: str
    timestamp: datetime
