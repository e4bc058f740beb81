"""API routes for the professor and task-assistant chats."""

import logging
from collections.abc import Awaitable
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from tutorhub.api.deps import CurrentUser, DbSession
from tutorhub.config import get_settings, sanitize_error
from tutorhub.db.models import ChatMessage
from tutorhub.schemas.chat import (
    ChatMessageRead,
    ChatMessageRequest,
    ChatReplyResponse,
    EvaluationRead,
    TaskChatReplyResponse,
)
from tutorhub.services.chat_service import (
    AIUnavailableError,
    ChatResult,
    ChatService,
    get_chat_service,
)
from tutorhub.services.model_gateway import GatewayError

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(tags=["chat"])

ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]


# =============================================================================
# HELPERS
# =============================================================================


async def _run_chat(turn: Awaitable[ChatResult]) -> ChatResult:
    """Await a chat turn and translate service errors to HTTP errors."""
    try:
        return await turn
    except AIUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        ) from e
    except GatewayError as e:
        logger.exception("Completion API call failed (model=%s)", e.model)
        safe_msg = sanitize_error(e, generic_message="the AI service did not respond.")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get AI response: {safe_msg}",
        ) from e
    except SQLAlchemyError as e:
        logger.exception("Failed to save chat turn")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="Failed to save chat message."),
        ) from e


# =============================================================================
# CHAT
# =============================================================================


@router.post(
    "/professor-chat",
    response_model=ChatReplyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def professor_chat(
    request: ChatMessageRequest,
    db: DbSession,
    user: CurrentUser,
    service: ChatServiceDep,
) -> ChatReplyResponse:
    """
    Ask the AI professor.

    The professor sees the student's results per subject and a catalog of
    tasks and lectures it can link to.
    """
    result = await _run_chat(
        service.professor_chat(
            db,
            user.id,
            request.message,
            context_type=request.context_type,
            context_id=request.context_id,
        )
    )
    return ChatReplyResponse(ai_reply=result.ai_reply)


@router.post(
    "/task-chat",
    response_model=TaskChatReplyResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def task_chat(
    request: ChatMessageRequest,
    db: DbSession,
    user: CurrentUser,
    service: ChatServiceDep,
) -> TaskChatReplyResponse:
    """
    Chat with the assistant while solving a task.

    context_id is the task id when context_type is "task" or omitted.

    When the assistant grades a final answer the attempt is recorded and
    the response carries an `evaluation` object.
    """
    result = await _run_chat(
        service.task_chat(
            db,
            user.id,
            request.message,
            context_type=request.context_type,
            context_id=request.context_id,
        )
    )
    evaluation = None
    if result.evaluation is not None:
        evaluation = EvaluationRead(
            is_correct=result.evaluation.is_correct,
            score=result.evaluation.score,
        )
    return TaskChatReplyResponse(ai_reply=result.ai_reply, evaluation=evaluation)


# =============================================================================
# HISTORY
# =============================================================================


@router.get("/professor-chat/history", response_model=list[ChatMessageRead])
async def chat_history(
    db: DbSession,
    user: CurrentUser,
) -> list[ChatMessageRead]:
    """The user's most recent chat messages across all contexts, newest first."""
    stmt = (
        select(ChatMessage)
        .where(ChatMessage.user_id == user.id)
        .order_by(ChatMessage.timestamp.desc(), ChatMessage.id.desc())
        .limit(settings.chat_history_page_size)
    )
    result = await db.execute(stmt)
    return [ChatMessageRead.model_validate(m) for m in result.scalars()]


@router.get("/professor-chat/{message_id}", response_model=ChatMessageRead)
async def get_chat_message(
    message_id: int,
    db: DbSession,
    user: CurrentUser,
) -> ChatMessageRead:
    """Get one of the user's chat messages."""
    result = await db.execute(
        select(ChatMessage).where(ChatMessage.id == message_id, ChatMessage.user_id == user.id)
    )
    message = result.scalar_one_or_none()
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="message not found")
    return ChatMessageRead.model_validate(message)
