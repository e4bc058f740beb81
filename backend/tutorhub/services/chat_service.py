"""Professor and task-assistant chat orchestration."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tutorhub.config import get_settings
from tutorhub.db.models import ChatContextType, ChatMessage, Task
from tutorhub.services.context_assembler import ChatMode, build_system_context
from tutorhub.services.evaluation import (
    EvaluationOutcome,
    EvaluationVerdict,
    apply_verdict,
    format_verdict_reply,
    interpret_reply,
)
from tutorhub.services.history import history_to_messages, load_history
from tutorhub.services.model_gateway import ModelGateway
from tutorhub.services.settings_store import AIConfig, get_or_create_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class AIUnavailableError(Exception):
    """The AI tutor is not configured (no API key)."""


@dataclass(frozen=True)
class ChatResult:
    """Reply shown to the student, plus the grading outcome if any."""

    ai_reply: str
    message: ChatMessage
    evaluation: EvaluationOutcome | None = None


class ChatService:
    """
    Runs one chat turn end to end.

    settings -> system context -> history window -> model gateway ->
    (task mode) verdict handling -> single commit of every write.
    A gateway failure persists nothing.
    """

    def __init__(self, gateway_factory: Callable[[AIConfig], ModelGateway] = ModelGateway.from_config):
        self.gateway_factory = gateway_factory

    async def professor_chat(
        self,
        db: AsyncSession,
        user_id: int,
        message: str,
        context_type: str | None = None,
        context_id: int | None = None,
    ) -> ChatResult:
        """
        Answer a question with the professor persona.

        History is scoped by the given context; without a context_type it
        spans all of the user's conversations.
        """
        config = await self._load_config(db)
        reply = await self._complete(
            db, config, ChatMode.PROFESSOR, user_id, message, context_type, context_id
        )

        chat_message = ChatMessage(
            user_id=user_id,
            context_type=context_type or ChatContextType.GENERAL.value,
            context_id=context_id,
            user_message=message,
            ai_reply=reply,
            timestamp=datetime.now(timezone.utc),
        )
        await self._persist(db, chat_message)
        return ChatResult(ai_reply=reply, message=chat_message)

    async def task_chat(
        self,
        db: AsyncSession,
        user_id: int,
        message: str,
        context_type: str | None = None,
        context_id: int | None = None,
    ) -> ChatResult:
        """
        Help with one task and grade final answers the model evaluates.

        context_id names a task only when context_type is empty or "task";
        any other context gets no task block and is never graded.
        """
        context_type = context_type or ChatContextType.TASK.value
        task_id = context_id if context_type == ChatContextType.TASK.value else None

        config = await self._load_config(db)
        raw_reply = await self._complete(
            db, config, ChatMode.TASK, user_id, message, context_type, context_id
        )

        reply = raw_reply
        outcome = None
        interpreted = interpret_reply(raw_reply)
        if isinstance(interpreted, EvaluationVerdict):
            task = await db.get(Task, task_id) if task_id is not None else None
            if task is not None:
                outcome = await apply_verdict(db, user_id, task, interpreted)
                reply = format_verdict_reply(interpreted, outcome.score)
            else:
                logger.warning(
                    "Verdict received without a task (context %s/%s), not scoring it",
                    context_type, context_id,
                )
                reply = format_verdict_reply(interpreted, 0, scored=False)

        chat_message = ChatMessage(
            user_id=user_id,
            context_type=context_type,
            context_id=context_id,
            user_message=message,
            ai_reply=reply,
            timestamp=datetime.now(timezone.utc),
        )
        await self._persist(db, chat_message)
        return ChatResult(ai_reply=reply, message=chat_message, evaluation=outcome)

    async def _load_config(self, db: AsyncSession) -> AIConfig:
        row = await get_or_create_settings(db)
        config = AIConfig.from_settings(row)
        if not config.is_configured:
            raise AIUnavailableError("OpenRouter API key not configured. Please contact admin.")
        return config

    async def _complete(
        self,
        db: AsyncSession,
        config: AIConfig,
        mode: ChatMode,
        user_id: int,
        message: str,
        context_type: str | None,
        context_id: int | None,
    ) -> str:
        system_prompt = await build_system_context(
            db, config, mode, context_type, context_id, user_id
        )
        turns = await load_history(
            db, user_id, context_type, context_id, settings.chat_history_window
        )

        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(history_to_messages(turns))
        messages.append({"role": "user", "content": message})

        gateway = self.gateway_factory(config)
        return await gateway.chat(messages)

    async def _persist(self, db: AsyncSession, chat_message: ChatMessage) -> None:
        db.add(chat_message)
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            raise
        await db.refresh(chat_message)


# Singleton instance
chat_service = ChatService()


def get_chat_service() -> ChatService:
    """FastAPI dependency; tests override it to script the gateway."""
    return chat_service
