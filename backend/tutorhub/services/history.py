"""Conversation history window for replaying prior turns to the model."""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorhub.db.models import ChatMessage


@dataclass(frozen=True)
class HistoryTurn:
    """One stored exchange."""

    user_text: str
    ai_text: str


async def load_history(
    db: AsyncSession,
    user_id: int,
    context_type: str | None,
    context_id: int | None,
    limit: int,
) -> list[HistoryTurn]:
    """
    Return the user's last `limit` turns in chronological order.

    An empty context_type selects every conversation of the user; the
    context_id filter only applies together with a context_type. Turns
    older than the window are dropped, not summarized.
    """
    stmt = select(ChatMessage).where(ChatMessage.user_id == user_id)
    if context_type:
        stmt = stmt.where(ChatMessage.context_type == context_type)
        if context_id is not None:
            stmt = stmt.where(ChatMessage.context_id == context_id)
    stmt = stmt.order_by(ChatMessage.timestamp.desc(), ChatMessage.id.desc()).limit(limit)

    result = await db.execute(stmt)
    newest_first = result.scalars().all()
    return [HistoryTurn(m.user_message, m.ai_reply) for m in reversed(newest_first)]


def history_to_messages(turns: list[HistoryTurn]) -> list[dict]:
    """Expand turns into alternating user/assistant chat messages."""
    messages = []
    for turn in turns:
        messages.append({"role": "user", "content": turn.user_text})
        messages.append({"role": "assistant", "content": turn.ai_text})
    return messages
