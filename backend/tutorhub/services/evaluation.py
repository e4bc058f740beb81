"""
Grading verdicts embedded in task-assistant replies.

The task assistant is told to answer a final-answer submission with a bare
JSON object:

    {"action": "evaluate", "answer": "42", "is_correct": true, "feedback": "..."}

A reply either parses into that shape exactly or it is ordinary guidance.
Malformed JSON is never an error, just not a grading turn.
"""

import logging
import re
from dataclasses import dataclass
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr, ValidationError
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from tutorhub.db.models import AttemptStatus, SolutionAttempt, Task, User

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL | re.IGNORECASE)


class _VerdictPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: Literal["evaluate"]
    answer: StrictStr
    is_correct: StrictBool
    feedback: StrictStr


@dataclass(frozen=True)
class GuidanceReply:
    """Plain tutoring reply, shown as is."""

    text: str


@dataclass(frozen=True)
class EvaluationVerdict:
    """The model graded a submitted answer."""

    answer: str
    is_correct: bool
    feedback: str


InterpretedReply = Union[GuidanceReply, EvaluationVerdict]


@dataclass(frozen=True)
class EvaluationOutcome:
    """Result of applying a verdict."""

    is_correct: bool
    score: int
    attempt: SolutionAttempt


def interpret_reply(text: str) -> InterpretedReply:
    """Classify a model reply as a grading verdict or plain guidance."""
    candidate = text.strip()
    fenced = _CODE_FENCE.match(candidate)
    if fenced:
        candidate = fenced.group(1).strip()

    if not candidate.startswith("{"):
        return GuidanceReply(text)

    try:
        payload = _VerdictPayload.model_validate_json(candidate)
    except ValidationError:
        logger.debug("Reply looks like JSON but is not a verdict, treating as guidance")
        return GuidanceReply(text)

    return EvaluationVerdict(
        answer=payload.answer,
        is_correct=payload.is_correct,
        feedback=payload.feedback,
    )


NOT_SCORED_NOTE = "_(Not scored: no task is attached to this conversation.)_"


def format_verdict_reply(verdict: EvaluationVerdict, points: int, *, scored: bool = True) -> str:
    """Student-facing text for a verdict; the raw JSON is never shown."""
    if verdict.is_correct:
        banner = f"✅ **Correct!** +{points} points" if points else "✅ **Correct!**"
    else:
        banner = "❌ **Not quite right.**"
    if not scored:
        banner = f"{banner} {NOT_SCORED_NOTE}"
    feedback = verdict.feedback.strip()
    return f"{banner}\n\n{feedback}" if feedback else banner


async def apply_verdict(
    db: AsyncSession,
    user_id: int,
    task: Task,
    verdict: EvaluationVerdict,
) -> EvaluationOutcome:
    """
    Record the graded attempt and award points.

    Stages the attempt and an in-database increment of the user's points in
    the current transaction. The caller commits, so both writes land
    together with the chat message or not at all.
    """
    score = task.points if verdict.is_correct else 0
    attempt = SolutionAttempt(
        user_id=user_id,
        task_id=task.id,
        answer=verdict.answer,
        status=(AttemptStatus.CORRECT if verdict.is_correct else AttemptStatus.INCORRECT).value,
        points_awarded=score,
        ai_feedback=verdict.feedback,
    )
    db.add(attempt)

    if score:
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(points=User.points + score)
            .execution_options(synchronize_session=False)
        )

    logger.info(
        "Graded answer for user %s on task %s: %s (+%d)",
        user_id, task.id, "correct" if verdict.is_correct else "incorrect", score,
    )
    return EvaluationOutcome(is_correct=verdict.is_correct, score=score, attempt=attempt)
