"""System prompt assembly for the professor and task-assistant chats."""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorhub.config import get_settings
from tutorhub.db.models import (
    AttemptStatus,
    ChatContextType,
    Lecture,
    SolutionAttempt,
    Task,
    User,
)
from tutorhub.services.settings_store import AIConfig

logger = logging.getLogger(__name__)
settings = get_settings()

GRADING_INSTRUCTIONS = """**Evaluating a final answer:**
When the student submits a final answer (for example "Final answer: X"), reply with ONLY this JSON object and nothing else:
{"action": "evaluate", "answer": "<the student's answer>", "is_correct": true or false, "feedback": "<short explanation for the student>"}
Judge correctness against the grading reference above. For every other message reply normally in plain text."""


class ChatMode(str, Enum):
    """Which assistant persona is answering."""

    PROFESSOR = "professor"
    TASK = "task"


@dataclass(frozen=True)
class SubjectPerformance:
    subject: str
    correct: int
    total: int

    @property
    def success_rate(self) -> float:
        """Percentage of correct attempts, 0 when nothing was attempted."""
        if self.total == 0:
            return 0.0
        return self.correct / self.total * 100


async def get_subject_performance(db: AsyncSession, user_id: int) -> list[SubjectPerformance]:
    """
    Per-subject correct/total counts for a user.

    Every subject that has tasks is listed; subjects the student never
    attempted come back as 0/0.
    """
    correct = func.sum(case((SolutionAttempt.status == AttemptStatus.CORRECT.value, 1), else_=0))
    stmt = (
        select(Task.subject, func.coalesce(correct, 0), func.count(SolutionAttempt.id))
        .select_from(Task)
        .outerjoin(
            SolutionAttempt,
            and_(SolutionAttempt.task_id == Task.id, SolutionAttempt.user_id == user_id),
        )
        .group_by(Task.subject)
        .order_by(Task.subject)
    )
    result = await db.execute(stmt)
    return [
        SubjectPerformance(subject=subject, correct=int(correct_count), total=int(total))
        for subject, correct_count, total in result.all()
    ]


async def build_student_stats(db: AsyncSession, user_id: int) -> str:
    """Markdown block with the student's overall and per-subject results."""
    user = await db.get(User, user_id)

    solved = await db.scalar(
        select(func.count())
        .select_from(SolutionAttempt)
        .where(
            SolutionAttempt.user_id == user_id,
            SolutionAttempt.status == AttemptStatus.CORRECT.value,
        )
    )
    attempts = await db.scalar(
        select(func.count()).select_from(SolutionAttempt).where(SolutionAttempt.user_id == user_id)
    )

    lines = [
        "**Student Performance:**",
        f"Name: {user.name if user else 'Unknown'}",
        f"Total Points: {user.points if user else 0}",
        f"Tasks Solved: {solved or 0}/{attempts or 0}",
    ]
    for perf in await get_subject_performance(db, user_id):
        lines.append(
            f"- {perf.subject}: {perf.correct}/{perf.total} correct ({perf.success_rate:.1f}%)"
        )
    return "\n".join(lines) + "\n"


async def build_resource_catalog(db: AsyncSession, limit: int) -> str:
    """
    List tasks and lectures as links the model can cite.

    No relevance ranking: the first `limit` active rows of each by id.
    """
    task_rows = await db.execute(
        select(Task.id, Task.title, Task.subject, Task.level)
        .where(Task.status == "active")
        .order_by(Task.id)
        .limit(limit)
    )
    lecture_rows = await db.execute(
        select(Lecture.id, Lecture.title, Lecture.subject, Lecture.level)
        .where(Lecture.status == "active")
        .order_by(Lecture.id)
        .limit(limit)
    )
    tasks = task_rows.all()
    lectures = lecture_rows.all()

    parts = ["**Available Resources:**"]
    if tasks:
        parts.append("\nTasks:")
        parts.extend(
            f"- [Task: {t.title}](#/tasks/{t.id}) - {t.subject}, {t.level}" for t in tasks
        )
    if lectures:
        parts.append("\nLectures:")
        parts.extend(
            f"- [Lecture: {lec.title}](#/lectures/{lec.id}) - {lec.subject}, {lec.level}"
            for lec in lectures
        )
    return "\n".join(parts) + "\n"


async def build_lecture_context(db: AsyncSession, lecture_id: int) -> str:
    """Content of the lecture the student is reading, truncated."""
    lecture = await db.get(Lecture, lecture_id)
    if lecture is None:
        return ""

    max_chars = settings.lecture_context_max_chars
    content = lecture.content_latex[:max_chars]
    if len(lecture.content_latex) > max_chars:
        content += "\n\n[... content truncated ...]"
    return f"**Current Lecture:** [Lecture: {lecture.title}](#/lectures/{lecture.id})\n{content}\n"


def build_task_context(task: Task) -> str:
    """Task statement plus the hidden grading reference."""
    parts = [
        "**Current Task:**",
        f"Title: {task.title}",
        f"Description:\n{task.description_latex}",
        "",
        "**Grading Reference (hidden from the student):**",
    ]
    if task.correct_answer:
        parts.append(f"Correct answer: {task.correct_answer}")
    if task.solution_latex:
        parts.append(f"Reference solution:\n{task.solution_latex}")
    parts.append(
        "Never reveal the correct answer or the reference solution to the student. "
        "Use them only to guide hints and to grade the final answer."
    )
    parts.append("")
    parts.append(GRADING_INSTRUCTIONS)
    return "\n".join(parts) + "\n"


async def build_system_context(
    db: AsyncSession,
    config: AIConfig,
    mode: ChatMode,
    context_type: str | None,
    context_id: int | None,
    user_id: int,
) -> str:
    """
    Build the full system prompt for one chat request.

    Rebuilt on every call: stats and the catalog change as the student
    progresses.
    """
    if mode is ChatMode.PROFESSOR:
        context_parts = [
            config.professor_prompt,
            await build_student_stats(db, user_id),
            await build_resource_catalog(db, settings.resource_catalog_limit),
        ]
        if context_type == ChatContextType.LECTURE.value and context_id is not None:
            lecture_block = await build_lecture_context(db, context_id)
            if lecture_block:
                context_parts.append(lecture_block)
        return "\n\n".join(context_parts)

    context_parts = [config.task_assistant_prompt]
    if context_id is not None and context_type in (None, "", ChatContextType.TASK.value):
        task = await db.get(Task, context_id)
        if task is not None:
            context_parts.append(build_task_context(task))
        else:
            logger.info("Task %s not found, task assistant runs without task context", context_id)
    return "\n\n".join(context_parts)
