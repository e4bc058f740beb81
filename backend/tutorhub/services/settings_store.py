"""AI settings singleton: persona prompts, OpenRouter key and model names."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from tutorhub.config import get_settings
from tutorhub.db.models import AppSettings

logger = logging.getLogger(__name__)
settings = get_settings()

SETTINGS_ROW_ID = 1

DEFAULT_SYSTEM_PROMPT = """You are an expert teacher specialized in mathematics, physics, and computer science. Your role is to help students understand concepts and solve problems.

Guidelines:
- Be encouraging and supportive
- Explain concepts clearly with examples
- If a student is stuck, provide hints rather than direct answers
- Use LaTeX notation for mathematical expressions (wrap in $ for inline or $$ for block)
- When discussing a specific task, reference the problem statement
- Break down complex problems into manageable steps

Remember: Your goal is to help students learn, not just give them answers."""

DEFAULT_PROFESSOR_PROMPT = """You are a knowledgeable professor helping students with their studies. You have access to:
- Student's performance statistics and progress
- The lectures and tasks available on the platform
- Student's learning history

Your capabilities:
- Reference specific tasks and lectures with links in format: [Task: Title](#/tasks/ID) or [Lecture: Title](#/lectures/ID)
- Provide personalized recommendations based on student performance
- Explain concepts from lectures and provide guidance
- Use LaTeX for math: inline $x^2$ or display $$E=mc^2$$

Be encouraging, insightful, and help students improve their weak areas."""

DEFAULT_TASK_ASSISTANT_PROMPT = """You are an AI tutor helping a student solve a specific problem. Your role:
- Guide students through problem-solving without giving direct answers
- Provide hints and ask leading questions
- Encourage critical thinking
- Use LaTeX for math: inline $x^2$ or display $$E=mc^2$$
- You can show diagrams using TikZ code wrapped in \\begin{tikzpicture}...\\end{tikzpicture}
- When the student says "Final answer: X", they submit it for evaluation

Be patient, supportive, and help them learn the methodology."""

# Fields an administrator may change through update_settings()
EDITABLE_FIELDS = (
    "openrouter_api_key",
    "system_prompt",
    "professor_prompt",
    "task_assistant_prompt",
    "primary_model",
    "fallback_model",
)


@dataclass(frozen=True)
class AIConfig:
    """
    Snapshot of the AI settings for a single request.

    Passed explicitly to the context assembler and the model gateway so
    neither reads the settings row on its own.
    """

    api_key: str
    professor_prompt: str
    task_assistant_prompt: str
    primary_model: str
    fallback_model: str

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_settings(cls, row: AppSettings) -> "AIConfig":
        return cls(
            api_key=row.openrouter_api_key or "",
            professor_prompt=row.professor_prompt or DEFAULT_PROFESSOR_PROMPT,
            task_assistant_prompt=row.task_assistant_prompt or DEFAULT_TASK_ASSISTANT_PROMPT,
            primary_model=row.primary_model or settings.default_primary_model,
            fallback_model=row.fallback_model or "",
        )


def _default_values() -> dict:
    return {
        "id": SETTINGS_ROW_ID,
        "openrouter_api_key": "",
        "system_prompt": DEFAULT_SYSTEM_PROMPT,
        "professor_prompt": DEFAULT_PROFESSOR_PROMPT,
        "task_assistant_prompt": DEFAULT_TASK_ASSISTANT_PROMPT,
        "primary_model": settings.default_primary_model,
        "fallback_model": settings.default_fallback_model,
        "updated_at": datetime.now(timezone.utc),
    }


async def _insert_defaults(db: AsyncSession) -> None:
    """Insert the default row unless another request already did."""
    dialect = db.get_bind().dialect.name
    insert = sqlite_insert if dialect == "sqlite" else pg_insert
    stmt = (
        insert(AppSettings)
        .values(**_default_values())
        .on_conflict_do_nothing(index_elements=[AppSettings.id])
    )
    await db.execute(stmt)


async def _fetch(db: AsyncSession) -> AppSettings | None:
    result = await db.execute(select(AppSettings).where(AppSettings.id == SETTINGS_ROW_ID))
    return result.scalar_one_or_none()


async def get_or_create_settings(db: AsyncSession) -> AppSettings:
    """
    Return the settings row, creating it with defaults on first access.

    Rows written before the per-mode prompts existed get the default
    prompts filled in on the returned object.
    """
    row = await _fetch(db)
    if row is None:
        logger.info("No AI settings found, creating defaults")
        await _insert_defaults(db)
        await db.commit()
        row = await _fetch(db)

    if not row.professor_prompt:
        row.professor_prompt = DEFAULT_PROFESSOR_PROMPT
    if not row.task_assistant_prompt:
        row.task_assistant_prompt = DEFAULT_TASK_ASSISTANT_PROMPT
    return row


async def update_settings(db: AsyncSession, changes: dict[str, str | None]) -> AppSettings:
    """
    Apply an admin update.

    Only non-empty values overwrite stored ones, so a field (including the
    API key) can be replaced but never cleared here.
    """
    row = await get_or_create_settings(db)
    for field in EDITABLE_FIELDS:
        value = changes.get(field)
        if value:
            setattr(row, field, value)
    row.updated_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(row)
    logger.info("AI settings updated (fields: %s)", ", ".join(k for k in EDITABLE_FIELDS if changes.get(k)))
    return row
