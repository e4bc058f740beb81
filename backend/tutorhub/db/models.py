"""
SQLAlchemy 2.0 Models for Tutorhub.

Uses modern declarative syntax with Mapped[] type annotations.
Only the tables the tutoring chat reads or writes are modelled here; the
catalog (tasks, lectures) and user accounts are managed by the admin tools.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tutorhub.db.base import Base


# =============================================================================
# ENUMS
# =============================================================================


class UserRole(str, PyEnum):
    """Authorization role of a user."""

    USER = "user"
    ADMIN = "admin"


class AttemptStatus(str, PyEnum):
    """Grading status of a solution attempt."""

    PENDING = "pending"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class ChatContextType(str, PyEnum):
    """What a chat conversation is about."""

    GENERAL = "general"
    LECTURE = "lecture"
    TASK = "task"
    TOPIC = "topic"


# =============================================================================
# MODELS
# =============================================================================


class User(Base):
    """Student or administrator account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.USER.value, server_default=UserRole.USER.value
    )
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    solution_attempts: Mapped[list["SolutionAttempt"]] = relationship(
        "SolutionAttempt", back_populates="user", cascade="all, delete-orphan"
    )
    chat_messages: Mapped[list["ChatMessage"]] = relationship(
        "ChatMessage", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class Task(Base):
    """
    Practice problem.

    correct_answer and solution_latex are never sent to students; the task
    assistant receives them only to grade final answers.
    """

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description_latex: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    level: Mapped[str] = mapped_column(String(50), nullable=False, default="basic")
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="practice")
    correct_answer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    solution_latex: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hint_latex: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=10, server_default="10")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", server_default="active"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    solution_attempts: Mapped[list["SolutionAttempt"]] = relationship(
        "SolutionAttempt", back_populates="task", cascade="all, delete-orphan"
    )


class Lecture(Base):
    """Lecture material (LaTeX body)."""

    __tablename__ = "lectures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    content_latex: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    level: Mapped[str] = mapped_column(
        String(50), nullable=False, default="basic", server_default="basic"
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", server_default="active"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class SolutionAttempt(Base):
    """A submitted answer to a task and its grading result."""

    __tablename__ = "solution_attempts"
    __table_args__ = (
        Index("idx_solution_attempts_user_status", "user_id", "status"),
        Index("idx_solution_attempts_task_id", "task_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    solution_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AttemptStatus.PENDING.value,
        server_default=AttemptStatus.PENDING.value,
    )
    points_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    ai_feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")  # seconds
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="solution_attempts")
    task: Mapped["Task"] = relationship("Task", back_populates="solution_attempts")


class ChatMessage(Base):
    """
    One exchange with the AI tutor: the student's text and the reply.

    Append-only. context_type/context_id partition the history, e.g.
    ("task", 42) is the assistant conversation for task 42.
    """

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index(
            "idx_chat_messages_user_context",
            "user_id", "context_type", "context_id", "timestamp",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    context_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ChatContextType.GENERAL.value,
        server_default=ChatContextType.GENERAL.value,
    )
    context_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    user_message: Mapped[str] = mapped_column(Text, nullable=False)
    ai_reply: Mapped[str] = mapped_column(Text, nullable=False, default="")
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="chat_messages")


class AppSettings(Base):
    """
    Singleton row holding the AI configuration.

    The id is pinned to 1 so concurrent first-time creation collapses into
    a single row (see services.settings_store).
    """

    __tablename__ = "app_settings"
    __table_args__ = (CheckConstraint("id = 1", name="app_settings_singleton"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    openrouter_api_key: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    system_prompt: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")  # Legacy
    professor_prompt: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    task_assistant_prompt: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    primary_model: Mapped[str] = mapped_column(String(255), nullable=False)
    fallback_model: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
