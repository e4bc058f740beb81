"""Initial schema for the AI tutor.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

This migration creates:
- Tables: users, tasks, lectures, solution_attempts, chat_messages, app_settings
- Indexes: attempt lookups by user/status, chat history by user/context/time
- app_settings is a singleton (id pinned to 1)
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # USERS TABLE
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), server_default="user", nullable=False),
        sa.Column("points", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # ==========================================================================
    # TASKS TABLE
    # ==========================================================================
    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description_latex", sa.Text(), nullable=False),
        sa.Column("subject", sa.String(100), nullable=False),
        sa.Column("level", sa.String(50), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("correct_answer", sa.Text(), nullable=True),
        sa.Column("solution_latex", sa.Text(), nullable=True),
        sa.Column("hint_latex", sa.Text(), nullable=True),
        sa.Column("points", sa.Integer(), server_default="10", nullable=False),
        sa.Column("status", sa.String(20), server_default="active", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tasks_subject", "tasks", ["subject"])

    # ==========================================================================
    # LECTURES TABLE
    # ==========================================================================
    op.create_table(
        "lectures",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(100), nullable=False),
        sa.Column("content_latex", sa.Text(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("level", sa.String(50), server_default="basic", nullable=False),
        sa.Column("status", sa.String(20), server_default="active", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_lectures_subject", "lectures", ["subject"])

    # ==========================================================================
    # SOLUTION_ATTEMPTS TABLE
    # ==========================================================================
    op.create_table(
        "solution_attempts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.Column("solution_text", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), server_default="pending", nullable=False),
        sa.Column("points_awarded", sa.Integer(), server_default="0", nullable=False),
        sa.Column("ai_feedback", sa.Text(), nullable=True),
        sa.Column("time_spent", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_solution_attempts_user_status", "solution_attempts", ["user_id", "status"])
    op.create_index("idx_solution_attempts_task_id", "solution_attempts", ["task_id"])

    # ==========================================================================
    # CHAT_MESSAGES TABLE
    # ==========================================================================
    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("context_type", sa.String(20), server_default="general", nullable=False),
        sa.Column("context_id", sa.Integer(), nullable=True),
        sa.Column("user_message", sa.Text(), nullable=False),
        sa.Column("ai_reply", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "idx_chat_messages_user_context",
        "chat_messages",
        ["user_id", "context_type", "context_id", "timestamp"],
    )

    # ==========================================================================
    # APP_SETTINGS TABLE (singleton)
    # ==========================================================================
    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("openrouter_api_key", sa.Text(), server_default="", nullable=False),
        sa.Column("system_prompt", sa.Text(), server_default="", nullable=False),
        sa.Column("professor_prompt", sa.Text(), server_default="", nullable=False),
        sa.Column("task_assistant_prompt", sa.Text(), server_default="", nullable=False),
        sa.Column("primary_model", sa.String(255), nullable=False),
        sa.Column("fallback_model", sa.String(255), server_default="", nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("id = 1", name="app_settings_singleton"),
    )


def downgrade() -> None:
    op.drop_table("app_settings")
    op.drop_index("idx_chat_messages_user_context", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("idx_solution_attempts_task_id", table_name="solution_attempts")
    op.drop_index("idx_solution_attempts_user_status", table_name="solution_attempts")
    op.drop_table("solution_attempts")
    op.drop_index("ix_lectures_subject", table_name="lectures")
    op.drop_table("lectures")
    op.drop_index("ix_tasks_subject", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
