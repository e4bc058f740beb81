"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "development")

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tutorhub.config import get_settings
from tutorhub.db.base import Base
from tutorhub.db.models import AppSettings, Lecture, Task, User, UserRole
from tutorhub.db.session import get_db
from tutorhub.main import app
from tutorhub.services.chat_service import ChatService, get_chat_service
from tutorhub.services.settings_store import (
    DEFAULT_PROFESSOR_PROMPT,
    DEFAULT_TASK_ASSISTANT_PROMPT,
)


def create_access_token(user_id: int, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Sign a token the way the accounts service does."""
    settings = get_settings()
    claims = {"sub": str(user_id), "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


class ScriptedGateway:
    """Stands in for ModelGateway: returns queued replies and records calls."""

    def __init__(self, *replies: str | Exception):
        self.replies = list(replies)
        self.calls: list[list[dict]] = []

    async def chat(self, messages: list[dict]) -> str:
        self.calls.append(messages)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
async def engine():
    """In-memory SQLite shared across connections."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def chat_service(gateway: ScriptedGateway) -> ChatService:
    return ChatService(gateway_factory=lambda config: gateway)


@pytest.fixture
async def client(session_factory, chat_service) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def student(db: AsyncSession) -> User:
    user = User(email="ada@example.com", name="Ada", role=UserRole.USER.value, points=0)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def admin_user(db: AsyncSession) -> User:
    user = User(email="admin@example.com", name="Admin", role=UserRole.ADMIN.value, points=0)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
def auth_headers(student: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(student.id)}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(admin_user.id)}"}


@pytest.fixture
def expired_headers(student: User) -> dict[str, str]:
    token = create_access_token(student.id, expires_in=timedelta(seconds=-1))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def ai_settings(db: AsyncSession) -> AppSettings:
    """A configured settings row."""
    row = AppSettings(
        id=1,
        openrouter_api_key="sk-or-test-1234567890",
        system_prompt="legacy",
        professor_prompt=DEFAULT_PROFESSOR_PROMPT,
        task_assistant_prompt=DEFAULT_TASK_ASSISTANT_PROMPT,
        primary_model="primary/model",
        fallback_model="fallback/model",
    )
    db.add(row)
    await db.commit()
    return row


@pytest.fixture
async def task(db: AsyncSession) -> Task:
    task = Task(
        title="Free fall",
        description_latex="A stone falls for $t = 3$ s. Find the distance.",
        subject="mechanics",
        level="basic",
        type="practice",
        correct_answer="44.1 m",
        solution_latex="$h = g t^2 / 2 = 44.1$ m",
        points=10,
    )
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task


@pytest.fixture
async def lecture(db: AsyncSession) -> Lecture:
    lecture = Lecture(
        title="Kinematics",
        subject="mechanics",
        content_latex="Velocity is the derivative of position: $v = dx/dt$.",
        level="basic",
    )
    db.add(lecture)
    await db.commit()
    await db.refresh(lecture)
    return lecture
