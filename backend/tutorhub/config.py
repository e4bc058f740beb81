"""Tutorhub settings, read from the environment (and `.env`) via pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

_POSTGRES_SCHEMES = ("postgres://", "postgresql://", "postgresql+asyncpg://", "postgresql+psycopg2://")


def _with_driver(url: str, driver: str) -> str:
    """Rewrite any Postgres URL to use `driver`; other URLs pass through."""
    for scheme in _POSTGRES_SCHEMES:
        if url.startswith(scheme):
            return f"{driver}://{url[len(scheme):]}"
    return url


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Tutorhub"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    api_prefix: str = "/api/v1"

    # Database: a full URL (DATABASE_URL_OVERRIDE) wins over the parts
    database_url_override: str | None = None
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "tutorhub"
    postgres_password: str = ""
    postgres_db: str = "tutorhub"

    def _base_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @computed_field
    @property
    def database_url(self) -> str:
        """Async URL for the application engine."""
        url = _with_driver(self._base_url(), "postgresql+asyncpg")
        if url.startswith("postgresql+asyncpg://"):
            # asyncpg rejects libpq query options such as sslmode
            url = url.split("?", 1)[0]
        return url

    @computed_field
    @property
    def database_url_sync(self) -> str:
        """Sync URL for Alembic."""
        return _with_driver(self._base_url(), "postgresql")

    # Auth: tokens come from the accounts service; only verified here
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"

    cors_origins: list[str] = ["http://localhost:3000"]

    # OpenRouter chat completions
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_referer: str = "https://coolphy.com"
    openrouter_title: str = "CoolPhy"
    llm_timeout_seconds: float = 60.0

    # Written into the settings row when it is first created
    default_primary_model: str = "anthropic/claude-3.5-sonnet"
    default_fallback_model: str = "google/gemini-2.0-flash-exp:free"

    # Prompt context
    chat_history_window: int = 10
    resource_catalog_limit: int = 50
    lecture_context_max_chars: int = 6000

    # Listing sizes
    chat_history_page_size: int = 50
    leaderboard_size: int = 100


@lru_cache
def get_settings() -> Settings:
    return Settings()


def sanitize_error(error: Exception, *, generic_message: str = "An internal error occurred.") -> str:
    """Full error text in development, `generic_message` everywhere else."""
    if get_settings().environment == "development":
        return str(error)
    return generic_message
