"""Schemas for the admin AI settings endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from tutorhub.schemas.base import BaseSchema


def mask_secret(value: str) -> str:
    """Keep only the last four characters of a secret visible."""
    if not value:
        return ""
    if len(value) <= 8:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


class AppSettingsRead(BaseSchema):
    """AI settings as shown to administrators. The API key is masked."""

    openrouter_api_key: str = Field(exclude=True)
    system_prompt: str
    professor_prompt: str
    task_assistant_prompt: str
    primary_model: str
    fallback_model: str
    updated_at: datetime

    @computed_field
    @property
    def openrouter_api_key_masked(self) -> str:
        return mask_secret(self.openrouter_api_key)

    @computed_field
    @property
    def is_configured(self) -> bool:
        return bool(self.openrouter_api_key)


class AppSettingsUpdate(BaseModel):
    """
    Partial settings update.

    Empty or missing fields are left unchanged, so the API key can be
    replaced but not cleared.
    """

    openrouter_api_key: str = ""
    system_prompt: str = ""
    professor_prompt: str = ""
    task_assistant_prompt: str = ""
    primary_model: str = Field("", max_length=255)
    fallback_model: str = Field("", max_length=255)
