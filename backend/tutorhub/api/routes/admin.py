"""Admin routes for the AI tutor settings."""

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from tutorhub.api.deps import AdminUser, DbSession
from tutorhub.config import sanitize_error
from tutorhub.schemas.settings import AppSettingsRead, AppSettingsUpdate
from tutorhub.services.settings_store import get_or_create_settings, update_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/settings", response_model=AppSettingsRead)
async def get_ai_settings(
    admin: AdminUser,
    db: DbSession,
) -> AppSettingsRead:
    """Get AI settings, creating the defaults on first access."""
    try:
        row = await get_or_create_settings(db)
    except SQLAlchemyError as e:
        logger.exception("Failed to load AI settings")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="failed to get settings"),
        ) from e
    return AppSettingsRead.model_validate(row)


@router.put("/settings", response_model=AppSettingsRead)
async def put_ai_settings(
    data: AppSettingsUpdate,
    admin: AdminUser,
    db: DbSession,
) -> AppSettingsRead:
    """
    Update AI settings.

    Only non-empty fields are applied; send the API key only to replace it.
    """
    try:
        row = await update_settings(db, data.model_dump())
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to update AI settings")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="update failed"),
        ) from e
    logger.info("AI settings changed by admin %s", admin.id)
    return AppSettingsRead.model_validate(row)
