"""API routes for the user's threshold settings."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from buildwatch.auth import get_current_user_id
from buildwatch.dependencies import get_profile_store
from buildwatch.schemas.settings import ThresholdProfile, ThresholdSettingsUpdate
from buildwatch.services.settings_store import ThresholdProfileStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user/settings", tags=["Settings"])


@router.get("", response_model=ThresholdProfile, summary="Current threshold settings")
async def get_user_settings(
    user_id: str = Depends(get_current_user_id),
    profiles: ThresholdProfileStore = Depends(get_profile_store),
):
    """Return the caller's settings, creating the defaults on first access."""
    try:
        return await profiles.get_or_create(user_id)
    except Exception:
        logger.exception("Settings fetch failed for user %s", user_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("", response_model=ThresholdProfile, summary="Update threshold settings")
async def put_user_settings(
    body: ThresholdSettingsUpdate,
    user_id: str = Depends(get_current_user_id),
    profiles: ThresholdProfileStore = Depends(get_profile_store),
):
    """Replace the caller's ranges. Every min must be below its max (422 otherwise)."""
    try:
        return await profiles.save(user_id, body)
    except Exception:
        logger.exception("Settings update failed for user %s", user_id)
        raise HTTPException(status_code=500, detail="Internal server error")
