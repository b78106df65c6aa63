"""Threshold profiles stored in ``user_settings`` (Supabase PostgREST)."""

import logging

from postgrest import AsyncPostgrestClient

from buildwatch.schemas.settings import ThresholdProfile, ThresholdSettingsUpdate

logger = logging.getLogger(__name__)

TABLE = "user_settings"


class ThresholdProfileStore:
    def __init__(self, client: AsyncPostgrestClient):
        self._client = client

    async def get(self, user_id: str) -> ThresholdProfile | None:
        """The user's profile, or None if they never saved settings."""
        response = await (
            self._client.from_(TABLE)
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return ThresholdProfile.model_validate(response.data[0])

    async def get_or_create(self, user_id: str) -> ThresholdProfile:
        """Settings for ``user_id``, inserting the defaults on first access."""
        profile = await self.get(user_id)
        if profile is not None:
            return profile

        logger.info("No settings for user %s, creating defaults", user_id)
        defaults = ThresholdProfile(user_id=user_id)
        response = await (
            self._client.from_(TABLE)
            .upsert(defaults.model_dump(), on_conflict="user_id")
            .execute()
        )
        return ThresholdProfile.model_validate(response.data[0])

    async def save(self, user_id: str, update: ThresholdSettingsUpdate) -> ThresholdProfile:
        row = {"user_id": user_id, **update.model_dump()}
        response = await (
            self._client.from_(TABLE)
            .upsert(row, on_conflict="user_id")
            .execute()
        )
        logger.info("Saved threshold settings for user %s", user_id)
        return ThresholdProfile.model_validate(response.data[0])
