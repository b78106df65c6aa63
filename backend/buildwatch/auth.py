"""Request authentication against Supabase Auth."""

import logging

import httpx
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from buildwatch.config import get_settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """
    Resolve the caller's user id from their Supabase access token.

    The token is checked by Supabase itself (GET /auth/v1/user) rather than
    decoded locally, so revoked sessions are rejected too.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized - Please log in")

    settings = get_settings()
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            r = await client.get(
                f"{settings.SUPABASE_URL}/auth/v1/user",
                headers={
                    "apikey": settings.SUPABASE_SERVICE_KEY,
                    "Authorization": f"Bearer {credentials.credentials}",
                },
            )
    except httpx.HTTPError as exc:
        logger.warning("Supabase auth lookup failed: %s", exc)
        raise HTTPException(status_code=503, detail="Authentication service unavailable")

    if r.status_code != 200:
        raise HTTPException(status_code=401, detail="Unauthorized - Please log in")

    user_id = r.json().get("id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized - Please log in")
    return user_id
