"""Connections to the Supabase project.

Two clients share the same project:

* PostgREST (REST API, service_role key) for the small per-user
  ``user_settings`` rows.
* A raw asyncpg pool for the ``alerts`` and measurement tables, where the
  dedup path needs a real transaction and an advisory lock.
"""

import asyncpg
from postgrest import AsyncPostgrestClient

from buildwatch.config import get_settings

# ---------- Supabase PostgREST client ----------

_postgrest_client: AsyncPostgrestClient | None = None


def get_postgrest() -> AsyncPostgrestClient:
    """Get or create the PostgREST client bound to the service_role key."""
    global _postgrest_client
    if _postgrest_client is None:
        settings = get_settings()
        _postgrest_client = AsyncPostgrestClient(
            f"{settings.SUPABASE_URL}/rest/v1",
            headers={
                "apikey": settings.SUPABASE_SERVICE_KEY,
                "Authorization": f"Bearer {settings.SUPABASE_SERVICE_KEY}",
            },
        )
    return _postgrest_client


async def close_postgrest() -> None:
    global _postgrest_client
    if _postgrest_client is not None:
        await _postgrest_client.aclose()
        _postgrest_client = None


# ---------- Direct asyncpg connection pool ----------

_pool: asyncpg.Pool | None = None


def pg_dsn(url: str) -> str:
    """asyncpg only understands postgresql://, not the SQLAlchemy dialect form."""
    return url.replace("postgresql+asyncpg://", "postgresql://", 1)


async def get_pool() -> asyncpg.Pool:
    """Get or create the asyncpg connection pool."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = await asyncpg.create_pool(
            pg_dsn(settings.SUPABASE_DB_URL),
            min_size=1,
            max_size=5,
            command_timeout=10,
            # PgBouncer in transaction mode cannot hold prepared statements
            statement_cache_size=0,
        )
    return _pool


async def close_pool() -> None:
    """Close the asyncpg pool (call on app shutdown)."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
