"""Alert persistence on the ``alerts`` table (asyncpg).

All dedup reads and writes for one alert key happen inside
:meth:`PostgresAlertStore.locked`, which opens a transaction and takes a
transaction-scoped advisory lock on the key. Two workers racing on the same
key therefore see each other's insert instead of both inserting.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator
from uuid import UUID

import asyncpg

from buildwatch.schemas.alerts import Alert, AlertKey

ALERT_COLUMNS = """
    id, user_id::text AS user_id, alert_type, source, device_id, location,
    apartment_name, severity, measured_value, threshold_value,
    measurement_time, unit, is_read, is_acknowledged, acknowledged_at,
    acknowledged_by::text AS acknowledged_by, resolved_at, created_at, updated_at
"""

INSERTABLE = (
    "user_id", "alert_type", "source", "device_id", "location", "apartment_name",
    "severity", "measured_value", "threshold_value", "measurement_time", "unit",
    "is_read", "is_acknowledged",
)

UPDATABLE = (
    "measured_value", "threshold_value", "measurement_time", "severity", "updated_at",
)


def row_to_alert(row: asyncpg.Record) -> Alert:
    return Alert.model_validate(dict(row))


def _db_value(value):
    # Enums are stored as their text value
    return getattr(value, "value", value)


class AlertTransaction:
    """Dedup operations bound to one connection inside an open transaction."""

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def find_open_alert(self, key: AlertKey, since: datetime) -> Alert | None:
        """Newest unresolved alert for ``key`` created at or after ``since``."""
        row = await self._conn.fetchrow(f"""
            SELECT {ALERT_COLUMNS}
            FROM alerts
            WHERE user_id = $1::uuid
              AND alert_type = $2
              AND source = $3
              AND device_id IS NOT DISTINCT FROM $4
              AND location IS NOT DISTINCT FROM $5
              AND resolved_at IS NULL
              AND created_at >= $6
            ORDER BY created_at DESC
            LIMIT 1
        """, key.user_id, key.alert_type.value, key.source.value,
            key.device_id, key.location, since)
        return row_to_alert(row) if row else None

    async def insert(self, fields: dict) -> Alert:
        columns = [c for c in INSERTABLE if c in fields]
        placeholders = ", ".join(
            f"${i}::uuid" if c == "user_id" else f"${i}"
            for i, c in enumerate(columns, start=1)
        )
        row = await self._conn.fetchrow(f"""
            INSERT INTO alerts ({", ".join(columns)})
            VALUES ({placeholders})
            RETURNING {ALERT_COLUMNS}
        """, *[_db_value(fields[c]) for c in columns])
        return row_to_alert(row)

    async def update(self, alert_id: UUID, fields: dict) -> Alert:
        columns = [c for c in UPDATABLE if c in fields]
        if not columns:
            raise ValueError("no updatable alert fields given")
        assignments = ", ".join(f"{c} = ${i}" for i, c in enumerate(columns, start=2))
        row = await self._conn.fetchrow(f"""
            UPDATE alerts
            SET {assignments}
            WHERE id = $1
            RETURNING {ALERT_COLUMNS}
        """, alert_id, *[_db_value(fields[c]) for c in columns])
        if row is None:
            raise LookupError(f"alert {alert_id} disappeared during update")
        return row_to_alert(row)


class PostgresAlertStore:
    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    @asynccontextmanager
    async def locked(self, key: AlertKey) -> AsyncIterator[AlertTransaction]:
        """Serialize find-then-write for one alert key across all workers."""
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    "SELECT pg_advisory_xact_lock(hashtextextended($1, 0))",
                    key.lock_name(),
                )
                yield AlertTransaction(conn)
