"""
Schema bootstrap + smoke check against Supabase.

Creates the tables and indexes declared in ``buildwatch.models`` (if they do
not exist yet), then inserts a throwaway alert through the dedup store,
reads it back and deletes it.

Usage:
    cd backend
    python -m buildwatch.init_db
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex, CreateTable

from buildwatch.database import close_pool, get_pool
from buildwatch.models.alert import Base
from buildwatch.models import measurement, user_settings  # noqa: F401  (register tables)
from buildwatch.schemas.alerts import AlertKey, AlertSeverity, AlertSource, AlertType
from buildwatch.services.alert_store import PostgresAlertStore


def schema_statements() -> list[str]:
    """DDL for every mapped table, safe to run repeatedly."""
    dialect = postgresql.dialect()
    statements = []
    for table in Base.metadata.sorted_tables:
        statements.append(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)))
        for index in table.indexes:
            statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)))
    return statements


async def main():
    print("Connecting to Supabase via asyncpg pool...")
    pool = await get_pool()

    async with pool.acquire() as conn:
        for ddl in schema_statements():
            await conn.execute(ddl)
    print(f"Schema OK — {len(Base.metadata.sorted_tables)} tables")

    store = PostgresAlertStore(pool)
    key = AlertKey(
        user_id=str(uuid.uuid4()),
        alert_type=AlertType.TEMP_HIGH,
        source=AlertSource.SCADA,
        device_id=None,
        location="SMOKE_TEST",
    )
    now = datetime.now(timezone.utc)

    async with store.locked(key) as tx:
        alert = await tx.insert({
            "user_id": key.user_id,
            "alert_type": key.alert_type,
            "source": key.source,
            "location": key.location,
            "severity": AlertSeverity.LOW,
            "measured_value": 27.0,
            "threshold_value": 26.0,
            "measurement_time": now,
            "unit": "°C",
            "is_read": False,
            "is_acknowledged": False,
        })
        print(f"INSERT OK — id={alert.id}")

        found = await tx.find_open_alert(key, since=now - timedelta(minutes=1))
        print(f"SELECT OK — {found.alert_type.value} {found.location} {found.severity.value}")

    await pool.execute("DELETE FROM alerts WHERE id = $1", alert.id)
    print("DELETE OK — smoke-test alert removed")

    await close_pool()
    print("\nAll working! asyncpg <-> Supabase OK.")


if __name__ == "__main__":
    asyncio.run(main())
