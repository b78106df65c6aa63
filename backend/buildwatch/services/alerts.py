"""Service layer — alert reads and user-driven flag changes.

These operations only flip is_read / is_acknowledged, except for
:func:`resolve_alert`, which is the single place ``resolved_at`` is written.
The detection pipeline never resolves alerts on its own.
"""

from datetime import datetime, timezone
from uuid import UUID

from buildwatch.database import get_pool
from buildwatch.schemas.alerts import Alert, AlertFilters
from buildwatch.services.alert_store import ALERT_COLUMNS, row_to_alert

MAX_PAGE_SIZE = 200


def _where_clause(user_id: str, filters: AlertFilters) -> tuple[str, list]:
    """Build the WHERE clause and its positional args for a user's alerts."""
    conditions = ["user_id = $1::uuid"]
    args: list = [user_id]

    def add(sql: str, value) -> None:
        args.append(value)
        conditions.append(sql.format(n=len(args)))

    if filters.is_acknowledged is not None:
        add("is_acknowledged = ${n}", filters.is_acknowledged)
    if filters.is_read is not None:
        add("is_read = ${n}", filters.is_read)
    if filters.source is not None:
        add("source = ${n}", filters.source.value)
    if filters.alert_type is not None:
        add("alert_type = ${n}", filters.alert_type.value)
    if filters.severity is not None:
        add("severity = ${n}", filters.severity.value)
    if filters.created_from is not None:
        add("created_at >= ${n}", filters.created_from)
    if filters.created_to is not None:
        add("created_at <= ${n}", filters.created_to)

    return " AND ".join(conditions), args


async def list_alerts(
    user_id: str,
    filters: AlertFilters,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Alert], int]:
    """
    Page through a user's alerts.

    Ordering: unacknowledged first, then HIGH > MEDIUM > LOW, then newest.
    Returns (alerts, total matching).
    """
    pool = await get_pool()
    where, args = _where_clause(user_id, filters)
    n = len(args)

    rows = await pool.fetch(f"""
        SELECT {ALERT_COLUMNS}
        FROM alerts
        WHERE {where}
        ORDER BY
            is_acknowledged ASC,
            CASE severity
                WHEN 'HIGH' THEN 1
                WHEN 'MEDIUM' THEN 2
                WHEN 'LOW' THEN 3
                ELSE 4
            END,
            created_at DESC
        LIMIT ${n + 1} OFFSET ${n + 2}
    """, *args, min(limit, MAX_PAGE_SIZE), offset)

    total = await pool.fetchval(f"SELECT COUNT(*) FROM alerts WHERE {where}", *args)
    return [row_to_alert(r) for r in rows], int(total)


async def fetch_alert(alert_id: UUID) -> Alert | None:
    pool = await get_pool()
    row = await pool.fetchrow(f"SELECT {ALERT_COLUMNS} FROM alerts WHERE id = $1", alert_id)
    return row_to_alert(row) if row else None


async def update_alert_flags(
    alert_id: UUID,
    user_id: str,
    is_read: bool | None = None,
    is_acknowledged: bool | None = None,
) -> Alert:
    """Set read / acknowledged flags on one alert the caller already owns."""
    assignments = []
    args: list = [alert_id]

    if is_read is not None:
        args.append(is_read)
        assignments.append(f"is_read = ${len(args)}")

    if is_acknowledged is not None:
        args.append(is_acknowledged)
        assignments.append(f"is_acknowledged = ${len(args)}")
        if is_acknowledged:
            args.append(datetime.now(timezone.utc))
            assignments.append(f"acknowledged_at = ${len(args)}")
            args.append(user_id)
            assignments.append(f"acknowledged_by = ${len(args)}::uuid")
        else:
            assignments.append("acknowledged_at = NULL")
            assignments.append("acknowledged_by = NULL")

    if not assignments:
        raise ValueError("is_read or is_acknowledged is required")

    pool = await get_pool()
    row = await pool.fetchrow(f"""
        UPDATE alerts
        SET {", ".join(assignments)}, updated_at = now()
        WHERE id = $1
        RETURNING {ALERT_COLUMNS}
    """, *args)
    return row_to_alert(row)


async def mark_read(user_id: str, alert_ids: list[UUID]) -> int:
    """Mark alerts read. IDs belonging to other users are ignored."""
    pool = await get_pool()
    status = await pool.execute("""
        UPDATE alerts
        SET is_read = true, updated_at = now()
        WHERE id = ANY($1::uuid[]) AND user_id = $2::uuid
    """, alert_ids, user_id)
    return _affected(status)


async def acknowledge_many(user_id: str, alert_ids: list[UUID]) -> int:
    """Acknowledge alerts in bulk. IDs belonging to other users are ignored."""
    pool = await get_pool()
    status = await pool.execute("""
        UPDATE alerts
        SET is_acknowledged = true,
            acknowledged_at = now(),
            acknowledged_by = $2::uuid,
            updated_at = now()
        WHERE id = ANY($1::uuid[]) AND user_id = $2::uuid
    """, alert_ids, user_id)
    return _affected(status)


async def resolve_alert(alert_id: UUID) -> Alert:
    """Close an alert so the next violation for its key opens a new one."""
    pool = await get_pool()
    row = await pool.fetchrow(f"""
        UPDATE alerts
        SET resolved_at = COALESCE(resolved_at, now()), updated_at = now()
        WHERE id = $1
        RETURNING {ALERT_COLUMNS}
    """, alert_id)
    return row_to_alert(row)


def _affected(status: str) -> int:
    # asyncpg returns the command tag, e.g. "UPDATE 3"
    return int(status.split()[-1])
