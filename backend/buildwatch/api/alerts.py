"""API routes for a user's alerts."""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from buildwatch.auth import get_current_user_id
from buildwatch.config import get_settings
from buildwatch.dependencies import get_broadcaster
from buildwatch.events import AlertEventBroadcaster
from buildwatch.schemas.alerts import (
    AcknowledgeResponse,
    Alert,
    AlertFilters,
    AlertFlagsUpdate,
    AlertIdsRequest,
    AlertListResponse,
    AlertSeverity,
    AlertSource,
    AlertType,
    MarkReadResponse,
)
from buildwatch.services import alerts as alert_service
from buildwatch.services.notifier import alert_channel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/alerts", tags=["Alerts"])


async def _owned_alert(alert_id: UUID, user_id: str) -> Alert:
    alert = await alert_service.fetch_alert(alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    if alert.user_id != user_id:
        raise HTTPException(
            status_code=403,
            detail="Forbidden - You do not have permission to update this alert",
        )
    return alert


def _require_ids(body: AlertIdsRequest) -> None:
    if not body.alert_ids:
        raise HTTPException(status_code=400, detail="alert_ids must be a non-empty array")


# ── GET /alerts ─────────────────────────────────────


@router.get("", response_model=AlertListResponse, summary="List the caller's alerts")
async def list_alerts(
    is_acknowledged: bool | None = None,
    is_read: bool | None = None,
    source: AlertSource | None = None,
    alert_type: AlertType | None = None,
    severity: AlertSeverity | None = None,
    created_from: datetime | None = Query(default=None, alias="from"),
    created_to: datetime | None = Query(default=None, alias="to"),
    limit: int = Query(default=50, ge=1, description="Page size, capped at 200"),
    offset: int = Query(default=0, ge=0),
    user_id: str = Depends(get_current_user_id),
):
    """
    Unacknowledged alerts come first, then by severity (HIGH first), then
    newest first.
    """
    filters = AlertFilters(
        is_acknowledged=is_acknowledged,
        is_read=is_read,
        source=source,
        alert_type=alert_type,
        severity=severity,
        created_from=created_from,
        created_to=created_to,
    )
    limit = min(limit, alert_service.MAX_PAGE_SIZE)
    try:
        alerts, total = await alert_service.list_alerts(user_id, filters, limit, offset)
    except Exception:
        logger.exception("Alert listing failed for user %s", user_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    return AlertListResponse(
        alerts=alerts,
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(alerts) < total,
    )


# ── GET /alerts/poll ────────────────────────────────


@router.get(
    "/poll",
    response_model=Alert,
    responses={204: {"description": "No alert before the timeout"}},
    summary="Long-poll for the next alert",
)
async def poll_alerts(
    user_id: str = Depends(get_current_user_id),
    broadcaster: AlertEventBroadcaster = Depends(get_broadcaster),
):
    """Block until an alert is created/updated for the caller, or time out."""
    event = await broadcaster.wait_for_event(
        alert_channel(user_id), timeout=get_settings().POLL_TIMEOUT_SECONDS
    )
    if event is None:
        return Response(status_code=204)
    _, payload = event
    return payload


# ── PATCH /alerts/{alert_id} ────────────────────────


@router.patch("/{alert_id}", response_model=Alert, summary="Mark one alert read / acknowledged")
async def update_alert(
    alert_id: UUID,
    body: AlertFlagsUpdate,
    user_id: str = Depends(get_current_user_id),
):
    if body.is_read is None and body.is_acknowledged is None:
        raise HTTPException(
            status_code=400, detail="Must provide either is_read or is_acknowledged"
        )
    try:
        await _owned_alert(alert_id, user_id)
        return await alert_service.update_alert_flags(
            alert_id, user_id, is_read=body.is_read, is_acknowledged=body.is_acknowledged
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Alert update failed for %s", alert_id)
        raise HTTPException(status_code=500, detail="Internal server error")


# ── POST /alerts/{alert_id}/resolve ─────────────────


@router.post("/{alert_id}/resolve", response_model=Alert, summary="Resolve one alert")
async def resolve_alert(alert_id: UUID, user_id: str = Depends(get_current_user_id)):
    """Close the alert; the next violation for its sensor opens a new one."""
    try:
        await _owned_alert(alert_id, user_id)
        return await alert_service.resolve_alert(alert_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Alert resolve failed for %s", alert_id)
        raise HTTPException(status_code=500, detail="Internal server error")


# ── POST /alerts/mark-read ──────────────────────────


@router.post("/mark-read", response_model=MarkReadResponse, summary="Mark alerts read")
async def mark_alerts_read(body: AlertIdsRequest, user_id: str = Depends(get_current_user_id)):
    _require_ids(body)
    try:
        count = await alert_service.mark_read(user_id, body.alert_ids)
    except Exception:
        logger.exception("Mark-read failed for user %s", user_id)
        raise HTTPException(status_code=500, detail="Internal server error")
    logger.info("Marked %d/%d alert(s) read for user %s", count, len(body.alert_ids), user_id)
    return MarkReadResponse(updated_count=count)


# ── POST /alerts/acknowledge-multiple ───────────────


@router.post(
    "/acknowledge-multiple",
    response_model=AcknowledgeResponse,
    summary="Acknowledge alerts in bulk",
)
async def acknowledge_alerts(body: AlertIdsRequest, user_id: str = Depends(get_current_user_id)):
    _require_ids(body)
    try:
        count = await alert_service.acknowledge_many(user_id, body.alert_ids)
    except Exception:
        logger.exception("Bulk acknowledge failed for user %s", user_id)
        raise HTTPException(status_code=500, detail="Internal server error")
    logger.info("Acknowledged %d/%d alert(s) for user %s", count, len(body.alert_ids), user_id)
    return AcknowledgeResponse(acknowledged_count=count)
