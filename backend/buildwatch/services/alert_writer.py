"""Alert deduplication: merge a violation into an open alert or insert a new one.

A sensor stuck out of range should keep refreshing one alert instead of
raising one per reading. Within ``DEDUP_WINDOW`` of an open alert's
``created_at`` a repeat violation with the same key updates that alert in
place; after the window it opens a fresh alert.
"""

import logging
from datetime import datetime, timedelta, timezone

from buildwatch.schemas.alerts import Alert, AlertKey, EntityContext, Violation
from buildwatch.services.severity import classify_severity

logger = logging.getLogger(__name__)

DEDUP_WINDOW = timedelta(minutes=30)


def alert_key(violation: Violation, entity: EntityContext, user_id: str) -> AlertKey:
    return AlertKey(
        user_id=user_id,
        alert_type=violation.alert_type,
        source=violation.source,
        device_id=entity.device_id or None,
        location=entity.location or None,
    )


async def upsert_alert(
    violation: Violation,
    entity: EntityContext,
    user_id: str,
    store,
    window: timedelta = DEDUP_WINDOW,
    now: datetime | None = None,
) -> Alert | None:
    """
    Persist ``violation`` for ``user_id``, merging into a recent open alert.

    ``store`` must provide ``locked(key)`` yielding an object with
    ``find_open_alert``, ``insert`` and ``update``
    (see :class:`buildwatch.services.alert_store.PostgresAlertStore`).

    Never raises: a failed read or write is logged and None is returned so
    the caller can carry on with its other violations.
    """
    now = now or datetime.now(timezone.utc)
    key = alert_key(violation, entity, user_id)
    severity = classify_severity(violation.measured_value, violation.threshold_value)

    try:
        async with store.locked(key) as tx:
            existing = await tx.find_open_alert(key, since=now - window)

            if existing is not None:
                logger.info(
                    "Refreshing alert %s (%s %s %s)",
                    existing.id, key.alert_type.value, key.source.value,
                    key.device_id or key.location,
                )
                return await tx.update(existing.id, {
                    "measured_value": violation.measured_value,
                    "threshold_value": violation.threshold_value,
                    "measurement_time": violation.measurement_time,
                    "severity": severity,
                    "updated_at": now,
                })

            logger.info(
                "Creating alert %s %s for %s (user %s, severity %s)",
                key.alert_type.value, key.source.value,
                key.device_id or key.location, user_id, severity.value,
            )
            return await tx.insert({
                "user_id": user_id,
                "alert_type": violation.alert_type,
                "source": violation.source,
                "device_id": key.device_id,
                "location": key.location,
                "apartment_name": entity.apartment_name,
                "severity": severity,
                "measured_value": violation.measured_value,
                "threshold_value": violation.threshold_value,
                "measurement_time": violation.measurement_time,
                "unit": violation.unit,
                "is_read": False,
                "is_acknowledged": False,
            })
    except Exception:
        logger.exception(
            "Failed to write %s alert for user %s", violation.alert_type.value, user_id
        )
        return None
