"""Threshold evaluation: compares a measurement against a user's ranges.

Every source runs the same min/max check; sources differ only in which
measurement fields they monitor. The per-source metric lists live in
``SOURCE_METRICS`` and the check itself in :func:`evaluate_bounds`.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel

from buildwatch.schemas.alerts import AlertSource, AlertType, EntityContext, Violation
from buildwatch.schemas.settings import ThresholdProfile

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    HIGH = "HIGH"
    LOW = "LOW"


class MetricSpec(NamedTuple):
    field: str        # attribute on the measurement
    metric: str       # key into the threshold profile
    alert_prefix: str  # TEMP / HUMIDITY / CO2 / PRESSURE
    unit: str

    def alert_type(self, direction: Direction) -> AlertType:
        return AlertType(f"{self.alert_prefix}_{direction.value}")


SOURCE_METRICS: dict[AlertSource, tuple[MetricSpec, ...]] = {
    AlertSource.THERMIONIX: (
        MetricSpec("temperature", "temperature", "TEMP", "°C"),
        MetricSpec("relative_humidity", "humidity", "HUMIDITY", "%"),
        MetricSpec("co2", "co2", "CO2", "ppm"),
    ),
    AlertSource.SCADA: (
        MetricSpec("t_amb", "temperature", "TEMP", "°C"),
        MetricSpec("e", "pressure", "PRESSURE", "bar"),
    ),
}


def evaluate_bounds(
    value: float | None,
    min_value: float,
    max_value: float,
) -> tuple[Direction, float] | None:
    """
    Check one value against a min/max pair.

    Returns (direction, threshold that was crossed) or None. Values equal to
    a bound are in range. High and low are exclusive since min < max.
    """
    if value is None:
        return None
    if value > max_value:
        return Direction.HIGH, max_value
    if value < min_value:
        return Direction.LOW, min_value
    return None


def evaluate(
    measurement: BaseModel,
    entity: EntityContext,
    profile: ThresholdProfile,
) -> list[Violation]:
    """Return every violation in ``measurement`` for the entity's source."""
    metrics = SOURCE_METRICS.get(entity.source, ())
    measured_at: datetime = measurement.datetime

    violations = []
    for entry in metrics:
        bounds = profile.bounds(entry.metric)
        if not bounds.usable:
            logger.warning(
                "Skipping %s check for user %s: malformed range %s",
                entry.metric, profile.user_id, bounds,
            )
            continue

        hit = evaluate_bounds(getattr(measurement, entry.field, None), bounds.min, bounds.max)
        if hit is None:
            continue

        direction, threshold = hit
        violations.append(Violation(
            alert_type=entry.alert_type(direction),
            source=entity.source,
            measured_value=getattr(measurement, entry.field),
            threshold_value=threshold,
            measurement_time=measured_at,
            unit=entry.unit,
        ))

    return violations
