"""Pydantic schemas for alerts: enums, detection events and API payloads."""

from datetime import datetime
from enum import Enum
from typing import NamedTuple
from uuid import UUID

from pydantic import BaseModel, Field


# ── Enums ───────────────────────────────────────────


class AlertType(str, Enum):
    TEMP_HIGH = "TEMP_HIGH"
    TEMP_LOW = "TEMP_LOW"
    HUMIDITY_HIGH = "HUMIDITY_HIGH"
    HUMIDITY_LOW = "HUMIDITY_LOW"
    CO2_HIGH = "CO2_HIGH"
    CO2_LOW = "CO2_LOW"
    PRESSURE_HIGH = "PRESSURE_HIGH"
    PRESSURE_LOW = "PRESSURE_LOW"


class AlertSource(str, Enum):
    THERMIONIX = "THERMIONIX"
    SCADA = "SCADA"
    WEATHERLINK = "WEATHERLINK"


class AlertSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# ── Detection ───────────────────────────────────────


class EntityContext(BaseModel):
    """Which sensor produced a measurement.

    Point sensors carry a ``device_id``; aggregated SCADA sensors carry a
    ``location`` instead.
    """
    source: AlertSource
    device_id: str | None = None
    location: str | None = None
    apartment_name: str | None = None


class Violation(BaseModel):
    """A single out-of-range reading, not yet persisted."""
    alert_type: AlertType
    source: AlertSource
    measured_value: float
    threshold_value: float
    measurement_time: datetime
    unit: str


class AlertKey(NamedTuple):
    """Dedup identity of an alert."""
    user_id: str
    alert_type: AlertType
    source: AlertSource
    device_id: str | None
    location: str | None

    def lock_name(self) -> str:
        return ":".join([
            self.user_id,
            self.alert_type.value,
            self.source.value,
            self.device_id or "",
            self.location or "",
        ])


# ── Records ─────────────────────────────────────────


class Alert(BaseModel):
    """A persisted alert row."""
    id: UUID
    user_id: str
    alert_type: AlertType
    source: AlertSource
    device_id: str | None = None
    location: str | None = None
    apartment_name: str | None = None
    severity: AlertSeverity
    measured_value: float
    threshold_value: float
    measurement_time: datetime
    unit: str
    is_read: bool = False
    is_acknowledged: bool = False
    acknowledged_at: datetime | None = None
    acknowledged_by: str | None = None
    resolved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def key(self) -> AlertKey:
        return AlertKey(
            self.user_id, self.alert_type, self.source, self.device_id, self.location
        )


# ── Requests / responses ────────────────────────────


class AlertFilters(BaseModel):
    """Optional filters for GET /api/alerts."""
    is_acknowledged: bool | None = None
    is_read: bool | None = None
    source: AlertSource | None = None
    alert_type: AlertType | None = None
    severity: AlertSeverity | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class AlertListResponse(BaseModel):
    """Response for GET /api/alerts."""
    alerts: list[Alert]
    total: int
    limit: int
    offset: int
    has_more: bool = Field(serialization_alias="hasMore")


class AlertFlagsUpdate(BaseModel):
    """Body for PATCH /api/alerts/{id}."""
    is_read: bool | None = None
    is_acknowledged: bool | None = None


class AlertIdsRequest(BaseModel):
    """Body for the batch mark-read / acknowledge endpoints."""
    alert_ids: list[UUID]


class MarkReadResponse(BaseModel):
    updated_count: int


class AcknowledgeResponse(BaseModel):
    acknowledged_count: int
