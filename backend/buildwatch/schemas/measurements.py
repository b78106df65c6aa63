"""Pydantic schemas for measurement ingestion."""

import datetime as dt

from pydantic import BaseModel, Field


class ThermionixMeasurement(BaseModel):
    """One apartment sensor reading (temperature / humidity / CO2)."""
    datetime: dt.datetime
    device_id: int
    probe_id: int = 0
    temperature: float | None = None
    relative_humidity: float | None = None
    co2: float | None = None

    model_config = {"from_attributes": True}


class ScadaMeasurement(BaseModel):
    """One SCADA substation reading, keyed by location (e.g. "L8")."""
    datetime: dt.datetime
    location: str = Field(min_length=1)
    t_amb: float | None = None
    t_ref: float | None = None
    t_sup_prim: float | None = None
    t_ret_prim: float | None = None
    t_sup_sec: float | None = None
    t_ret_sec: float | None = None
    e: float | None = Field(default=None, description="Pressure, bar")
    pe: float | None = None

    model_config = {"from_attributes": True}


# ── Batch requests ──────────────────────────────────


class ThermionixBatch(BaseModel):
    """Body for POST /api/thermionix."""
    measurements: list[dict] = Field(min_length=1)


class ScadaBatch(BaseModel):
    """Body for POST /api/scada."""
    measurements: list[dict] = Field(min_length=1)


class IngestError(BaseModel):
    measurement: dict
    error: str


class IngestResponse(BaseModel):
    """Response for the measurement POST endpoints."""
    success: bool = True
    created: int
    errors: list[IngestError] | None = None
    measurements: list[dict]
