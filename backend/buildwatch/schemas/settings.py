"""Pydantic schemas for the per-user threshold profile."""

from typing import NamedTuple

from pydantic import BaseModel, Field, model_validator


class Bounds(NamedTuple):
    min: float | None
    max: float | None

    @property
    def usable(self) -> bool:
        """True when both bounds are set and well ordered."""
        return self.min is not None and self.max is not None and self.min < self.max


# Metric name -> (min column, max column)
PROFILE_COLUMNS = {
    "temperature": ("expected_temp_min", "expected_temp_max"),
    "humidity": ("expected_humidity_min", "expected_humidity_max"),
    "pressure": ("expected_pressure_min", "expected_pressure_max"),
    "co2": ("expected_co2_min", "expected_co2_max"),
}


class ThresholdProfile(BaseModel):
    """Expected min/max ranges as read from ``user_settings``.

    Read side is deliberately lenient: a row written by something other than
    the settings endpoint may hold a missing or inverted pair. Such pairs are
    reported as not usable by :meth:`bounds` and skipped by the evaluator.
    """
    user_id: str
    expected_temp_min: float | None = 23.0
    expected_temp_max: float | None = 26.0
    expected_humidity_min: float | None = 30.0
    expected_humidity_max: float | None = 60.0
    expected_pressure_min: float | None = 1.5
    expected_pressure_max: float | None = 2.5
    expected_co2_min: float | None = 400.0
    expected_co2_max: float | None = 1000.0

    model_config = {"from_attributes": True, "extra": "ignore"}

    def bounds(self, metric: str) -> Bounds:
        min_col, max_col = PROFILE_COLUMNS[metric]
        return Bounds(getattr(self, min_col), getattr(self, max_col))


class ThresholdSettingsUpdate(BaseModel):
    """Body for PUT /api/user/settings. Validated strictly."""
    expected_temp_min: float = Field(ge=-50, le=100)
    expected_temp_max: float = Field(ge=-50, le=100)
    expected_humidity_min: float = Field(ge=0, le=100)
    expected_humidity_max: float = Field(ge=0, le=100)
    expected_pressure_min: float = Field(ge=0, le=100)
    expected_pressure_max: float = Field(ge=0, le=100)
    expected_co2_min: float = Field(ge=0, le=10000)
    expected_co2_max: float = Field(ge=0, le=10000)

    @model_validator(mode="after")
    def check_ranges(self):
        for min_col, max_col in PROFILE_COLUMNS.values():
            low, high = getattr(self, min_col), getattr(self, max_col)
            if low >= high:
                raise ValueError(f"{min_col} must be less than {max_col}")
        return self
