"""Tests for threshold profile schemas."""

import pytest
from pydantic import ValidationError

from buildwatch.schemas.settings import Bounds, ThresholdProfile, ThresholdSettingsUpdate

VALID = {
    "expected_temp_min": 20.0,
    "expected_temp_max": 24.0,
    "expected_humidity_min": 35.0,
    "expected_humidity_max": 55.0,
    "expected_pressure_min": 1.2,
    "expected_pressure_max": 2.0,
    "expected_co2_min": 350.0,
    "expected_co2_max": 900.0,
}


class TestThresholdProfile:

    def test_defaults(self):
        profile = ThresholdProfile(user_id="u1")
        assert profile.bounds("temperature") == Bounds(23.0, 26.0)
        assert profile.bounds("humidity") == Bounds(30.0, 60.0)
        assert profile.bounds("pressure") == Bounds(1.5, 2.5)
        assert profile.bounds("co2") == Bounds(400.0, 1000.0)

    def test_row_with_extra_columns(self):
        row = {"id": 7, "user_id": "u1", "created_at": "2026-01-01T00:00:00Z", **VALID}
        profile = ThresholdProfile.model_validate(row)
        assert profile.bounds("humidity") == Bounds(35.0, 55.0)

    def test_inverted_pair_is_accepted_but_unusable(self):
        profile = ThresholdProfile(user_id="u1", expected_co2_min=900.0, expected_co2_max=400.0)
        assert not profile.bounds("co2").usable
        assert profile.bounds("temperature").usable

    @pytest.mark.parametrize("bounds", [Bounds(None, 1.0), Bounds(1.0, None), Bounds(2.0, 2.0)])
    def test_unusable_bounds(self, bounds):
        assert not bounds.usable


class TestThresholdSettingsUpdate:

    def test_valid(self):
        update = ThresholdSettingsUpdate(**VALID)
        assert update.expected_co2_max == 900.0

    @pytest.mark.parametrize(
        "field, low",
        [
            ("expected_temp", 25.0),
            ("expected_humidity", 60.0),
            ("expected_pressure", 3.0),
            ("expected_co2", 1000.0),
        ],
    )
    def test_min_must_be_below_max(self, field, low):
        body = {**VALID, f"{field}_min": low}
        with pytest.raises(ValidationError, match=f"{field}_min must be less than {field}_max"):
            ThresholdSettingsUpdate(**body)

    def test_equal_bounds_rejected(self):
        with pytest.raises(ValidationError):
            ThresholdSettingsUpdate(**{**VALID, "expected_temp_min": 24.0})

    @pytest.mark.parametrize(
        "field, value",
        [
            ("expected_humidity_max", 120.0),
            ("expected_co2_min", -1.0),
            ("expected_temp_max", 150.0),
        ],
    )
    def test_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            ThresholdSettingsUpdate(**{**VALID, field: value})

    def test_missing_field(self):
        body = dict(VALID)
        del body["expected_pressure_max"]
        with pytest.raises(ValidationError):
            ThresholdSettingsUpdate(**body)
