"""Severity tiers for threshold violations."""

from buildwatch.schemas.alerts import AlertSeverity

HIGH_DEVIATION_PCT = 20.0
MEDIUM_DEVIATION_PCT = 10.0


def classify_severity(measured_value: float, threshold_value: float) -> AlertSeverity:
    """
    Grade a violation by how far the value sits from the threshold it broke.

    deviation = |measured - threshold| / |threshold| * 100

    - HIGH: deviation > 20%
    - MEDIUM: deviation > 10%
    - LOW: otherwise

    A zero threshold has no meaningful percentage, so it is graded MEDIUM.
    """
    if threshold_value == 0:
        return AlertSeverity.MEDIUM

    # Multiply before dividing so exact boundaries (110 vs 100) stay exact
    deviation = abs(measured_value - threshold_value) * 100 / abs(threshold_value)

    if deviation > HIGH_DEVIATION_PCT:
        return AlertSeverity.HIGH
    if deviation > MEDIUM_DEVIATION_PCT:
        return AlertSeverity.MEDIUM
    return AlertSeverity.LOW
