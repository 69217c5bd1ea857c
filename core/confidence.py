"""
Confidence Estimation

Rates how far the computed results can be trusted, per measured
dimension and overall, from the number of readings and the severity of
the validation findings.

Tiers:
- Pressure: low < 3 readings, medium 3-5 readings or any error, else high
- Flow: low < 2 readings, medium 2-3 readings, else high
- Temperature: low with no readings, medium 1-2 readings, else high
- Overall: low if pressure or flow is low or more than 2 errors;
  medium if pressure or flow is medium or more than 2 warnings

Temperature never moves the overall tier.
"""

from typing import List, Sequence

from .models import (
    ConfidenceLevel,
    MainsTestConfidence,
    MainsTestObservation,
    MainsTestWarning,
    WarningSeverity,
)


def compute_confidence(
    observations: Sequence[MainsTestObservation],
    warnings: Sequence[MainsTestWarning]
) -> MainsTestConfidence:
    """
    Compute confidence tiers for a test.

    A factor string is recorded for every downgrade so the engineer can
    see what to improve.

    Args:
        observations: All observations of the test
        warnings: All validation findings already produced for the test

    Returns:
        MainsTestConfidence
    """
    factors: List[str] = []

    pressure_count = sum(1 for o in observations if o.pressure_bar is not None)
    flow_count = sum(1 for o in observations if o.flow_lpm is not None)
    temp_count = sum(1 for o in observations if o.water_temp_c is not None)
    flagged_count = sum(1 for o in observations if o.quality_flags)

    error_count = sum(1 for w in warnings if w.severity == WarningSeverity.ERROR)
    warning_count = sum(1 for w in warnings if w.severity == WarningSeverity.WARNING)

    # Pressure
    if pressure_count < 3:
        pressure = ConfidenceLevel.LOW
        factors.append("Limited pressure readings")
    elif pressure_count < 6 or error_count > 0:
        pressure = ConfidenceLevel.MEDIUM
        if pressure_count < 6:
            factors.append("Fewer than 6 pressure readings")
        if error_count > 0:
            factors.append("Readings have plausibility errors")
    else:
        pressure = ConfidenceLevel.HIGH

    # Flow
    if flow_count < 2:
        flow = ConfidenceLevel.LOW
        factors.append("Limited flow readings")
    elif flow_count < 4:
        flow = ConfidenceLevel.MEDIUM
        factors.append("Fewer than 4 flow readings")
    else:
        flow = ConfidenceLevel.HIGH

    # Temperature
    if temp_count == 0:
        temperature = ConfidenceLevel.LOW
        factors.append("No temperature readings")
    elif temp_count < 3:
        temperature = ConfidenceLevel.MEDIUM
        factors.append("Fewer than 3 temperature readings")
    else:
        temperature = ConfidenceLevel.HIGH

    if flagged_count > len(observations) / 2:
        factors.append("Many observations have quality flags")

    if warning_count > 2:
        factors.append("Multiple validation warnings")

    if error_count > 2:
        factors.append("Multiple plausibility errors")

    # Overall
    if (pressure == ConfidenceLevel.LOW or flow == ConfidenceLevel.LOW
            or error_count > 2):
        overall = ConfidenceLevel.LOW
    elif (pressure == ConfidenceLevel.MEDIUM or flow == ConfidenceLevel.MEDIUM
            or warning_count > 2):
        overall = ConfidenceLevel.MEDIUM
    else:
        overall = ConfidenceLevel.HIGH

    return MainsTestConfidence(
        overall=overall,
        pressure=pressure,
        flow=flow,
        temperature=temperature,
        factors=factors,
    )
