"""
Mains Test Analysis

Entry point of the analysis engine. compute_test_results() validates the
raw records, aggregates pressure and flow, builds the supply curve, runs
the risk rules and rates confidence, returning one MainsTestResults.

Data flows one way:
    records -> warnings + pressure/flow metrics -> risks + confidence -> results

The function is pure: inputs are never modified, and two calls on the
same inputs give identical results apart from computed_at.

Structural problems in the records (an observation pointing at a step
that is not part of the test, duplicate step indices, non-finite
readings) raise MalformedInput. Missing or implausible readings do not
raise; they show up as warnings and lower the confidence.
"""

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .confidence import compute_confidence
from .models import (
    MainsTest,
    MainsTestDevice,
    MainsTestObservation,
    MainsTestResults,
    MainsTestStep,
    MainsTestWarning,
    MalformedInput,
)
from .pressure import (
    compute_dynamic_pressure_points,
    compute_max_flow,
    compute_pressure_drop_per_outlet,
    compute_static_pressure,
)
from .risk import RiskAnalyzer
from .supply_curve import compute_supply_curve_points
from .validators import MainsTestValidator

logger = logging.getLogger(__name__)


def _check_structure(
    test: MainsTest,
    devices: Sequence[MainsTestDevice],
    steps: Sequence[MainsTestStep],
    observations: Sequence[MainsTestObservation]
) -> None:
    """Raise MalformedInput if the records do not describe one consistent test."""
    seen_indices = set()
    for step in steps:
        if step.index in seen_indices:
            raise MalformedInput(f"Duplicate step index {step.index} in test {test.id}")
        seen_indices.add(step.index)
        if step.test_id is not None and step.test_id != test.id:
            raise MalformedInput(f"Step {step.id} belongs to test {step.test_id}, not {test.id}")

    for device in devices:
        if device.test_id is not None and device.test_id != test.id:
            raise MalformedInput(f"Device {device.id} belongs to test {device.test_id}, not {test.id}")

    step_ids = {s.id for s in steps}
    device_ids = {d.id for d in devices}

    for obs in observations:
        if obs.step_id not in step_ids:
            raise MalformedInput(f"Observation {obs.id} references unknown step {obs.step_id}")
        if obs.device_id not in device_ids:
            raise MalformedInput(f"Observation {obs.id} references unknown device {obs.device_id}")
        if obs.test_id is not None and obs.test_id != test.id:
            raise MalformedInput(f"Observation {obs.id} belongs to test {obs.test_id}, not {test.id}")

        for name in ("pressure_bar", "flow_lpm", "water_temp_c"):
            value = getattr(obs, name)
            if value is not None and not math.isfinite(value):
                raise MalformedInput(f"Observation {obs.id} has non-finite {name}: {value}")


def compute_test_results(
    test: MainsTest,
    devices: Sequence[MainsTestDevice],
    steps: Sequence[MainsTestStep],
    observations: Sequence[MainsTestObservation],
    computed_at: Optional[datetime] = None
) -> MainsTestResults:
    """
    Compute the complete analysis of a mains performance test.

    Args:
        test: The test being analyzed
        devices: Devices used in the test
        steps: Steps in the order they were performed
        observations: All observations of the test
        computed_at: Timestamp to embed (defaults to now, UTC)

    Returns:
        MainsTestResults

    Raises:
        MalformedInput: If the records break the test's structural invariants

    Example:
        results = compute_test_results(test, devices, steps, observations)
        print(f"Static: {results.static_pressure_bar} bar")
        print(f"Confidence: {results.confidence.overall.value}")
    """
    try:
        _check_structure(test, devices, steps, observations)
    except MalformedInput as e:
        logger.error(f"Malformed mains test {test.id}: {e}")
        raise

    validator = MainsTestValidator()
    warnings: List[MainsTestWarning] = []
    for observation in observations:
        warnings.extend(validator.validate_observation(observation))
    warnings.extend(validator.validate_completeness(steps, observations))

    static_pressure = compute_static_pressure(steps, observations)
    dynamic_points = compute_dynamic_pressure_points(steps, observations)
    supply_curve = compute_supply_curve_points(steps, observations)

    risk_flags = RiskAnalyzer().analyze(static_pressure, dynamic_points, observations)
    confidence = compute_confidence(observations, warnings)

    logger.debug(
        f"Analyzed mains test {test.id}: {len(observations)} observations, "
        f"{len(warnings)} warnings, {len(risk_flags)} risks, "
        f"confidence={confidence.overall.value}"
    )

    return MainsTestResults(
        test_id=test.id,
        static_pressure_bar=static_pressure,
        dynamic_pressure_at_steps=dynamic_points,
        max_flow_observed_lpm=compute_max_flow(observations),
        pressure_drop_per_outlet=compute_pressure_drop_per_outlet(dynamic_points),
        supply_curve_points=supply_curve,
        warnings=warnings,
        risk_flags=risk_flags,
        computed_at=computed_at or datetime.now(timezone.utc),
        confidence=confidence,
    )
