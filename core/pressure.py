"""
Pressure Aggregation for Mains Performance Tests

Reduces the pressure readings of each step to a small set of figures:

- Static pressure: median of the index-0 step (all outlets closed)
- Dynamic pressure profile: median/min/max/count for every step that
  has pressure readings, in the order the steps were given
- Maximum observed flow and average pressure drop per extra outlet

All functions are pure: they never modify their inputs.
"""

from typing import Dict, List, Optional, Sequence

from .models import DynamicPressurePoint, MainsTestObservation, MainsTestStep


def median(values: Sequence[float]) -> float:
    """
    Standard statistical median.

    Odd count -> middle element of the sorted values.
    Even count -> mean of the two middle elements.

    Raises:
        ValueError: If values is empty
    """
    if not values:
        raise ValueError("median() requires at least one value")

    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def _pressures_by_step(observations: Sequence[MainsTestObservation]) -> Dict[str, List[float]]:
    readings: Dict[str, List[float]] = {}
    for obs in observations:
        if obs.pressure_bar is not None:
            readings.setdefault(obs.step_id, []).append(obs.pressure_bar)
    return readings


def compute_static_pressure(
    steps: Sequence[MainsTestStep],
    observations: Sequence[MainsTestObservation]
) -> Optional[float]:
    """
    Compute static pressure from the index-0 step.

    Args:
        steps: All steps of the test
        observations: All observations of the test

    Returns:
        Median pressure (bar) of the baseline step, or None when there is
        no index-0 step or it has no pressure readings
    """
    step0 = next((s for s in steps if s.index == 0), None)
    if step0 is None:
        return None

    readings = _pressures_by_step(observations).get(step0.id)
    if not readings:
        return None

    return median(readings)


def compute_dynamic_pressure_points(
    steps: Sequence[MainsTestStep],
    observations: Sequence[MainsTestObservation]
) -> List[DynamicPressurePoint]:
    """
    Build the dynamic pressure profile.

    Steps without pressure readings are skipped. Step order is preserved
    as given; steps are never re-sorted or merged by index.
    """
    by_step = _pressures_by_step(observations)
    points: List[DynamicPressurePoint] = []

    for step in steps:
        readings = by_step.get(step.id)
        if not readings:
            continue

        points.append(DynamicPressurePoint(
            step_index=step.index,
            step_label=step.label,
            outlet_count=step.outlet_count,
            pressure_bar=median(readings),
            min_pressure=min(readings),
            max_pressure=max(readings),
            sample_count=len(readings),
        ))

    return points


def compute_max_flow(observations: Sequence[MainsTestObservation]) -> Optional[float]:
    """Largest flow reading (L/min) in the test, or None without flow readings."""
    flows = [o.flow_lpm for o in observations if o.flow_lpm is not None]
    return max(flows) if flows else None


def compute_pressure_drop_per_outlet(points: Sequence[DynamicPressurePoint]) -> Optional[float]:
    """
    Average pressure drop (bar) per additional open outlet.

    For each adjacent pair of profile points where the outlet count goes
    up, the drop is divided by the outlet increase. The result is the mean
    of those per-outlet drops, or None when no pair qualifies.

    This is a rough heuristic: pairs where the outlet count stays the same
    or goes down are ignored.
    """
    drops: List[float] = []

    for prev, curr in zip(points, points[1:]):
        outlet_delta = curr.outlet_count - prev.outlet_count
        if outlet_delta > 0:
            drops.append((prev.pressure_bar - curr.pressure_bar) / outlet_delta)

    if not drops:
        return None

    return sum(drops) / len(drops)
