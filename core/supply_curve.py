"""
Supply Curve Builder

The supply curve pairs flow with pressure for every device at every
step. Plotted flow-ascending, it shows how the supply holds up as more
water is drawn.

Within a step each device is resolved independently: scanning that
step's observations in their given order, the last non-missing value of
each field wins. A later observation carrying only flow does not erase
an earlier pressure for the same device.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .models import MainsTestObservation, MainsTestStep, SupplyCurvePoint


@dataclass
class _DeviceReading:
    """Latest known values for one device within one step."""
    pressure: Optional[float] = None
    flow: Optional[float] = None
    temp: Optional[float] = None

    def update(self, obs: MainsTestObservation) -> None:
        # Per field, so a partial observation only overwrites what it carries
        if obs.pressure_bar is not None:
            self.pressure = obs.pressure_bar
        if obs.flow_lpm is not None:
            self.flow = obs.flow_lpm
        if obs.water_temp_c is not None:
            self.temp = obs.water_temp_c


def compute_supply_curve_points(
    steps: Sequence[MainsTestStep],
    observations: Sequence[MainsTestObservation]
) -> List[SupplyCurvePoint]:
    """
    Compute supply curve points (flow vs pressure).

    One point is emitted per device and step where both pressure and
    flow are known after resolution. Points missing either value are
    dropped rather than defaulted. The result is sorted by ascending
    flow; ties keep their original order.

    Args:
        steps: All steps of the test
        observations: All observations of the test

    Returns:
        Flow-ascending list of SupplyCurvePoint
    """
    by_step: Dict[str, List[MainsTestObservation]] = {}
    for obs in observations:
        by_step.setdefault(obs.step_id, []).append(obs)

    points: List[SupplyCurvePoint] = []

    for step in steps:
        # Devices keep first-seen order within the step
        device_readings: Dict[str, _DeviceReading] = {}
        for obs in by_step.get(step.id, []):
            device_readings.setdefault(obs.device_id, _DeviceReading()).update(obs)

        for reading in device_readings.values():
            if reading.pressure is None or reading.flow is None:
                continue
            points.append(SupplyCurvePoint(
                flow_lpm=reading.flow,
                pressure_bar=reading.pressure,
                temp_c=reading.temp,
                step_index=step.index,
                step_label=step.label,
            ))

    # sorted() is stable
    return sorted(points, key=lambda p: p.flow_lpm)
