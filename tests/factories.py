"""
Record builders shared by the test modules.

Keeps each test focused on the readings that matter instead of on
boilerplate ids.
"""

from typing import List, Optional

from core.models import (
    DynamicPressurePoint,
    MainsTest,
    MainsTestDevice,
    MainsTestObservation,
    MainsTestStep,
)

TEST_ID = "test-1"
DEVICE_A = "dev-a"
DEVICE_B = "dev-b"


def make_test(test_id: str = TEST_ID) -> MainsTest:
    return MainsTest(id=test_id, property_id=101)


def make_devices(test_id: str = TEST_ID) -> List[MainsTestDevice]:
    return [
        MainsTestDevice(id=DEVICE_A, label="A", location="Outside tap", test_id=test_id),
        MainsTestDevice(id=DEVICE_B, label="B", location="Kitchen", test_id=test_id),
    ]


def make_step(index: int, outlet_count: int, label: Optional[str] = None) -> MainsTestStep:
    return MainsTestStep(
        id=f"step-{index}",
        index=index,
        label=label or f"Step {index}",
        outlet_count=outlet_count,
        test_id=TEST_ID,
    )


_counter = {"n": 0}


def make_obs(
    step_index: int,
    pressure: Optional[float] = None,
    flow: Optional[float] = None,
    temp: Optional[float] = None,
    device_id: str = DEVICE_A,
    flags: Optional[List[str]] = None,
    obs_id: Optional[str] = None,
) -> MainsTestObservation:
    _counter["n"] += 1
    return MainsTestObservation(
        id=obs_id or f"obs-{_counter['n']}",
        step_id=f"step-{step_index}",
        device_id=device_id,
        pressure_bar=pressure,
        flow_lpm=flow,
        water_temp_c=temp,
        quality_flags=list(flags or []),
        test_id=TEST_ID,
    )


def make_point(step_index: int, outlet_count: int, pressure: float) -> DynamicPressurePoint:
    return DynamicPressurePoint(
        step_index=step_index,
        step_label=f"Step {step_index}",
        outlet_count=outlet_count,
        pressure_bar=pressure,
        min_pressure=pressure,
        max_pressure=pressure,
        sample_count=1,
    )
