"""
Synthetic Mains Test Generator

Generates complete mains performance tests (test, devices, steps and
observations) for demos and testing, following a supply scenario.

Features:
- Step plans taken from the template library
- Parabolic supply curve per scenario (see supply_scenarios)
- Gaussian measurement noise, reproducible with a seed
- Scenario modifiers and engineer quality flags
- Export to dict or JSON, or straight into the analysis engine

Device setup:
- Device A (gauge at the outside tap) records pressure, flow and
  temperature several times per step
- Device B (thermometer at the kitchen cold tap) records one
  temperature per step
"""

import json
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from core.analysis import compute_test_results
from core.models import (
    MainsTest,
    MainsTestDevice,
    MainsTestObservation,
    MainsTestResults,
    MainsTestStep,
    ObservationMethod,
    SensorType,
)

from .supply_scenarios import ScenarioLibrary, SupplyProfile, SupplyScenario
from .templates import TemplateLibrary


@dataclass
class NoiseProfile:
    """
    Standard deviation of the measurement noise per field.

    Defaults are typical of a dial gauge, a flow cup and a probe
    thermometer read by hand.
    """
    pressure_bar: float = 0.02
    flow_lpm: float = 0.3
    water_temp_c: float = 0.2


@dataclass
class GeneratedMainsTest:
    """A complete synthetic test, ready to analyze or persist."""
    scenario_name: str
    test: MainsTest
    devices: List[MainsTestDevice] = field(default_factory=list)
    steps: List[MainsTestStep] = field(default_factory=list)
    observations: List[MainsTestObservation] = field(default_factory=list)

    def analyze(self, computed_at: Optional[datetime] = None) -> MainsTestResults:
        """Run the analysis engine over the generated records."""
        return compute_test_results(
            self.test, self.devices, self.steps, self.observations, computed_at=computed_at
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "scenario": self.scenario_name,
            "test": {
                "id": self.test.id,
                "source_point": self.test.source_point,
                "property_id": self.test.property_id,
                "ambient_temp_c": self.test.ambient_temp_c,
                "notes": self.test.notes,
            },
            "devices": [
                {
                    "id": d.id,
                    "label": d.label,
                    "location": d.location,
                    "sensor_type": d.sensor_type.value,
                }
                for d in self.devices
            ],
            "steps": [
                {
                    "id": s.id,
                    "index": s.index,
                    "label": s.label,
                    "outlet_count": s.outlet_count,
                    "target_flow_lpm": s.target_flow_lpm,
                }
                for s in self.steps
            ],
            "observations": [
                {
                    "id": o.id,
                    "step_id": o.step_id,
                    "device_id": o.device_id,
                    "pressure_bar": o.pressure_bar,
                    "flow_lpm": o.flow_lpm,
                    "water_temp_c": o.water_temp_c,
                    "quality_flags": list(o.quality_flags),
                    "method": o.method.value,
                    "timestamp": o.timestamp.isoformat() if o.timestamp else None,
                }
                for o in self.observations
            ],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


class MainsTestDataGenerator:
    """
    Generator for synthetic mains performance tests.

    Example:
        gen = MainsTestDataGenerator(random_seed=42)
        gen.set_scenario(ScenarioLibrary.pressure_collapse())
        generated = gen.generate(test_id="DEMO-001")
        results = generated.analyze()
        print([r.code.value for r in results.risk_flags])
    """

    def __init__(
        self,
        samples_per_step: int = 3,
        noise: Optional[NoiseProfile] = None,
        random_seed: Optional[int] = None
    ):
        """
        Initialize the generator.

        Args:
            samples_per_step: Readings taken by device A per step
            noise: Measurement noise (uses defaults if None)
            random_seed: Seed for reproducible generation
        """
        if samples_per_step < 1:
            raise ValueError("samples_per_step must be at least 1")

        self.samples_per_step = samples_per_step
        self.noise = noise or NoiseProfile()
        self.rng = random.Random(random_seed)
        self.scenario: SupplyScenario = ScenarioLibrary.healthy()

    def set_scenario(self, scenario: SupplyScenario) -> None:
        """Set the supply scenario to simulate."""
        self.scenario = scenario

    def generate(
        self,
        test_id: Optional[str] = None,
        property_id: Optional[int] = None,
        start_time: Optional[datetime] = None,
        step_duration_seconds: int = 60
    ) -> GeneratedMainsTest:
        """
        Generate one complete test for the current scenario.

        Args:
            test_id: Test identifier (random UUID if None)
            property_id: Property the test belongs to
            start_time: Time of the first reading (defaults to now, UTC)
            step_duration_seconds: How long each step is held

        Returns:
            GeneratedMainsTest

        Raises:
            ValueError: If the scenario's template does not exist
        """
        scenario = self.scenario
        template = TemplateLibrary.get_template(scenario.template_id)
        if template is None:
            raise ValueError(f"Unknown template: {scenario.template_id}")

        test_id = test_id or str(uuid.uuid4())
        start = start_time or datetime.now(timezone.utc)

        test = MainsTest(
            id=test_id,
            source_point="outside_tap",
            property_id=property_id,
            ambient_temp_c=round(self.rng.uniform(8.0, 18.0), 1),
            notes=f"Synthetic test: {scenario.name}",
            created_at=start,
        )
        gauge = MainsTestDevice(
            id=f"{test_id}-dev-A",
            label="A",
            location="Outside tap",
            sensor_type=SensorType.MANUAL,
            test_id=test_id,
        )
        thermometer = MainsTestDevice(
            id=f"{test_id}-dev-B",
            label="B",
            location="Kitchen cold tap",
            sensor_type=SensorType.BLUETOOTH,
            test_id=test_id,
        )
        steps = template.build_steps(test_id)

        observations: List[MainsTestObservation] = []
        for step in steps:
            step_start = start + timedelta(seconds=step.index * step_duration_seconds)
            observations.extend(self._generate_step(step, gauge, thermometer, step_start))

        return GeneratedMainsTest(
            scenario_name=scenario.name,
            test=test,
            devices=[gauge, thermometer],
            steps=steps,
            observations=observations,
        )

    def _generate_step(
        self,
        step: MainsTestStep,
        gauge: MainsTestDevice,
        thermometer: MainsTestDevice,
        step_start: datetime
    ) -> List[MainsTestObservation]:
        """Generate all observations for one step."""
        scenario = self.scenario
        flags = scenario.quality_flags.get(step.index, [])
        flow = scenario.flow_for_step(step)
        pressure = scenario.pressure_at_flow(flow)

        observations = []
        for sample in range(self.samples_per_step):
            observations.append(MainsTestObservation(
                id=f"{step.id}-A-{sample}",
                step_id=step.id,
                device_id=gauge.id,
                test_id=step.test_id,
                pressure_bar=self._reading("pressure_bar", pressure, step, sample, decimals=2),
                flow_lpm=self._reading("flow_lpm", flow, step, sample, decimals=1),
                water_temp_c=self._reading(
                    "water_temp_c", scenario.cold_feed_temp_c, step, sample, decimals=1
                ),
                quality_flags=list(flags),
                method=ObservationMethod.MANUAL,
                timestamp=step_start + timedelta(seconds=10 * (sample + 1)),
            ))

        observations.append(MainsTestObservation(
            id=f"{step.id}-B-0",
            step_id=step.id,
            device_id=thermometer.id,
            test_id=step.test_id,
            water_temp_c=self._reading(
                "water_temp_c", scenario.cold_feed_temp_c, step, 0, decimals=1
            ),
            quality_flags=list(flags),
            method=ObservationMethod.AUTOMATIC,
            timestamp=step_start + timedelta(seconds=5),
        ))

        return observations

    def _reading(
        self,
        field_name: str,
        base: float,
        step: MainsTestStep,
        sample: int,
        decimals: int
    ) -> float:
        """Apply the scenario modifier and measurement noise to a base value."""
        value = self.scenario.apply_modifier(field_name, base, step, sample)

        # Closed outlets read exactly zero flow
        if field_name == "flow_lpm" and value == 0:
            return 0.0

        value += self.rng.gauss(0.0, getattr(self.noise, field_name))
        if field_name != "water_temp_c":
            value = max(0.0, value)
        return round(value, decimals)


def generate_scenario_test(
    profile: SupplyProfile,
    test_id: Optional[str] = None,
    property_id: Optional[int] = None,
    random_seed: Optional[int] = None,
    samples_per_step: int = 3
) -> GeneratedMainsTest:
    """
    Generate a test for a specific supply profile.

    Args:
        profile: Supply profile to simulate
        test_id: Test identifier (random UUID if None)
        property_id: Property the test belongs to
        random_seed: Seed for reproducible generation
        samples_per_step: Readings taken by device A per step

    Returns:
        GeneratedMainsTest

    Raises:
        ValueError: If the profile has no scenario
    """
    scenario = ScenarioLibrary.get_scenario_by_profile(profile)
    if scenario is None:
        raise ValueError(f"Unknown supply profile: {profile}")

    generator = MainsTestDataGenerator(samples_per_step=samples_per_step, random_seed=random_seed)
    generator.set_scenario(scenario)
    return generator.generate(test_id=test_id, property_id=property_id)


def get_available_scenarios() -> List[Dict[str, Any]]:
    """
    Get information about all available scenarios.

    Returns:
        List of scenario info dictionaries
    """
    return [s.to_dict() for s in ScenarioLibrary.get_all_scenarios()]
