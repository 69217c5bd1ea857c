"""
Tests for Templates, Supply Scenarios and the Test Generator

These tests verify that the standard step plans are well formed and
that every synthetic scenario produces the analysis outcome it is
meant to demonstrate.

Run with: pytest tests/test_engine.py -v
"""

import json
from datetime import datetime, timezone

import pytest
from core.models import ConfidenceLevel, ObservationMethod, RiskCode, WarningCode
from engine.generator import (
    MainsTestDataGenerator,
    NoiseProfile,
    generate_scenario_test,
    get_available_scenarios,
)
from engine.supply_scenarios import ScenarioLibrary, SupplyProfile
from engine.templates import STATIC_STEP_LABEL, TemplateLibrary

START = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class TestTemplates:
    """Test the standard step plans."""

    def test_all_templates_start_with_static_step(self):
        """Test every template begins with an all-closed index-0 step."""
        for template in TemplateLibrary.get_all_templates():
            first = template.steps[0]
            assert first.index == 0
            assert first.outlet_count == 0
            assert first.label == STATIC_STEP_LABEL

    def test_indices_unique_and_ordered(self):
        """Test step indices are 0..n-1 in order."""
        for template in TemplateLibrary.get_all_templates():
            assert [s.index for s in template.steps] == list(range(len(template.steps)))

    def test_standard_template(self):
        """Test the 0-1-2-3 outlet plan."""
        template = TemplateLibrary.get_template("outlets-0-1-2-3")

        assert [s.outlet_count for s in template.steps] == [0, 1, 2, 3]

    def test_flow_sweep_targets(self):
        """Test the flow sweep holds one outlet at increasing flows."""
        template = TemplateLibrary.get_template("flow-sweep")

        assert [s.target_flow_lpm for s in template.steps[1:]] == [5.0, 10.0, 15.0, 20.0]
        assert all(s.outlet_count == 1 for s in template.steps[1:])

    def test_unknown_template(self):
        """Test an unknown id returns None."""
        assert TemplateLibrary.get_template("no-such-plan") is None

    def test_build_steps(self):
        """Test steps are built with ids and the test id."""
        steps = TemplateLibrary.quick_2_outlet().build_steps("T-1")

        assert [s.id for s in steps] == ["T-1-step-0", "T-1-step-1", "T-1-step-2"]
        assert all(s.test_id == "T-1" for s in steps)

    def test_to_dict(self):
        """Test template serialization."""
        d = TemplateLibrary.quick_2_outlet().to_dict()

        assert d["id"] == "quick-2-outlet"
        assert len(d["steps"]) == 3
        assert d["steps"][2]["outlet_count"] == 2


class TestSupplyScenario:
    """Test the scenario hydraulic model."""

    def test_pressure_at_zero_flow_is_static(self):
        """Test zero flow gives the static pressure."""
        scenario = ScenarioLibrary.healthy()
        assert scenario.pressure_at_flow(0.0) == pytest.approx(3.5)

    def test_parabolic_curve(self):
        """Test pressure at half the maximum flow is 75% of static."""
        scenario = ScenarioLibrary.healthy()
        assert scenario.pressure_at_flow(30.0) == pytest.approx(3.5 * 0.75)

    def test_pressure_never_negative(self):
        """Test flows beyond the maximum give zero pressure."""
        scenario = ScenarioLibrary.pressure_collapse()
        assert scenario.pressure_at_flow(100.0) == pytest.approx(0.0)

    def test_target_flow_wins(self):
        """Test a step's target flow overrides the outlet count."""
        scenario = ScenarioLibrary.healthy()
        step = TemplateLibrary.flow_sweep().build_steps("T")[2]

        assert scenario.flow_for_step(step) == 10.0

    def test_library_covers_every_profile(self):
        """Test every profile has a scenario."""
        for profile in SupplyProfile:
            assert ScenarioLibrary.get_scenario_by_profile(profile).profile == profile

    def test_scenario_names(self):
        """Test names are listed for every scenario."""
        assert len(ScenarioLibrary.get_scenario_names()) == len(SupplyProfile)

    def test_to_dict(self):
        """Test scenario serialization."""
        d = ScenarioLibrary.sensor_fault().to_dict()

        assert d["type"] == "sensor_fault"
        assert d["affected_fields"] == ["pressure_bar"]


class TestGenerator:
    """Test the synthetic test generator."""

    def setup_method(self):
        """Set up test fixtures."""
        self.generator = MainsTestDataGenerator(samples_per_step=3, random_seed=42)

    def test_structure(self):
        """Test devices, steps and observation counts."""
        generated = self.generator.generate(test_id="T-1", start_time=START)

        assert [d.label for d in generated.devices] == ["A", "B"]
        assert len(generated.steps) == 4
        # 3 gauge readings + 1 thermometer reading per step
        assert len(generated.observations) == 16

    def test_observations_reference_test(self):
        """Test every observation points at a generated step and device."""
        generated = self.generator.generate(test_id="T-1", start_time=START)
        step_ids = {s.id for s in generated.steps}
        device_ids = {d.id for d in generated.devices}

        for obs in generated.observations:
            assert obs.step_id in step_ids
            assert obs.device_id in device_ids
            assert obs.test_id == "T-1"

    def test_thermometer_reads_temperature_only(self):
        """Test device B records one automatic temperature per step."""
        generated = self.generator.generate(test_id="T-1", start_time=START)
        thermo = [o for o in generated.observations if o.device_id == "T-1-dev-B"]

        assert len(thermo) == 4
        for obs in thermo:
            assert obs.pressure_bar is None
            assert obs.flow_lpm is None
            assert obs.water_temp_c is not None
            assert obs.method == ObservationMethod.AUTOMATIC

    def test_closed_outlets_read_zero_flow(self):
        """Test the static step records exactly zero flow."""
        generated = self.generator.generate(test_id="T-1", start_time=START)
        static = [
            o for o in generated.observations
            if o.step_id == "T-1-step-0" and o.flow_lpm is not None
        ]

        assert static
        assert all(o.flow_lpm == 0.0 for o in static)

    def test_reproducible_with_seed(self):
        """Test the same seed gives the same test."""
        a = MainsTestDataGenerator(random_seed=7).generate(test_id="T", start_time=START)
        b = MainsTestDataGenerator(random_seed=7).generate(test_id="T", start_time=START)

        assert a.to_dict() == b.to_dict()

    def test_no_noise(self):
        """Test zero noise reproduces the supply curve exactly."""
        gen = MainsTestDataGenerator(
            samples_per_step=1,
            noise=NoiseProfile(pressure_bar=0.0, flow_lpm=0.0, water_temp_c=0.0),
            random_seed=1,
        )
        generated = gen.generate(test_id="T", start_time=START)
        gauge = [o for o in generated.observations if o.device_id == "T-dev-A"]

        assert [o.pressure_bar for o in gauge] == [3.5, 3.36, 2.94, 2.24]
        assert [o.flow_lpm for o in gauge] == [0.0, 12.0, 24.0, 36.0]

    def test_invalid_samples_per_step(self):
        """Test at least one sample per step is required."""
        with pytest.raises(ValueError):
            MainsTestDataGenerator(samples_per_step=0)

    def test_json_export(self):
        """Test the generated test exports as JSON."""
        generated = self.generator.generate(test_id="T-1", start_time=START)
        data = json.loads(generated.to_json())

        assert data["test"]["id"] == "T-1"
        assert len(data["observations"]) == 16
        assert data["devices"][1]["sensor_type"] == "bluetooth"

    def test_available_scenarios(self):
        """Test scenario info is listed for every profile."""
        assert {s["type"] for s in get_available_scenarios()} == {p.value for p in SupplyProfile}


class TestScenarioOutcomes:
    """Test every scenario produces the outcome it demonstrates."""

    def _analyze(self, profile, seed=42):
        generated = generate_scenario_test(profile, test_id="T", random_seed=seed)
        return generated.analyze()

    def test_healthy(self):
        """Test healthy mains raise no risks and high confidence."""
        results = self._analyze(SupplyProfile.HEALTHY)

        assert results.risk_flags == []
        assert results.warnings == []
        assert results.confidence.overall == ConfidenceLevel.HIGH

    @pytest.mark.parametrize("profile", [
        SupplyProfile.WEAK_MAINS,
        SupplyProfile.PRESSURE_COLLAPSE,
        SupplyProfile.MARGINAL_COMBI,
        SupplyProfile.COLD_FEED_CONTAMINATION,
    ])
    @pytest.mark.parametrize("seed", [1, 42, 2024])
    def test_expected_risks_raised(self, profile, seed):
        """Test each scenario raises at least the risks it lists."""
        scenario = ScenarioLibrary.get_scenario_by_profile(profile)
        results = self._analyze(profile, seed)
        raised = {r.code.value for r in results.risk_flags}

        assert set(scenario.expected_risks) <= raised

    def test_weak_mains_severity(self):
        """Test weak mains static pressure is high, not critical."""
        results = self._analyze(SupplyProfile.WEAK_MAINS)
        static = next(r for r in results.risk_flags if r.code == RiskCode.LOW_STATIC_PRESSURE)

        assert static.severity.value == "high"

    def test_marginal_combi_only_stability_risk(self):
        """Test the marginal supply raises only the combi stability risk."""
        results = self._analyze(SupplyProfile.MARGINAL_COMBI)

        assert [r.code for r in results.risk_flags] == [RiskCode.COMBI_DHW_STABILITY_RISK]

    def test_sensor_fault(self):
        """Test gauge spikes show up as errors and drag confidence down."""
        results = self._analyze(SupplyProfile.SENSOR_FAULT)
        errors = [w for w in results.warnings if w.code == WarningCode.PRESSURE_TOO_HIGH]
        flagged = [w for w in results.warnings if w.code == WarningCode.QUALITY_FLAGS_PRESENT]

        assert len(errors) == 3
        assert len(flagged) == 12
        assert results.confidence.overall == ConfidenceLevel.LOW
        assert "Many observations have quality flags" in results.confidence.factors
        assert results.risk_flags == []

    def test_unknown_profile(self):
        """Test an unknown profile is rejected."""
        with pytest.raises(ValueError):
            generate_scenario_test("not-a-profile")
