"""
Tests for the Full Mains Test Analysis

End-to-end tests of compute_test_results(): realistic tests in, one
complete result out.

Run with: pytest tests/test_analysis.py -v
"""

import copy
import json
import math
from datetime import datetime, timezone

import pytest
from core.analysis import compute_test_results
from core.models import (
    ConfidenceLevel,
    MainsTestObservation,
    MainsTestStep,
    MalformedInput,
    RiskCode,
    WarningCategory,
    WarningCode,
)
from tests.factories import DEVICE_B, make_devices, make_obs, make_step, make_test

FIXED_TIME = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


class TestThreeStepTest:
    """Test a clean three-step test on a good supply."""

    def setup_method(self):
        """Set up test fixtures."""
        self.test = make_test()
        self.devices = make_devices()
        self.steps = [make_step(0, 0, "All closed"), make_step(1, 1, "Kitchen tap"), make_step(2, 2, "Kitchen + bath")]
        self.observations = [
            make_obs(0, pressure=3.5, flow=0.0, temp=12.0),
            make_obs(1, pressure=3.2, flow=15.0, temp=12.5),
            make_obs(2, pressure=2.8, flow=25.0, temp=13.0),
        ]
        self.results = compute_test_results(
            self.test, self.devices, self.steps, self.observations, computed_at=FIXED_TIME
        )

    def test_static_pressure(self):
        """Test static pressure comes from step 0."""
        assert self.results.static_pressure_bar == pytest.approx(3.5)

    def test_dynamic_points(self):
        """Test one dynamic point per step at the recorded pressure."""
        points = self.results.dynamic_pressure_at_steps

        assert [p.pressure_bar for p in points] == [3.5, 3.2, 2.8]
        assert [p.outlet_count for p in points] == [0, 1, 2]

    def test_supply_curve(self):
        """Test three supply curve points sorted by flow."""
        assert [p.flow_lpm for p in self.results.supply_curve_points] == [0.0, 15.0, 25.0]

    def test_no_completeness_warnings(self):
        """Test a fully covered plan raises no completeness warnings."""
        assert not [w for w in self.results.warnings if w.category == WarningCategory.COMPLETENESS]

    def test_confidence_not_low(self):
        """Test three readings of each kind are not rated low."""
        assert self.results.confidence.overall != ConfidenceLevel.LOW

    def test_no_risks(self):
        """Test a good supply raises no risk flags."""
        assert self.results.risk_flags == []

    def test_summary_figures(self):
        """Test max flow and the average drop per outlet."""
        assert self.results.max_flow_observed_lpm == pytest.approx(25.0)
        assert self.results.pressure_drop_per_outlet == pytest.approx(0.35)

    def test_metadata(self):
        """Test the result carries the test id and timestamp."""
        assert self.results.test_id == self.test.id
        assert self.results.computed_at == FIXED_TIME

    def test_idempotent(self):
        """Test repeat analysis gives identical output."""
        again = compute_test_results(
            self.test, self.devices, self.steps, self.observations, computed_at=FIXED_TIME
        )
        assert again.to_dict() == self.results.to_dict()

    def test_inputs_not_modified(self):
        """Test the analysis never mutates its inputs."""
        steps = copy.deepcopy(self.steps)
        observations = copy.deepcopy(self.observations)

        compute_test_results(self.test, self.devices, self.steps, self.observations)

        assert self.steps == steps
        assert self.observations == observations

    def test_json_serializable(self):
        """Test the result dict can be serialized as JSON."""
        data = json.loads(json.dumps(self.results.to_dict()))

        assert data["computed_at"] == FIXED_TIME.isoformat()
        assert data["confidence"]["overall"] == "medium"
        assert len(data["supply_curve_points"]) == 3

    def test_default_timestamp_is_utc(self):
        """Test computed_at defaults to an aware UTC timestamp."""
        results = compute_test_results(self.test, self.devices, self.steps, self.observations)

        assert results.computed_at.tzinfo is not None
        assert results.computed_at.utcoffset().total_seconds() == 0


class TestIncompleteTest:
    """Test a test with gaps in the step plan."""

    def test_gaps_reported(self):
        """Test an empty step 0 and a pressure-only step 1 are both reported."""
        steps = [make_step(0, 0), make_step(1, 1)]
        observations = [make_obs(1, pressure=3.0)]

        results = compute_test_results(make_test(), make_devices(), steps, observations)
        codes = {w.code for w in results.warnings}

        assert WarningCode.NO_OBSERVATIONS in codes
        assert WarningCode.STEP_NO_FLOW in codes
        assert results.static_pressure_bar is None
        assert results.supply_curve_points == []
        assert results.confidence.overall == ConfidenceLevel.LOW

    def test_empty_test(self):
        """Test a test with no steps or observations still returns a result."""
        results = compute_test_results(make_test(), make_devices(), [], [])

        assert results.static_pressure_bar is None
        assert results.dynamic_pressure_at_steps == []
        assert results.max_flow_observed_lpm is None
        assert results.pressure_drop_per_outlet is None
        assert results.warnings == []
        assert results.risk_flags == []


class TestWarningOrder:
    """Test warnings are ordered plausibility first, then completeness."""

    def test_plausibility_then_completeness(self):
        """Test per-observation findings come before plan findings."""
        steps = [make_step(0, 0), make_step(1, 1), make_step(2, 2)]
        observations = [
            make_obs(0, pressure=12.0),
            make_obs(1, pressure=3.0, flow=15.0, temp=30.0),
        ]

        results = compute_test_results(make_test(), make_devices(), steps, observations)
        codes = [w.code for w in results.warnings]

        assert codes == [
            WarningCode.PRESSURE_TOO_HIGH,
            WarningCode.TEMP_TOO_HIGH,
            WarningCode.STEP_NO_FLOW,
            WarningCode.NO_OBSERVATIONS,
        ]


class TestRiskIntegration:
    """Test risks raised through the full analysis."""

    def test_weak_supply(self):
        """Test low static pressure and collapse under load are both flagged."""
        steps = [make_step(0, 0), make_step(1, 1), make_step(2, 2)]
        observations = [
            make_obs(0, pressure=1.2, flow=0.0),
            make_obs(1, pressure=1.0, flow=8.0),
            make_obs(2, pressure=0.5, flow=11.0),
        ]

        results = compute_test_results(make_test(), make_devices(), steps, observations)
        codes = [r.code for r in results.risk_flags]

        assert codes == [
            RiskCode.LOW_STATIC_PRESSURE,
            RiskCode.PRESSURE_COLLAPSE_MULTI_OUTLET,
            RiskCode.LOW_DYNAMIC_PRESSURE,
        ]

    def test_second_device_temperatures_count(self):
        """Test temperatures from every device feed the stability rule."""
        steps = [make_step(0, 0), make_step(1, 1)]
        observations = [
            make_obs(0, pressure=3.5, flow=0.0, temp=10.0),
            make_obs(0, temp=10.0, device_id=DEVICE_B),
            make_obs(1, pressure=3.2, flow=15.0, temp=18.0),
            make_obs(1, temp=18.0, device_id=DEVICE_B),
        ]

        results = compute_test_results(make_test(), make_devices(), steps, observations)

        assert [r.code for r in results.risk_flags] == [RiskCode.TEMP_INSTABILITY_RISK]


class TestMalformedInput:
    """Test structural problems raise MalformedInput."""

    def setup_method(self):
        """Set up test fixtures."""
        self.test = make_test()
        self.devices = make_devices()
        self.steps = [make_step(0, 0), make_step(1, 1)]

    def test_unknown_step(self):
        """Test an observation for a step outside the test."""
        observations = [make_obs(7, pressure=3.0)]

        with pytest.raises(MalformedInput, match="unknown step"):
            compute_test_results(self.test, self.devices, self.steps, observations)

    def test_unknown_device(self):
        """Test an observation from a device outside the test."""
        observations = [make_obs(0, pressure=3.0, device_id="dev-z")]

        with pytest.raises(MalformedInput, match="unknown device"):
            compute_test_results(self.test, self.devices, self.steps, observations)

    def test_duplicate_step_index(self):
        """Test two steps with the same index."""
        steps = self.steps + [MainsTestStep(id="step-1b", index=1, label="Again", outlet_count=1)]

        with pytest.raises(MalformedInput, match="Duplicate step index"):
            compute_test_results(self.test, self.devices, steps, [])

    def test_step_from_other_test(self):
        """Test a step that belongs to a different test."""
        steps = [MainsTestStep(id="step-0", index=0, label="x", outlet_count=0, test_id="other")]

        with pytest.raises(MalformedInput):
            compute_test_results(self.test, self.devices, steps, [])

    def test_observation_from_other_test(self):
        """Test an observation that belongs to a different test."""
        obs = MainsTestObservation(
            id="o1", step_id="step-0", device_id="dev-a", pressure_bar=3.0, test_id="other"
        )

        with pytest.raises(MalformedInput):
            compute_test_results(self.test, self.devices, self.steps, [obs])

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_reading(self, value):
        """Test NaN and infinite readings are rejected."""
        observations = [make_obs(0, pressure=value)]

        with pytest.raises(MalformedInput, match="non-finite"):
            compute_test_results(self.test, self.devices, self.steps, observations)

    def test_malformed_input_is_value_error(self):
        """Test MalformedInput can be caught as ValueError."""
        assert issubclass(MalformedInput, ValueError)
