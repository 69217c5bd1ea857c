"""
Tests for the Supply Curve Builder

Run with: pytest tests/test_supply_curve.py -v
"""

import pytest
from core.supply_curve import compute_supply_curve_points
from tests.factories import DEVICE_A, DEVICE_B, make_obs, make_step


class TestSupplyCurvePoints:
    """Test point emission and ordering."""

    def setup_method(self):
        """Set up test fixtures."""
        self.steps = [make_step(0, 0), make_step(1, 1), make_step(2, 2)]

    def test_sorted_by_flow(self):
        """Test points come out in ascending flow order."""
        observations = [
            make_obs(2, pressure=2.8, flow=25.0),
            make_obs(0, pressure=3.5, flow=0.0),
            make_obs(1, pressure=3.2, flow=15.0),
        ]

        points = compute_supply_curve_points(self.steps, observations)

        assert [p.flow_lpm for p in points] == [0.0, 15.0, 25.0]
        assert [p.step_index for p in points] == [0, 1, 2]

    def test_ties_keep_input_order(self):
        """Test equal flows keep their step and device order."""
        observations = [
            make_obs(1, pressure=3.2, flow=15.0, device_id=DEVICE_A),
            make_obs(1, pressure=3.1, flow=15.0, device_id=DEVICE_B),
            make_obs(2, pressure=2.9, flow=15.0, device_id=DEVICE_A),
        ]

        points = compute_supply_curve_points(self.steps, observations)

        assert [p.pressure_bar for p in points] == [3.2, 3.1, 2.9]

    def test_one_point_per_device_and_step(self):
        """Test each device contributes its own point for a step."""
        observations = [
            make_obs(1, pressure=3.2, flow=14.0, device_id=DEVICE_A),
            make_obs(1, pressure=3.0, flow=16.0, device_id=DEVICE_B),
        ]

        points = compute_supply_curve_points(self.steps, observations)

        assert len(points) == 2
        assert all(p.step_label == "Step 1" for p in points)

    def test_values_from_different_devices_never_merge(self):
        """Test pressure on one device and flow on another give no point."""
        observations = [
            make_obs(1, pressure=3.2, device_id=DEVICE_A),
            make_obs(1, flow=15.0, device_id=DEVICE_B),
        ]

        assert compute_supply_curve_points(self.steps, observations) == []

    def test_partial_observations_fold_per_field(self):
        """Test a later flow-only reading does not erase an earlier pressure."""
        observations = [
            make_obs(1, pressure=3.2, temp=12.0),
            make_obs(1, flow=15.0),
        ]

        points = compute_supply_curve_points(self.steps, observations)

        assert len(points) == 1
        assert points[0].pressure_bar == pytest.approx(3.2)
        assert points[0].flow_lpm == pytest.approx(15.0)
        assert points[0].temp_c == pytest.approx(12.0)

    def test_last_value_wins(self):
        """Test later readings replace earlier ones for the same field."""
        observations = [
            make_obs(1, pressure=3.4, flow=14.0),
            make_obs(1, pressure=3.1),
            make_obs(1, flow=16.0),
        ]

        points = compute_supply_curve_points(self.steps, observations)

        assert len(points) == 1
        assert points[0].pressure_bar == pytest.approx(3.1)
        assert points[0].flow_lpm == pytest.approx(16.0)

    def test_pressure_only_discarded(self):
        """Test a device with only pressure is not defaulted to zero flow."""
        observations = [make_obs(0, pressure=3.5)]

        assert compute_supply_curve_points(self.steps, observations) == []

    def test_temperature_optional(self):
        """Test temperature is carried when known and absent otherwise."""
        observations = [make_obs(1, pressure=3.2, flow=15.0)]

        points = compute_supply_curve_points(self.steps, observations)

        assert points[0].temp_c is None

    def test_observations_of_unlisted_steps_ignored(self):
        """Test only the given steps are scanned."""
        observations = [make_obs(5, pressure=3.0, flow=10.0)]

        assert compute_supply_curve_points(self.steps, observations) == []
