"""
Tests for Pressure Aggregation

Run with: pytest tests/test_pressure.py -v
"""

import pytest
from core.pressure import (
    median,
    compute_static_pressure,
    compute_dynamic_pressure_points,
    compute_max_flow,
    compute_pressure_drop_per_outlet,
)
from tests.factories import make_obs, make_point, make_step


class TestMedian:
    """Test the median helper."""

    def test_odd_count(self):
        """Test odd count returns the middle value."""
        assert median([3.4, 3.5, 3.6]) == pytest.approx(3.5)

    def test_even_count(self):
        """Test even count returns the mean of the middle two."""
        assert median([3.0, 4.0]) == pytest.approx(3.5)

    def test_unsorted_input(self):
        """Test input order does not matter."""
        assert median([5.0, 1.0, 3.0, 2.0]) == pytest.approx(2.5)

    def test_single_value(self):
        """Test a single value is its own median."""
        assert median([2.2]) == 2.2

    def test_empty_raises(self):
        """Test empty input is rejected."""
        with pytest.raises(ValueError):
            median([])

    def test_input_not_modified(self):
        """Test the caller's list is left untouched."""
        values = [3.0, 1.0, 2.0]
        median(values)
        assert values == [3.0, 1.0, 2.0]


class TestStaticPressure:
    """Test static pressure from the baseline step."""

    def test_median_of_step_0(self):
        """Test static pressure is the median of step 0 readings."""
        steps = [make_step(0, 0), make_step(1, 1)]
        observations = [
            make_obs(0, pressure=3.6),
            make_obs(0, pressure=3.4),
            make_obs(0, pressure=3.5),
            make_obs(1, pressure=2.0),
        ]

        assert compute_static_pressure(steps, observations) == pytest.approx(3.5)

    def test_missing_step_0(self):
        """Test static pressure is absent without an index-0 step."""
        steps = [make_step(1, 1)]
        observations = [make_obs(1, pressure=3.0)]

        assert compute_static_pressure(steps, observations) is None

    def test_step_0_without_pressure(self):
        """Test static pressure is absent when step 0 has only flow."""
        steps = [make_step(0, 0)]
        observations = [make_obs(0, flow=0.0, temp=11.0)]

        assert compute_static_pressure(steps, observations) is None

    def test_step_0_listed_last(self):
        """Test step 0 is found by index, not by position."""
        steps = [make_step(1, 1), make_step(0, 0)]
        observations = [make_obs(0, pressure=3.0), make_obs(0, pressure=4.0)]

        assert compute_static_pressure(steps, observations) == pytest.approx(3.5)


class TestDynamicPressurePoints:
    """Test the per-step pressure profile."""

    def test_point_statistics(self):
        """Test median, min, max and count per step."""
        steps = [make_step(0, 0), make_step(1, 1)]
        observations = [
            make_obs(0, pressure=3.5),
            make_obs(1, pressure=3.0),
            make_obs(1, pressure=3.4),
            make_obs(1, pressure=3.1),
        ]

        points = compute_dynamic_pressure_points(steps, observations)

        assert len(points) == 2
        p = points[1]
        assert p.step_index == 1
        assert p.outlet_count == 1
        assert p.pressure_bar == pytest.approx(3.1)
        assert p.min_pressure == pytest.approx(3.0)
        assert p.max_pressure == pytest.approx(3.4)
        assert p.sample_count == 3

    def test_steps_without_pressure_skipped(self):
        """Test steps without pressure readings produce no point."""
        steps = [make_step(0, 0), make_step(1, 1), make_step(2, 2)]
        observations = [
            make_obs(0, pressure=3.5),
            make_obs(1, flow=15.0),
            make_obs(2, pressure=2.8),
        ]

        points = compute_dynamic_pressure_points(steps, observations)

        assert [p.step_index for p in points] == [0, 2]

    def test_step_order_preserved(self):
        """Test points follow the given step order, not the index order."""
        steps = [make_step(2, 2), make_step(0, 0), make_step(1, 1)]
        observations = [
            make_obs(0, pressure=3.5),
            make_obs(1, pressure=3.2),
            make_obs(2, pressure=2.8),
        ]

        points = compute_dynamic_pressure_points(steps, observations)

        assert [p.step_index for p in points] == [2, 0, 1]


class TestMaxFlow:
    """Test the maximum observed flow."""

    def test_max_flow(self):
        """Test the largest flow reading is returned."""
        observations = [make_obs(1, flow=15.0), make_obs(2, flow=25.0), make_obs(0, pressure=3.5)]
        assert compute_max_flow(observations) == pytest.approx(25.0)

    def test_no_flow(self):
        """Test absent without flow readings."""
        assert compute_max_flow([make_obs(0, pressure=3.5)]) is None


class TestPressureDropPerOutlet:
    """Test the average drop per additional outlet."""

    def test_average_of_steps(self):
        """Test the mean of per-outlet drops over increasing pairs."""
        points = [make_point(0, 0, 3.5), make_point(1, 1, 3.2), make_point(2, 2, 2.8)]

        # (0.3 / 1 + 0.4 / 1) / 2
        assert compute_pressure_drop_per_outlet(points) == pytest.approx(0.35)

    def test_divides_by_outlet_increase(self):
        """Test a jump of several outlets is spread across them."""
        points = [make_point(0, 0, 3.0), make_point(1, 3, 1.5)]

        assert compute_pressure_drop_per_outlet(points) == pytest.approx(0.5)

    def test_non_increasing_pairs_ignored(self):
        """Test pairs where the outlet count does not rise are skipped."""
        points = [make_point(0, 1, 3.0), make_point(1, 1, 2.0), make_point(2, 0, 3.0)]

        assert compute_pressure_drop_per_outlet(points) is None

    def test_single_point(self):
        """Test absent with fewer than two points."""
        assert compute_pressure_drop_per_outlet([make_point(0, 0, 3.5)]) is None
