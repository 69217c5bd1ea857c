"""
Tests for Risk Analysis

These tests verify that each risk rule fires at its thresholds,
carries the computed numbers, and that rules are independent of each
other.

Run with: pytest tests/test_risk.py -v
"""

import pytest
from core.models import RiskCode, RiskSeverity
from core.risk import RiskAnalyzer, analyze_risks
from tests.factories import make_obs, make_point


class TestStaticPressureRule:
    """Test the low static pressure rule."""

    def setup_method(self):
        """Set up test fixtures."""
        self.analyzer = RiskAnalyzer()

    def test_good_static_pressure(self):
        """Test no flag at or above 1.5 bar."""
        assert self.analyzer.analyze(1.5, [], []) == []
        assert self.analyzer.analyze(3.5, [], []) == []

    def test_low_static_pressure_is_high(self):
        """Test 1.0-1.5 bar raises a high severity flag."""
        flags = self.analyzer.analyze(1.2, [], [])

        assert len(flags) == 1
        assert flags[0].code == RiskCode.LOW_STATIC_PRESSURE
        assert flags[0].severity == RiskSeverity.HIGH
        assert "significantly" in flags[0].customer_statement
        assert flags[0].context["static_pressure"] == pytest.approx(1.2)

    def test_very_low_static_pressure_is_critical(self):
        """Test below 1.0 bar raises a critical flag."""
        flags = self.analyzer.analyze(0.8, [], [])

        assert flags[0].severity == RiskSeverity.CRITICAL
        assert "critically" in flags[0].customer_statement
        assert "0.80 bar" in flags[0].description

    def test_unknown_static_pressure(self):
        """Test an absent static pressure never flags."""
        assert self.analyzer.analyze(None, [], []) == []


class TestPressureCollapseRule:
    """Test the consecutive-step pressure collapse rule."""

    def setup_method(self):
        """Set up test fixtures."""
        self.analyzer = RiskAnalyzer()

    def _collapse_flags(self, points):
        return [
            f for f in self.analyzer.analyze(None, points, [])
            if f.code == RiskCode.PRESSURE_COLLAPSE_MULTI_OUTLET
        ]

    def test_collapse_under_multi_outlet_load(self):
        """Test a drop over 30% into a two-outlet step fires."""
        points = [make_point(1, 1, 3.0), make_point(2, 2, 2.0)]

        flags = self._collapse_flags(points)

        assert len(flags) == 1
        assert flags[0].severity == RiskSeverity.HIGH
        assert flags[0].context["from_step"] == 1
        assert flags[0].context["to_step"] == 2
        assert flags[0].context["pressure_drop"] == pytest.approx(1.0)
        assert flags[0].context["drop_percent"] == pytest.approx(100 / 3)
        assert "33%" in flags[0].description

    def test_single_outlet_drop_ignored(self):
        """Test a large drop into a one-outlet step does not fire."""
        points = [make_point(0, 0, 3.5), make_point(1, 1, 1.5)]

        assert self._collapse_flags(points) == []

    def test_exactly_30_percent_ignored(self):
        """Test the threshold is strictly greater than 30%."""
        points = [make_point(1, 1, 5.0), make_point(2, 2, 3.5)]

        assert self._collapse_flags(points) == []

    def test_small_drop_never_fires(self):
        """Test a 2.5% drop never fires regardless of outlet count."""
        points = [make_point(1, 1, 4.0), make_point(2, 2, 3.9), make_point(3, 5, 3.8025)]

        assert self._collapse_flags(points) == []

    def test_zero_baseline_skipped(self):
        """Test a zero-pressure previous step produces no flag."""
        points = [make_point(1, 1, 0.0), make_point(2, 2, 0.0)]

        assert self._collapse_flags(points) == []


class TestDynamicPressureRule:
    """Test the low and marginal pressure under load rules."""

    def setup_method(self):
        """Set up test fixtures."""
        self.analyzer = RiskAnalyzer()

    def test_critical_dynamic_pressure(self):
        """Test below 1.0 bar with two outlets is critical."""
        flags = self.analyzer.analyze(None, [make_point(2, 2, 0.9)], [])

        assert len(flags) == 1
        assert flags[0].code == RiskCode.LOW_DYNAMIC_PRESSURE
        assert flags[0].severity == RiskSeverity.CRITICAL
        assert flags[0].context == {"step_index": 2, "outlet_count": 2, "pressure": 0.9}

    def test_marginal_dynamic_pressure(self):
        """Test 1.0-1.5 bar with two outlets is a combi stability risk."""
        flags = self.analyzer.analyze(None, [make_point(2, 2, 1.3)], [])

        assert len(flags) == 1
        assert flags[0].code == RiskCode.COMBI_DHW_STABILITY_RISK
        assert flags[0].severity == RiskSeverity.MEDIUM
        assert "a tap while showering" in flags[0].customer_statement

    def test_marginal_with_many_outlets(self):
        """Test the customer wording changes beyond two outlets."""
        flags = self.analyzer.analyze(None, [make_point(3, 3, 1.3)], [])

        assert "multiple taps" in flags[0].customer_statement

    def test_single_outlet_ignored(self):
        """Test low pressure on one outlet is not a load risk."""
        assert self.analyzer.analyze(None, [make_point(1, 1, 0.5)], []) == []

    def test_healthy_pressure_under_load(self):
        """Test 1.5 bar and above under load is fine."""
        assert self.analyzer.analyze(None, [make_point(2, 2, 1.5)], []) == []


class TestTemperatureRule:
    """Test the cold feed temperature stability rule."""

    def setup_method(self):
        """Set up test fixtures."""
        self.analyzer = RiskAnalyzer()

    def test_stable_temperature(self):
        """Test small variation does not flag."""
        observations = [make_obs(0, temp=t) for t in (11.0, 12.0, 13.0)]

        assert self.analyzer.analyze(None, [], observations) == []

    def test_unstable_temperature(self):
        """Test a population stddev above 3°C flags."""
        # mean 15, population stddev 4
        observations = [make_obs(0, temp=t) for t in (11.0, 11.0, 19.0, 19.0)]

        flags = self.analyzer.analyze(None, [], observations)

        assert len(flags) == 1
        assert flags[0].code == RiskCode.TEMP_INSTABILITY_RISK
        assert flags[0].severity == RiskSeverity.MEDIUM
        assert flags[0].context["avg_temp"] == pytest.approx(15.0)
        assert flags[0].context["std_dev"] == pytest.approx(4.0)
        assert flags[0].context["sample_count"] == 4

    def test_too_few_samples(self):
        """Test fewer than 3 readings never flag."""
        observations = [make_obs(0, temp=5.0), make_obs(1, temp=25.0)]

        assert self.analyzer.analyze(None, [], observations) == []

    def test_population_not_sample_stddev(self):
        """Test the stddev divides by n, not n - 1."""
        # Population stddev = 3.0 (no flag); sample stddev = 3.46 (would flag)
        observations = [make_obs(0, temp=t) for t in (10.0, 10.0, 16.0, 16.0)]

        assert self.analyzer.analyze(None, [], observations) == []


class TestRuleIndependence:
    """Test rules run independently and in a fixed order."""

    def test_overlapping_flags_all_reported(self):
        """Test collapse and low dynamic pressure both fire for one step."""
        points = [make_point(0, 0, 1.2), make_point(1, 1, 1.0), make_point(2, 2, 0.5)]

        codes = [f.code for f in analyze_risks(1.2, points, [])]

        assert codes == [
            RiskCode.LOW_STATIC_PRESSURE,
            RiskCode.PRESSURE_COLLAPSE_MULTI_OUTLET,
            RiskCode.LOW_DYNAMIC_PRESSURE,
        ]

    def test_threshold_override(self):
        """Test custom thresholds only replace the keys given."""
        analyzer = RiskAnalyzer({"low_static_bar": 2.0})

        assert analyzer.thresholds["critical_bar"] == 1.0
        assert analyzer.analyze(1.8, [], [])[0].code == RiskCode.LOW_STATIC_PRESSURE

    def test_defaults_not_shared(self):
        """Test overriding thresholds does not touch the class defaults."""
        RiskAnalyzer({"low_static_bar": 2.0})

        assert RiskAnalyzer.DEFAULT_THRESHOLDS["low_static_bar"] == 1.5
