"""
Risk Analysis for Mains Water Supply

Turns the aggregated pressure figures and raw temperature readings into
engineering risk flags. Each rule is evaluated independently, so one
test can raise several flags and the same step can appear in more than
one of them.

Rules:
1. Low static pressure (critical below 1.0 bar, high below 1.5 bar)
2. Pressure collapse of more than 30% between consecutive steps when the
   later step has at least two outlets open
3. Low (critical) or marginal (medium) dynamic pressure under
   multi-outlet load
4. Cold feed temperature instability (population stddev above 3 °C)

Every flag carries a technical description with the computed numbers
and a plain-language statement for the customer.
"""

import math
from typing import Any, Dict, List, Optional, Sequence

from .models import (
    DynamicPressurePoint,
    MainsTestObservation,
    RiskCode,
    RiskFlag,
    RiskSeverity,
)


class RiskAnalyzer:
    """
    Rule engine producing RiskFlag records for one test.

    Thresholds can be overridden per instance; any key left out keeps its
    default value.

    Example:
        analyzer = RiskAnalyzer()
        flags = analyzer.analyze(
            static_pressure=1.2,
            dynamic_points=points,
            observations=observations
        )
        for flag in flags:
            print(f"[{flag.severity.value}] {flag.title}")
    """

    DEFAULT_THRESHOLDS: Dict[str, float] = {
        "low_static_bar": 1.5,          # typical UK minimum
        "critical_bar": 1.0,            # combi instability below this
        "collapse_drop_percent": 30.0,  # % drop between consecutive steps
        "multi_outlet_min": 2,          # outlets open to count as "load"
        "temp_stddev_c": 3.0,           # °C population stddev
        "temp_min_samples": 3,
    }

    def __init__(self, thresholds: Optional[Dict[str, float]] = None):
        """
        Initialize the risk analyzer.

        Args:
            thresholds: Partial overrides of DEFAULT_THRESHOLDS
        """
        self.thresholds = dict(self.DEFAULT_THRESHOLDS)
        if thresholds:
            self.thresholds.update(thresholds)

    def analyze(
        self,
        static_pressure: Optional[float],
        dynamic_points: Sequence[DynamicPressurePoint],
        observations: Sequence[MainsTestObservation]
    ) -> List[RiskFlag]:
        """
        Run all risk rules.

        Args:
            static_pressure: Static pressure in bar, or None if unknown
            dynamic_points: Dynamic pressure profile in step order
            observations: Raw observations (for temperature readings)

        Returns:
            Flags in rule order: static, collapse, dynamic, temperature
        """
        risks: List[RiskFlag] = []

        static_flag = self._check_static_pressure(static_pressure)
        if static_flag:
            risks.append(static_flag)

        risks.extend(self._check_pressure_collapse(dynamic_points))
        risks.extend(self._check_dynamic_pressure(dynamic_points))

        temp_flag = self._check_temperature_stability(observations)
        if temp_flag:
            risks.append(temp_flag)

        return risks

    # =========================================
    # Rules
    # =========================================

    def _check_static_pressure(self, static_pressure: Optional[float]) -> Optional[RiskFlag]:
        if static_pressure is None or static_pressure >= self.thresholds["low_static_bar"]:
            return None

        critical = static_pressure < self.thresholds["critical_bar"]
        return RiskFlag(
            code=RiskCode.LOW_STATIC_PRESSURE,
            severity=RiskSeverity.CRITICAL if critical else RiskSeverity.HIGH,
            title="Low Static Pressure",
            description=(
                f"Static pressure is {static_pressure:.2f} bar, which is below the "
                f"typical minimum of {self.thresholds['low_static_bar']} bar."
            ),
            customer_statement=(
                f"Your mains water pressure is {'critically' if critical else 'significantly'} "
                f"low at {static_pressure:.1f} bar. This may cause poor shower performance "
                f"and could affect combi boiler operation."
            ),
            recommendation=(
                "Consider installing a mains booster pump or contact your water supplier "
                "to investigate supply issues."
            ),
            context={"static_pressure": static_pressure},
        )

    def _check_pressure_collapse(self, points: Sequence[DynamicPressurePoint]) -> List[RiskFlag]:
        risks: List[RiskFlag] = []

        for prev, curr in zip(points, points[1:]):
            # No meaningful percentage from a zero or negative baseline
            if prev.pressure_bar <= 0:
                continue

            pressure_drop = prev.pressure_bar - curr.pressure_bar
            drop_percent = pressure_drop / prev.pressure_bar * 100

            if (drop_percent > self.thresholds["collapse_drop_percent"]
                    and curr.outlet_count >= self.thresholds["multi_outlet_min"]):
                risks.append(RiskFlag(
                    code=RiskCode.PRESSURE_COLLAPSE_MULTI_OUTLET,
                    severity=RiskSeverity.HIGH,
                    title="Significant Pressure Drop Under Load",
                    description=(
                        f"Pressure drops {drop_percent:.0f}% ({pressure_drop:.2f} bar) when "
                        f"increasing from {prev.outlet_count} to {curr.outlet_count} outlets."
                    ),
                    customer_statement=(
                        f"Running multiple taps simultaneously causes a significant pressure "
                        f"drop. Using {curr.outlet_count} outlets drops pressure by "
                        f"{drop_percent:.0f}%, which may cause temperature fluctuations or "
                        f"reduced flow."
                    ),
                    recommendation=(
                        "Consider investigating pipe sizing, potential blockages, or "
                        "installing a pressure accumulator."
                    ),
                    context={
                        "from_step": prev.step_index,
                        "to_step": curr.step_index,
                        "pressure_drop": pressure_drop,
                        "drop_percent": drop_percent,
                    },
                ))

        return risks

    def _check_dynamic_pressure(self, points: Sequence[DynamicPressurePoint]) -> List[RiskFlag]:
        risks: List[RiskFlag] = []

        for point in points:
            if point.outlet_count < self.thresholds["multi_outlet_min"]:
                continue

            context = {
                "step_index": point.step_index,
                "outlet_count": point.outlet_count,
                "pressure": point.pressure_bar,
            }

            if point.pressure_bar < self.thresholds["critical_bar"]:
                risks.append(RiskFlag(
                    code=RiskCode.LOW_DYNAMIC_PRESSURE,
                    severity=RiskSeverity.CRITICAL,
                    title="Critical Pressure Drop Under Demand",
                    description=(
                        f"Pressure falls to {point.pressure_bar:.2f} bar with "
                        f"{point.outlet_count} outlets open."
                    ),
                    customer_statement=(
                        f"When using {point.outlet_count} outlets together, your water "
                        f"pressure drops below 1 bar. This will likely cause combi boiler "
                        f"instability and poor performance from showers and taps."
                    ),
                    recommendation=(
                        "This is a critical issue. Consider upgrading pipework, installing a "
                        "pressure accumulator, or addressing supply restrictions."
                    ),
                    context=context,
                ))
            elif point.pressure_bar < self.thresholds["low_static_bar"]:
                usage = "a tap while showering" if point.outlet_count == 2 else "multiple taps"
                risks.append(RiskFlag(
                    code=RiskCode.COMBI_DHW_STABILITY_RISK,
                    severity=RiskSeverity.MEDIUM,
                    title="Combi DHW Stability Risk",
                    description=(
                        f"Pressure drops to {point.pressure_bar:.2f} bar with "
                        f"{point.outlet_count} outlets, below ideal combi operating pressure."
                    ),
                    customer_statement=(
                        f"Turning on {usage} may cause temperature instability or reduced "
                        f"flow from your combi boiler."
                    ),
                    recommendation=(
                        "Monitor combi performance during simultaneous use. Consider a "
                        "pressure accumulator if issues occur frequently."
                    ),
                    context=context,
                ))

        return risks

    def _check_temperature_stability(
        self,
        observations: Sequence[MainsTestObservation]
    ) -> Optional[RiskFlag]:
        temps = [o.water_temp_c for o in observations if o.water_temp_c is not None]
        if len(temps) < self.thresholds["temp_min_samples"]:
            return None

        avg_temp = sum(temps) / len(temps)
        # Population variance (divide by n, not n - 1)
        variance = sum((t - avg_temp) ** 2 for t in temps) / len(temps)
        std_dev = math.sqrt(variance)

        if std_dev <= self.thresholds["temp_stddev_c"]:
            return None

        context: Dict[str, Any] = {
            "avg_temp": avg_temp,
            "std_dev": std_dev,
            "sample_count": len(temps),
        }
        return RiskFlag(
            code=RiskCode.TEMP_INSTABILITY_RISK,
            severity=RiskSeverity.MEDIUM,
            title="Temperature Variation Detected",
            description=(
                f"Cold feed temperature varies significantly (±{std_dev:.1f}°C) during test."
            ),
            customer_statement=(
                "Your cold water temperature fluctuates during use, which may indicate hot "
                "water mixing back into the cold supply or supply issues."
            ),
            recommendation=(
                "Check for backflow prevention and ensure hot/cold supplies are properly "
                "isolated."
            ),
            context=context,
        )


def analyze_risks(
    static_pressure: Optional[float],
    dynamic_points: Sequence[DynamicPressurePoint],
    observations: Sequence[MainsTestObservation],
    thresholds: Optional[Dict[str, float]] = None
) -> List[RiskFlag]:
    """
    Convenience function to run the risk rules with default thresholds.

    Example:
        flags = analyze_risks(1.2, [], [])
        print(flags[0].code.value)  # LOW_STATIC_PRESSURE
    """
    return RiskAnalyzer(thresholds).analyze(static_pressure, dynamic_points, observations)
