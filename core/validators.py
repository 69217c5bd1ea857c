"""
Mains Test Validation Layer

This module checks raw mains test readings before they are aggregated.
It has two parts:

- Plausibility: each observation's pressure, flow and temperature are
  compared against fixed UK mains bounds
- Completeness: the step plan is checked for missing readings

Philosophy:
- Hard failures: outside what a domestic supply can physically produce -> error
- Soft warnings: possible but suspicious -> warning
- Quality flags set by the engineer -> info
- Nothing here raises. Findings are returned as MainsTestWarning records
  and the analysis carries on with whatever data is available.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .models import (
    MainsTestObservation,
    MainsTestStep,
    MainsTestWarning,
    WarningCategory,
    WarningCode,
    WarningSeverity,
)


@dataclass(frozen=True)
class PlausibilityBounds:
    """
    Plausibility bounds for UK mains cold-water readings.

    Hard limits (min/max) produce errors, soft limits (warn_*) produce
    warnings. Temperature bounds assume the test runs on a cold feed.
    """
    pressure_min: float = 0.0            # bar
    pressure_max: float = 10.0           # bar - very high for UK mains
    pressure_warn_low: float = 1.0       # bar - below this is concerning
    pressure_warn_high: float = 6.0      # bar - above this is unusual
    flow_min: float = 0.0                # L/min
    flow_max: float = 100.0              # L/min
    flow_warn_high: float = 60.0         # L/min - very high for domestic
    temp_min: float = 0.0                # °C
    temp_max: float = 60.0               # °C
    temp_cold_feed_max: float = 25.0     # °C - cold water should not exceed this


UK_MAINS_PLAUSIBILITY_BOUNDS = PlausibilityBounds()


def _group_by_step(
    observations: Sequence[MainsTestObservation]
) -> Dict[str, List[MainsTestObservation]]:
    """Group observations by step id, preserving their order."""
    grouped: Dict[str, List[MainsTestObservation]] = {}
    for obs in observations:
        grouped.setdefault(obs.step_id, []).append(obs)
    return grouped


class MainsTestValidator:
    """
    Validator for mains performance test data.

    Example:
        validator = MainsTestValidator()
        warnings = validator.validate_observation(observation)
        warnings += validator.validate_completeness(steps, observations)
    """

    def __init__(self, bounds: Optional[PlausibilityBounds] = None):
        """
        Initialize the validator.

        Args:
            bounds: Custom plausibility bounds. If None, uses UK mains defaults.
        """
        self.bounds = bounds or UK_MAINS_PLAUSIBILITY_BOUNDS

    # =========================================
    # Plausibility
    # =========================================

    def validate_observation(self, observation: MainsTestObservation) -> List[MainsTestWarning]:
        """
        Check one observation's readings against the plausibility bounds.

        Checks run in a fixed order: pressure, flow, temperature, quality flags.
        For each field, hard bounds take precedence over soft bounds and at
        most one finding is produced.

        Args:
            observation: The observation to check

        Returns:
            Newly created list of warnings (empty if everything is plausible)
        """
        warnings: List[MainsTestWarning] = []

        warnings.extend(self._validate_pressure(observation))
        warnings.extend(self._validate_flow(observation))
        warnings.extend(self._validate_temperature(observation))
        warnings.extend(self._validate_quality_flags(observation))

        return warnings

    def _plausibility_warning(
        self,
        code: WarningCode,
        severity: WarningSeverity,
        message: str,
        suggested_fix: str,
        field_name: str,
        observation: MainsTestObservation,
        value: float
    ) -> MainsTestWarning:
        return MainsTestWarning(
            code=code,
            severity=severity,
            category=WarningCategory.PLAUSIBILITY,
            message=message,
            suggested_fix=suggested_fix,
            affected_fields=[field_name],
            context={"observation_id": observation.id, "value": value},
        )

    def _validate_pressure(self, observation: MainsTestObservation) -> List[MainsTestWarning]:
        pressure = observation.pressure_bar
        if pressure is None:
            return []

        b = self.bounds

        if pressure < b.pressure_min:
            return [self._plausibility_warning(
                WarningCode.PRESSURE_TOO_LOW,
                WarningSeverity.ERROR,
                f"Pressure {pressure} bar is below minimum ({b.pressure_min} bar). Check measurement.",
                "Verify sensor is working correctly. Negative pressure suggests sensor error.",
                "pressure_bar", observation, pressure,
            )]
        elif pressure > b.pressure_max:
            return [self._plausibility_warning(
                WarningCode.PRESSURE_TOO_HIGH,
                WarningSeverity.ERROR,
                f"Pressure {pressure} bar exceeds maximum ({b.pressure_max} bar). Check measurement.",
                f"UK mains pressure rarely exceeds {b.pressure_max} bar. Verify reading and sensor calibration.",
                "pressure_bar", observation, pressure,
            )]
        elif pressure < b.pressure_warn_low:
            return [self._plausibility_warning(
                WarningCode.PRESSURE_TOO_LOW,
                WarningSeverity.WARNING,
                f"Pressure {pressure} bar is low (below {b.pressure_warn_low} bar).",
                "Low pressure may indicate supply issues or measurement during high demand.",
                "pressure_bar", observation, pressure,
            )]
        elif pressure > b.pressure_warn_high:
            return [self._plausibility_warning(
                WarningCode.PRESSURE_TOO_HIGH,
                WarningSeverity.WARNING,
                f"Pressure {pressure} bar is high (above {b.pressure_warn_high} bar).",
                "High pressure may require a pressure reducing valve.",
                "pressure_bar", observation, pressure,
            )]

        return []

    def _validate_flow(self, observation: MainsTestObservation) -> List[MainsTestWarning]:
        flow = observation.flow_lpm
        if flow is None:
            return []

        b = self.bounds

        if flow < b.flow_min:
            return [self._plausibility_warning(
                WarningCode.FLOW_TOO_LOW,
                WarningSeverity.ERROR,
                f"Flow {flow} L/min is negative. Check measurement.",
                "Flow rate should not be negative. Verify sensor connection and flow direction.",
                "flow_lpm", observation, flow,
            )]
        elif flow > b.flow_max:
            return [self._plausibility_warning(
                WarningCode.FLOW_TOO_HIGH,
                WarningSeverity.ERROR,
                f"Flow {flow} L/min exceeds maximum ({b.flow_max} L/min). Check measurement.",
                "Flow rate seems implausibly high for domestic supply. Verify reading.",
                "flow_lpm", observation, flow,
            )]
        elif flow > b.flow_warn_high:
            return [self._plausibility_warning(
                WarningCode.FLOW_TOO_HIGH,
                WarningSeverity.WARNING,
                f"Flow {flow} L/min is very high (above {b.flow_warn_high} L/min).",
                "Very high flow rate - confirm this is accurate for your test setup.",
                "flow_lpm", observation, flow,
            )]

        return []

    def _validate_temperature(self, observation: MainsTestObservation) -> List[MainsTestWarning]:
        temp = observation.water_temp_c
        if temp is None:
            return []

        b = self.bounds

        if temp < b.temp_min:
            return [self._plausibility_warning(
                WarningCode.TEMP_TOO_LOW,
                WarningSeverity.ERROR,
                f"Temperature {temp}°C is below freezing. Check measurement.",
                "Temperature below 0°C suggests sensor error or frozen pipes.",
                "water_temp_c", observation, temp,
            )]
        elif temp > b.temp_max:
            return [self._plausibility_warning(
                WarningCode.TEMP_TOO_HIGH,
                WarningSeverity.ERROR,
                f"Temperature {temp}°C exceeds maximum ({b.temp_max}°C). Check measurement.",
                "Temperature seems implausibly high. Verify sensor.",
                "water_temp_c", observation, temp,
            )]
        elif temp > b.temp_cold_feed_max:
            # Cold feed warmer than expected: hot water may be mixing back
            return [self._plausibility_warning(
                WarningCode.TEMP_TOO_HIGH,
                WarningSeverity.WARNING,
                f"Cold water temperature {temp}°C is unusually high (above {b.temp_cold_feed_max}°C).",
                "Cold feed temperature is warmer than expected. May indicate hot water contamination.",
                "water_temp_c", observation, temp,
            )]

        return []

    def _validate_quality_flags(self, observation: MainsTestObservation) -> List[MainsTestWarning]:
        if not observation.quality_flags:
            return []

        return [MainsTestWarning(
            code=WarningCode.QUALITY_FLAGS_PRESENT,
            severity=WarningSeverity.INFO,
            category=WarningCategory.DATA_QUALITY,
            message=f"Observation has quality flags: {', '.join(observation.quality_flags)}",
            affected_fields=["quality_flags"],
            context={"observation_id": observation.id, "flags": list(observation.quality_flags)},
        )]

    # =========================================
    # Completeness
    # =========================================

    def validate_completeness(
        self,
        steps: Sequence[MainsTestStep],
        observations: Sequence[MainsTestObservation]
    ) -> List[MainsTestWarning]:
        """
        Check that the step plan is covered by observations.

        Three independent rules, evaluated in this order over every step:
        1. The index-0 step must have at least one pressure reading
        2. Steps with open outlets must have at least one flow reading
        3. Every step must have at least one observation

        A single step can trigger more than one rule.

        Args:
            steps: All steps of the test
            observations: All observations of the test

        Returns:
            Newly created list of completeness warnings
        """
        by_step = _group_by_step(observations)
        warnings: List[MainsTestWarning] = []

        warnings.extend(self._check_static_step(steps, by_step))
        warnings.extend(self._check_flow_coverage(steps, by_step))
        warnings.extend(self._check_empty_steps(steps, by_step))

        return warnings

    def _check_static_step(
        self,
        steps: Sequence[MainsTestStep],
        by_step: Dict[str, List[MainsTestObservation]]
    ) -> List[MainsTestWarning]:
        step0 = next((s for s in steps if s.index == 0), None)
        if step0 is None:
            return []

        has_pressure = any(o.pressure_bar is not None for o in by_step.get(step0.id, []))
        if has_pressure:
            return []

        return [MainsTestWarning(
            code=WarningCode.STEP_0_NO_PRESSURE,
            severity=WarningSeverity.WARNING,
            category=WarningCategory.COMPLETENESS,
            message="Step 0 (static pressure) has no pressure readings. Cannot compute static pressure.",
            suggested_fix="Add at least one pressure reading for step 0 with all outlets closed.",
            affected_fields=["observations"],
            context={"step_id": step0.id},
        )]

    def _check_flow_coverage(
        self,
        steps: Sequence[MainsTestStep],
        by_step: Dict[str, List[MainsTestObservation]]
    ) -> List[MainsTestWarning]:
        warnings = []

        for step in steps:
            if step.outlet_count <= 0:
                continue

            has_flow = any(o.flow_lpm is not None for o in by_step.get(step.id, []))
            if not has_flow:
                warnings.append(MainsTestWarning(
                    code=WarningCode.STEP_NO_FLOW,
                    severity=WarningSeverity.WARNING,
                    category=WarningCategory.COMPLETENESS,
                    message=(
                        f'Step {step.index} "{step.label}" indicates {step.outlet_count} '
                        f"outlet(s) open but has no flow readings."
                    ),
                    suggested_fix="Add flow readings for this step or adjust outlet count.",
                    affected_fields=["observations"],
                    context={
                        "step_id": step.id,
                        "step_index": step.index,
                        "step_label": step.label,
                        "outlet_count": step.outlet_count,
                    },
                ))

        return warnings

    def _check_empty_steps(
        self,
        steps: Sequence[MainsTestStep],
        by_step: Dict[str, List[MainsTestObservation]]
    ) -> List[MainsTestWarning]:
        warnings = []

        for step in steps:
            if by_step.get(step.id):
                continue

            warnings.append(MainsTestWarning(
                code=WarningCode.NO_OBSERVATIONS,
                severity=WarningSeverity.WARNING,
                category=WarningCategory.COMPLETENESS,
                message=f'Step {step.index} "{step.label}" has no observations.',
                suggested_fix="Add observations for this step or remove it from the test.",
                affected_fields=["observations"],
                context={"step_id": step.id, "step_index": step.index},
            ))

        return warnings


def validate_observation(
    observation: MainsTestObservation,
    bounds: Optional[PlausibilityBounds] = None
) -> List[MainsTestWarning]:
    """
    Convenience function to check a single observation.

    Example:
        warnings = validate_observation(MainsTestObservation(
            id="obs-1", step_id="step-0", device_id="dev-a", pressure_bar=11.2
        ))
        print(warnings[0].code)  # WarningCode.PRESSURE_TOO_HIGH
    """
    return MainsTestValidator(bounds).validate_observation(observation)


def validate_test_completeness(
    steps: Sequence[MainsTestStep],
    observations: Sequence[MainsTestObservation]
) -> List[MainsTestWarning]:
    """Convenience function to check step coverage for a whole test."""
    return MainsTestValidator().validate_completeness(steps, observations)
