"""
Supply Scenario Definitions for Synthetic Mains Tests

Each scenario describes a water supply and how it behaves as outlets are
opened, so that generated tests exercise the different analysis
outcomes:

- healthy: good static pressure, gentle drop under load
- weak_mains: low static pressure that gets worse under load
- pressure_collapse: pressure falls away once two outlets are open
- marginal_combi: fine on one outlet, marginal for a combi on two
- cold_feed_contamination: cold feed warms up as outlets open
- sensor_fault: healthy supply read by a faulty gauge

Hydraulic model:
    Dynamic pressure follows a simple parabolic supply curve

        P(q) = P_static * (1 - (q / q_max)^2)

    where q is the flow drawn and q_max the flow at which the supply
    can no longer hold any pressure.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from core.models import MainsTestStep


class SupplyProfile(Enum):
    """Types of supply that can be simulated."""
    HEALTHY = "healthy"
    WEAK_MAINS = "weak_mains"
    PRESSURE_COLLAPSE = "pressure_collapse"
    MARGINAL_COMBI = "marginal_combi"
    COLD_FEED_CONTAMINATION = "cold_feed_contamination"
    SENSOR_FAULT = "sensor_fault"


# Modifier signature: (base_value, step, sample_number) -> modified_value
Modifier = Callable[[float, MainsTestStep, int], float]


@dataclass
class SupplyScenario:
    """
    Definition of a supply scenario for simulation.

    Attributes:
        name: Human-readable scenario name
        profile: Type of supply being simulated
        description: Technical description of the supply
        template_id: Step plan the scenario is run with
        static_pressure_bar: Pressure with all outlets closed
        max_flow_lpm: Flow at which pressure reaches zero
        flow_per_outlet_lpm: Flow drawn by each open outlet
        cold_feed_temp_c: Temperature of the incoming water
        expected_risks: Risk codes the analysis should raise
        story: Narrative explanation for demos
        modifiers: Per-reading adjustments keyed by field name
            ("pressure_bar", "flow_lpm", "water_temp_c")
        quality_flags: Flags the engineer would attach, keyed by step index
    """
    name: str
    profile: SupplyProfile
    description: str
    template_id: str = "outlets-0-1-2-3"
    static_pressure_bar: float = 3.5
    max_flow_lpm: float = 60.0
    flow_per_outlet_lpm: float = 12.0
    cold_feed_temp_c: float = 11.0
    expected_risks: List[str] = field(default_factory=list)
    story: str = ""
    modifiers: Dict[str, Modifier] = field(default_factory=dict)
    quality_flags: Dict[int, List[str]] = field(default_factory=dict)

    def flow_for_step(self, step: MainsTestStep) -> float:
        """Flow drawn during a step (target flow wins over outlet count)."""
        if step.target_flow_lpm is not None:
            return step.target_flow_lpm
        return self.flow_per_outlet_lpm * step.outlet_count

    def pressure_at_flow(self, flow_lpm: float) -> float:
        """Dynamic pressure on the scenario's supply curve."""
        ratio = min(flow_lpm / self.max_flow_lpm, 1.0)
        return self.static_pressure_bar * (1.0 - ratio ** 2)

    def apply_modifier(
        self,
        field_name: str,
        base_value: float,
        step: MainsTestStep,
        sample: int
    ) -> float:
        """Apply the scenario's modifier for a field, if any."""
        if field_name in self.modifiers:
            return self.modifiers[field_name](base_value, step, sample)
        return base_value

    def get_affected_fields(self) -> List[str]:
        """Return list of reading fields altered by this scenario."""
        return list(self.modifiers.keys())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.profile.value,
            "description": self.description,
            "template_id": self.template_id,
            "static_pressure_bar": self.static_pressure_bar,
            "max_flow_lpm": self.max_flow_lpm,
            "expected_risks": list(self.expected_risks),
            "affected_fields": self.get_affected_fields(),
        }


class ScenarioLibrary:
    """
    Library of pre-defined supply scenarios.

    Usage:
        scenario = ScenarioLibrary.weak_mains()
        all_scenarios = ScenarioLibrary.get_all_scenarios()
        scenario = ScenarioLibrary.get_scenario_by_profile(SupplyProfile.SENSOR_FAULT)
    """

    @staticmethod
    def healthy() -> SupplyScenario:
        """Good mains: 3.5 bar static, under 25% loss with three outlets."""
        return SupplyScenario(
            name="Healthy Mains",
            profile=SupplyProfile.HEALTHY,
            description="Adequate static pressure and flow with a gentle drop under load",
            static_pressure_bar=3.5,
            max_flow_lpm=60.0,
            flow_per_outlet_lpm=12.0,
            story="""
            HEALTHY MAINS
            ==================================================
            Static pressure around 3.5 bar. Opening three outlets
            draws about 36 L/min and pressure only falls to ~2.2 bar.

            Expected: no risk flags, high confidence.
            ==================================================
            """,
        )

    @staticmethod
    def weak_mains() -> SupplyScenario:
        """Low static pressure with a small supply pipe."""
        return SupplyScenario(
            name="Weak Mains",
            profile=SupplyProfile.WEAK_MAINS,
            description="Static pressure below 1.5 bar that falls under 1 bar with two outlets open",
            static_pressure_bar=1.1,
            max_flow_lpm=40.0,
            flow_per_outlet_lpm=9.0,
            expected_risks=["LOW_STATIC_PRESSURE", "LOW_DYNAMIC_PRESSURE"],
            story="""
            WEAK MAINS
            ==================================================
            Typical of the end of a long rural main or a property on
            high ground. Static is ~1.1 bar; with two outlets open the
            pressure drops to ~0.9 bar and with three to ~0.6 bar.

            Expected: LOW_STATIC_PRESSURE (high) and
            LOW_DYNAMIC_PRESSURE (critical).
            ==================================================
            """,
        )

    @staticmethod
    def pressure_collapse() -> SupplyScenario:
        """Good static pressure that cannot sustain flow."""
        return SupplyScenario(
            name="Pressure Collapse Under Load",
            profile=SupplyProfile.PRESSURE_COLLAPSE,
            description="Restricted supply pipe: pressure drops by more than 30% once two outlets are open",
            static_pressure_bar=3.0,
            max_flow_lpm=32.0,
            flow_per_outlet_lpm=10.5,
            expected_risks=["PRESSURE_COLLAPSE_MULTI_OUTLET", "LOW_DYNAMIC_PRESSURE"],
            story="""
            PRESSURE COLLAPSE
            ==================================================
            A 3 bar static reading looks healthy, but the supply pipe
            is undersized or partly blocked. The pressure drops from
            ~2.7 to ~1.7 bar when the second outlet opens and to
            ~0.1 bar with three.

            Expected: PRESSURE_COLLAPSE_MULTI_OUTLET (high) and
            LOW_DYNAMIC_PRESSURE (critical).
            ==================================================
            """,
        )

    @staticmethod
    def marginal_combi() -> SupplyScenario:
        """Supply that is borderline for a combination boiler."""
        return SupplyScenario(
            name="Marginal for Combi",
            profile=SupplyProfile.MARGINAL_COMBI,
            description="Pressure stays above 1 bar on two outlets but below the 1.5 bar combi comfort level",
            template_id="quick-2-outlet",
            static_pressure_bar=2.0,
            max_flow_lpm=40.0,
            flow_per_outlet_lpm=11.0,
            expected_risks=["COMBI_DHW_STABILITY_RISK"],
            story="""
            MARGINAL COMBI SUPPLY
            ==================================================
            Static ~2.0 bar. One outlet is fine, but running a tap
            while showering leaves ~1.4 bar at the boiler.

            Expected: COMBI_DHW_STABILITY_RISK (medium).
            ==================================================
            """,
        )

    @staticmethod
    def cold_feed_contamination() -> SupplyScenario:
        """Cold feed picking up heat as outlets are opened."""

        def temp_modifier(base: float, step: MainsTestStep, sample: int) -> float:
            """Cold feed warms by ~4 °C for each outlet opened."""
            return base + 4.0 * step.outlet_count

        return SupplyScenario(
            name="Cold Feed Contamination",
            profile=SupplyProfile.COLD_FEED_CONTAMINATION,
            description="Hot water migrating into the cold feed during simultaneous use",
            cold_feed_temp_c=10.0,
            expected_risks=["TEMP_INSTABILITY_RISK"],
            story="""
            COLD FEED CONTAMINATION
            ==================================================
            Hydraulically healthy, but the cold feed warms from ~10 °C
            to ~22 °C as outlets open, pointing at a failed check
            valve or a cross-connection.

            Expected: TEMP_INSTABILITY_RISK (medium).
            ==================================================
            """,
            modifiers={
                "water_temp_c": temp_modifier,
            },
        )

    @staticmethod
    def sensor_fault() -> SupplyScenario:
        """Healthy supply recorded with a faulty pressure gauge."""

        def pressure_modifier(base: float, step: MainsTestStep, sample: int) -> float:
            """Gauge spikes off-scale on the first sample of every loaded step."""
            if step.outlet_count > 0 and sample == 0:
                return 12.5
            return base

        return SupplyScenario(
            name="Faulty Pressure Gauge",
            profile=SupplyProfile.SENSOR_FAULT,
            description="Off-scale pressure spikes from a faulty gauge; the engineer flags unstable readings",
            story="""
            SENSOR FAULT
            ==================================================
            The supply is fine but the gauge jumps to 12.5 bar when
            each outlet opens. The engineer notices and flags the
            loaded steps as unstable.

            Expected: PRESSURE_TOO_HIGH errors, quality-flag notes and
            reduced confidence.
            ==================================================
            """,
            modifiers={
                "pressure_bar": pressure_modifier,
            },
            quality_flags={
                1: ["unstable"],
                2: ["unstable"],
                3: ["unstable", "pressure_surge"],
            },
        )

    @classmethod
    def get_all_scenarios(cls) -> List[SupplyScenario]:
        """Return all available pre-built scenarios."""
        return [
            cls.healthy(),
            cls.weak_mains(),
            cls.pressure_collapse(),
            cls.marginal_combi(),
            cls.cold_feed_contamination(),
            cls.sensor_fault(),
        ]

    @classmethod
    def get_scenario_by_profile(cls, profile: SupplyProfile) -> Optional[SupplyScenario]:
        """
        Get a specific scenario by its supply profile.

        Returns:
            SupplyScenario or None if the profile has no scenario
        """
        for scenario in cls.get_all_scenarios():
            if scenario.profile == profile:
                return scenario
        return None

    @classmethod
    def get_scenario_names(cls) -> List[str]:
        """Return list of all scenario names."""
        return [s.name for s in cls.get_all_scenarios()]
