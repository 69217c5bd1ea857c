"""
Data Model for Mains Performance Tests

This module defines the records exchanged with the analysis engine:

- Input records (read-only): MainsTest, MainsTestDevice, MainsTestStep,
  MainsTestObservation
- Output records: MainsTestWarning, RiskFlag, DynamicPressurePoint,
  SupplyCurvePoint, MainsTestConfidence, MainsTestResults

Optional readings are modelled as Optional[float] and default to None.
A missing reading is never represented by a sentinel value such as -1.

All output records expose to_dict() for JSON serialization.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# =========================================
# Enums
# =========================================

class WarningSeverity(Enum):
    """Severity of a validation finding (error > warning > info)."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class WarningCategory(Enum):
    """Which validator produced a finding."""
    PLAUSIBILITY = "plausibility"
    COMPLETENESS = "completeness"
    DATA_QUALITY = "data_quality"


class WarningCode(Enum):
    """Stable validation warning codes."""
    PRESSURE_TOO_LOW = "PRESSURE_TOO_LOW"
    PRESSURE_TOO_HIGH = "PRESSURE_TOO_HIGH"
    FLOW_TOO_LOW = "FLOW_TOO_LOW"
    FLOW_TOO_HIGH = "FLOW_TOO_HIGH"
    TEMP_TOO_LOW = "TEMP_TOO_LOW"
    TEMP_TOO_HIGH = "TEMP_TOO_HIGH"
    QUALITY_FLAGS_PRESENT = "QUALITY_FLAGS_PRESENT"
    STEP_0_NO_PRESSURE = "STEP_0_NO_PRESSURE"
    STEP_NO_FLOW = "STEP_NO_FLOW"
    NO_OBSERVATIONS = "NO_OBSERVATIONS"


class RiskSeverity(Enum):
    """Severity of an engineering risk (critical > high > medium)."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class RiskCode(Enum):
    """Stable risk flag codes."""
    LOW_STATIC_PRESSURE = "LOW_STATIC_PRESSURE"
    PRESSURE_COLLAPSE_MULTI_OUTLET = "PRESSURE_COLLAPSE_MULTI_OUTLET"
    LOW_DYNAMIC_PRESSURE = "LOW_DYNAMIC_PRESSURE"
    COMBI_DHW_STABILITY_RISK = "COMBI_DHW_STABILITY_RISK"
    TEMP_INSTABILITY_RISK = "TEMP_INSTABILITY_RISK"


class ConfidenceLevel(Enum):
    """Coarse confidence tier."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SensorType(Enum):
    """How a device captures readings."""
    MANUAL = "manual"
    BLUETOOTH = "bluetooth"
    WIFI = "wifi"
    WIRED = "wired"
    OTHER = "other"


class ObservationMethod(Enum):
    """How an observation was entered."""
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class QualityFlag(Enum):
    """Data-quality flags an engineer can attach to an observation."""
    ESTIMATED = "estimated"
    UNSTABLE = "unstable"
    SENSOR_SWAPPED = "sensor_swapped"
    AIR_IN_LINE = "air_in_line"
    PRESSURE_SURGE = "pressure_surge"
    FLOW_RESTRICTED = "flow_restricted"
    TEMPERATURE_ANOMALY = "temperature_anomaly"


# =========================================
# Errors
# =========================================

class MalformedInput(ValueError):
    """
    Raised when input records break the structural invariants of a test.

    This signals an upstream persistence bug (e.g. an observation that
    points at a step which is not part of the test), not a field-level
    data gap. Missing or implausible readings never raise.
    """


# =========================================
# Input Records
# =========================================

@dataclass
class MainsTest:
    """One mains performance survey session."""
    id: str
    source_point: str = "outside_tap"
    property_id: Optional[int] = None
    survey_id: Optional[int] = None
    ambient_temp_c: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[int] = None


@dataclass
class MainsTestDevice:
    """A measuring instrument used during a test (labelled A, B or C)."""
    id: str
    label: str
    location: str = ""
    sensor_type: SensorType = SensorType.MANUAL
    test_id: Optional[str] = None
    calibration_profile_id: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class MainsTestStep:
    """
    One configuration of open outlets.

    Index 0 is the "all outlets closed" baseline used for static pressure.
    """
    id: str
    index: int
    label: str
    outlet_count: int
    test_id: Optional[str] = None
    valve_state: Optional[str] = None
    duration_seconds: Optional[int] = None
    target_flow_lpm: Optional[float] = None
    notes: Optional[str] = None


@dataclass
class MainsTestObservation:
    """
    A single timestamped reading for one step and one device.

    Any non-empty subset of pressure, flow and temperature may be present.
    """
    id: str
    step_id: str
    device_id: str
    pressure_bar: Optional[float] = None
    flow_lpm: Optional[float] = None
    water_temp_c: Optional[float] = None
    quality_flags: List[str] = field(default_factory=list)
    method: ObservationMethod = ObservationMethod.MANUAL
    timestamp: Optional[datetime] = None
    test_id: Optional[str] = None
    entered_by: Optional[int] = None


# =========================================
# Output Records
# =========================================

@dataclass
class MainsTestWarning:
    """
    A validation finding. Warnings are collected, never raised.

    Attributes:
        code: Stable warning code
        severity: error, warning or info
        category: Validator that produced the finding
        message: Human-readable description
        suggested_fix: How the engineer can resolve it
        affected_fields: Names of the fields involved
        context: Values used to derive the finding
    """
    code: WarningCode
    severity: WarningSeverity
    category: WarningCategory
    message: str
    suggested_fix: Optional[str] = None
    affected_fields: List[str] = field(default_factory=list)
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "severity": self.severity.value,
            "category": self.category.value,
            "message": self.message,
            "suggested_fix": self.suggested_fix,
            "affected_fields": list(self.affected_fields),
            "context": dict(self.context),
        }


@dataclass
class RiskFlag:
    """
    An engineering conclusion about supply adequacy.

    Carries both a technical description and a plain-language statement
    that can be read out to the customer.
    """
    code: RiskCode
    severity: RiskSeverity
    title: str
    description: str
    customer_statement: str
    recommendation: str
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "customer_statement": self.customer_statement,
            "recommendation": self.recommendation,
            "context": dict(self.context),
        }


@dataclass
class DynamicPressurePoint:
    """Pressure aggregate for one step."""
    step_index: int
    step_label: str
    outlet_count: int
    pressure_bar: float        # median of the step's readings
    min_pressure: float
    max_pressure: float
    sample_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_index": self.step_index,
            "step_label": self.step_label,
            "outlet_count": self.outlet_count,
            "pressure_bar": self.pressure_bar,
            "min_pressure": self.min_pressure,
            "max_pressure": self.max_pressure,
            "sample_count": self.sample_count,
        }


@dataclass
class SupplyCurvePoint:
    """A flow/pressure pair for one device during one step."""
    flow_lpm: float
    pressure_bar: float
    step_index: int
    step_label: str
    temp_c: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flow_lpm": self.flow_lpm,
            "pressure_bar": self.pressure_bar,
            "temp_c": self.temp_c,
            "step_index": self.step_index,
            "step_label": self.step_label,
        }


@dataclass
class MainsTestConfidence:
    """Confidence tiers per measured dimension plus the reasons behind them."""
    overall: ConfidenceLevel
    pressure: ConfidenceLevel
    flow: ConfidenceLevel
    temperature: ConfidenceLevel
    factors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall.value,
            "pressure": self.pressure.value,
            "flow": self.flow.value,
            "temperature": self.temperature.value,
            "factors": list(self.factors),
        }


@dataclass
class MainsTestResults:
    """
    Complete analysis of one mains performance test.

    This is the only record the engine produces.
    """
    test_id: str
    static_pressure_bar: Optional[float]
    dynamic_pressure_at_steps: List[DynamicPressurePoint]
    max_flow_observed_lpm: Optional[float]
    pressure_drop_per_outlet: Optional[float]
    supply_curve_points: List[SupplyCurvePoint]
    warnings: List[MainsTestWarning]
    risk_flags: List[RiskFlag]
    computed_at: datetime
    confidence: MainsTestConfidence

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "test_id": self.test_id,
            "static_pressure_bar": self.static_pressure_bar,
            "dynamic_pressure_at_steps": [p.to_dict() for p in self.dynamic_pressure_at_steps],
            "max_flow_observed_lpm": self.max_flow_observed_lpm,
            "pressure_drop_per_outlet": self.pressure_drop_per_outlet,
            "supply_curve_points": [p.to_dict() for p in self.supply_curve_points],
            "warnings": [w.to_dict() for w in self.warnings],
            "risk_flags": [r.to_dict() for r in self.risk_flags],
            "computed_at": self.computed_at.isoformat(),
            "confidence": self.confidence.to_dict(),
        }
