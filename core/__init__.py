"""
Core Module - Mains Supply Analyzer

This module contains the analysis engine for mains water performance tests:
- Data model (input records, results, warning and risk codes)
- Validation layer (plausibility and completeness)
- Pressure aggregation and supply curve
- Risk analysis and confidence estimation

These components are framework-agnostic and are used by both
the API and the Streamlit dashboard.
"""

from .models import (
    ConfidenceLevel,
    DynamicPressurePoint,
    MainsTest,
    MainsTestConfidence,
    MainsTestDevice,
    MainsTestObservation,
    MainsTestResults,
    MainsTestStep,
    MainsTestWarning,
    MalformedInput,
    ObservationMethod,
    QualityFlag,
    RiskCode,
    RiskFlag,
    RiskSeverity,
    SensorType,
    SupplyCurvePoint,
    WarningCategory,
    WarningCode,
    WarningSeverity,
)
from .validators import (
    UK_MAINS_PLAUSIBILITY_BOUNDS,
    MainsTestValidator,
    PlausibilityBounds,
    validate_observation,
    validate_test_completeness,
)
from .pressure import (
    compute_dynamic_pressure_points,
    compute_max_flow,
    compute_pressure_drop_per_outlet,
    compute_static_pressure,
    median,
)
from .supply_curve import compute_supply_curve_points
from .risk import RiskAnalyzer, analyze_risks
from .confidence import compute_confidence
from .analysis import compute_test_results

__all__ = [
    # Records
    "MainsTest",
    "MainsTestDevice",
    "MainsTestStep",
    "MainsTestObservation",
    "MainsTestWarning",
    "RiskFlag",
    "DynamicPressurePoint",
    "SupplyCurvePoint",
    "MainsTestConfidence",
    "MainsTestResults",
    "MalformedInput",

    # Enums
    "ConfidenceLevel",
    "ObservationMethod",
    "QualityFlag",
    "RiskCode",
    "RiskSeverity",
    "SensorType",
    "WarningCategory",
    "WarningCode",
    "WarningSeverity",

    # Validation
    "PlausibilityBounds",
    "UK_MAINS_PLAUSIBILITY_BOUNDS",
    "MainsTestValidator",
    "validate_observation",
    "validate_test_completeness",

    # Aggregation
    "median",
    "compute_static_pressure",
    "compute_dynamic_pressure_points",
    "compute_max_flow",
    "compute_pressure_drop_per_outlet",
    "compute_supply_curve_points",

    # Risk and confidence
    "RiskAnalyzer",
    "analyze_risks",
    "compute_confidence",

    # Orchestration
    "compute_test_results",
]

__version__ = "0.1.0"
