"""
Dashboard Components Module

Reusable UI components for the Streamlit dashboard.

Components:
- charts: Plotly-based visualization components
- panels: Risk flag, data check and confidence panels
- tables: pandas DataFrame helpers
"""

from .charts import (
    create_supply_curve_chart,
    create_dynamic_pressure_chart,
    create_confidence_chart,
    create_step_readings_chart,
    fit_supply_trend,
)
from .panels import (
    render_headline_metrics,
    render_risk_flags,
    render_warnings,
    render_confidence,
    render_scenario_story,
)
from .tables import (
    observations_to_dataframe,
    summarize_by_step,
    dynamic_points_to_dataframe,
    warnings_to_dataframe,
)

__all__ = [
    # Charts
    "create_supply_curve_chart",
    "create_dynamic_pressure_chart",
    "create_confidence_chart",
    "create_step_readings_chart",
    "fit_supply_trend",

    # Panels
    "render_headline_metrics",
    "render_risk_flags",
    "render_warnings",
    "render_confidence",
    "render_scenario_story",

    # Tables
    "observations_to_dataframe",
    "summarize_by_step",
    "dynamic_points_to_dataframe",
    "warnings_to_dataframe",
]
