"""
Chart Components for Dashboard

This module provides Plotly-based chart components for visualizing
mains test results: the supply curve, the dynamic pressure profile
and the confidence rating.

All charts take the JSON form of the results (as returned by the API
or by MainsTestResults.to_dict()) so they work the same for local
simulations and stored tests.
"""

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots
from typing import List, Dict, Any, Optional


# =========================================
# Color Schemes
# =========================================

COLORS = {
    "ok": "#10B981",         # Green
    "medium": "#FBBF24",     # Yellow
    "high": "#F97316",       # Orange
    "critical": "#EF4444",   # Red
    "primary": "#3B82F6",    # Blue
    "secondary": "#6B7280",  # Gray
    "background": "#1F2937", # Dark gray
    "text": "#F9FAFB",       # Light text
    "grid": "#374151",       # Grid lines
}

CONFIDENCE_LEVELS = {"low": 1, "medium": 2, "high": 3}

CONFIDENCE_COLORS = {
    "high": COLORS["ok"],
    "medium": COLORS["medium"],
    "low": COLORS["critical"],
}

# Pressure bands used by the risk rules (bar)
CRITICAL_PRESSURE_BAR = 1.0
MARGINAL_PRESSURE_BAR = 1.5

STEP_PALETTE = ["#3B82F6", "#10B981", "#FBBF24", "#F97316", "#A855F7", "#EC4899", "#14B8A6"]


def get_pressure_color(pressure_bar: float) -> str:
    """Get color for a pressure reading against the risk bands."""
    if pressure_bar < CRITICAL_PRESSURE_BAR:
        return COLORS["critical"]
    elif pressure_bar < MARGINAL_PRESSURE_BAR:
        return COLORS["medium"]
    return COLORS["ok"]


# =========================================
# Chart Layout Defaults
# =========================================

def get_default_layout(title: str = "", height: int = 400) -> dict:
    """Get default chart layout settings."""
    return {
        "title": {
            "text": title,
            "font": {"size": 16, "color": COLORS["text"]},
            "x": 0.5,
            "xanchor": "center"
        },
        "paper_bgcolor": "rgba(0,0,0,0)",
        "plot_bgcolor": "rgba(0,0,0,0)",
        "height": height,
        "margin": {"l": 60, "r": 40, "t": 60, "b": 60},
        "font": {"color": COLORS["text"], "size": 12},
        "xaxis": {
            "gridcolor": COLORS["grid"],
            "showgrid": True,
            "zeroline": False,
        },
        "yaxis": {
            "gridcolor": COLORS["grid"],
            "showgrid": True,
            "zeroline": False,
        },
        "legend": {
            "bgcolor": "rgba(0,0,0,0.5)",
            "bordercolor": COLORS["grid"],
            "font": {"color": COLORS["text"]}
        },
        "hovermode": "closest",
    }


def _add_pressure_bands(fig: go.Figure) -> None:
    """Shade the critical and marginal pressure bands."""
    fig.add_hrect(
        y0=0, y1=CRITICAL_PRESSURE_BAR,
        fillcolor=COLORS["critical"], opacity=0.12, line_width=0,
        annotation_text="Critical", annotation_position="right",
        annotation_font_size=10, annotation_font_color=COLORS["critical"],
    )
    fig.add_hrect(
        y0=CRITICAL_PRESSURE_BAR, y1=MARGINAL_PRESSURE_BAR,
        fillcolor=COLORS["medium"], opacity=0.12, line_width=0,
        annotation_text="Marginal", annotation_position="right",
        annotation_font_size=10, annotation_font_color=COLORS["medium"],
    )


# =========================================
# Supply Curve
# =========================================

def fit_supply_trend(
    flows: List[float],
    pressures: List[float],
    samples: int = 50
) -> Optional[Dict[str, List[float]]]:
    """
    Fit a quadratic trend through the supply curve points.

    Pipe friction losses grow roughly with the square of flow, so a
    second-order polynomial is a reasonable smooth guide for the eye.

    Returns:
        {"flow": [...], "pressure": [...]} or None with fewer than
        three distinct flow values
    """
    if len(set(flows)) < 3:
        return None

    coeffs = np.polyfit(np.asarray(flows, dtype=float), np.asarray(pressures, dtype=float), 2)
    x = np.linspace(min(flows), max(flows), samples)
    y = np.clip(np.polyval(coeffs, x), 0.0, None)
    return {"flow": x.tolist(), "pressure": y.tolist()}


def create_supply_curve_chart(
    points: List[Dict[str, Any]],
    static_pressure: Optional[float] = None,
    title: str = "Supply Curve",
    height: int = 420,
    show_trend: bool = True
) -> go.Figure:
    """
    Create a flow vs pressure chart.

    Args:
        points: Supply curve points (flow_lpm, pressure_bar, step_index, step_label)
        static_pressure: Static pressure to mark at zero flow
        title: Chart title
        height: Chart height in pixels
        show_trend: Whether to overlay the fitted quadratic trend

    Returns:
        Plotly Figure object
    """
    fig = go.Figure()
    _add_pressure_bands(fig)

    # One trace per step so the legend reads as the test plan
    by_step: Dict[int, List[Dict[str, Any]]] = {}
    for p in points:
        by_step.setdefault(p["step_index"], []).append(p)

    for i, (step_index, step_points) in enumerate(sorted(by_step.items())):
        fig.add_trace(go.Scatter(
            x=[p["flow_lpm"] for p in step_points],
            y=[p["pressure_bar"] for p in step_points],
            mode="markers",
            name=f"{step_index}: {step_points[0]['step_label']}",
            marker={"size": 11, "color": STEP_PALETTE[i % len(STEP_PALETTE)]},
            hovertemplate="<b>%{y:.2f} bar</b> at %{x:.1f} L/min<extra></extra>"
        ))

    if show_trend and points:
        trend = fit_supply_trend(
            [p["flow_lpm"] for p in points],
            [p["pressure_bar"] for p in points]
        )
        if trend:
            fig.add_trace(go.Scatter(
                x=trend["flow"],
                y=trend["pressure"],
                mode="lines",
                name="Trend",
                line={"color": COLORS["secondary"], "width": 2, "dash": "dot"},
                hoverinfo="skip"
            ))

    if static_pressure is not None:
        fig.add_trace(go.Scatter(
            x=[0],
            y=[static_pressure],
            mode="markers",
            name="Static",
            marker={"size": 14, "symbol": "diamond", "color": COLORS["text"]},
            hovertemplate="<b>Static %{y:.2f} bar</b><extra></extra>"
        ))

    max_pressure = max([p["pressure_bar"] for p in points] + [static_pressure or 0, 2.0])

    layout = get_default_layout(title, height)
    layout["xaxis"]["title"] = "Flow (L/min)"
    layout["xaxis"]["rangemode"] = "tozero"
    layout["yaxis"]["title"] = "Pressure (bar)"
    layout["yaxis"]["range"] = [0, max_pressure * 1.15]
    fig.update_layout(**layout)

    return fig


# =========================================
# Dynamic Pressure Profile
# =========================================

def create_dynamic_pressure_chart(
    points: List[Dict[str, Any]],
    title: str = "Pressure per Step",
    height: int = 380
) -> go.Figure:
    """
    Create a bar chart of median pressure per step with min/max whiskers.

    Args:
        points: Dynamic pressure points in step order
        title: Chart title
        height: Chart height in pixels

    Returns:
        Plotly Figure object
    """
    labels = [f"{p['step_index']}: {p['step_label']}" for p in points]
    medians = [p["pressure_bar"] for p in points]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=labels,
        y=medians,
        marker_color=[get_pressure_color(m) for m in medians],
        error_y={
            "type": "data",
            "symmetric": False,
            "array": [p["max_pressure"] - p["pressure_bar"] for p in points],
            "arrayminus": [p["pressure_bar"] - p["min_pressure"] for p in points],
            "color": COLORS["text"],
        },
        customdata=[[p["outlet_count"], p["sample_count"]] for p in points],
        hovertemplate=(
            "<b>%{y:.2f} bar</b><br>Outlets: %{customdata[0]}"
            "<br>Samples: %{customdata[1]}<extra></extra>"
        ),
        name="Median pressure"
    ))

    for level, color, name in [
        (MARGINAL_PRESSURE_BAR, COLORS["medium"], "Combi comfort"),
        (CRITICAL_PRESSURE_BAR, COLORS["critical"], "Critical"),
    ]:
        fig.add_hline(
            y=level,
            line_dash="dash",
            line_color=color,
            annotation_text=f"{name} ({level} bar)",
            annotation_position="right",
            annotation_font_color=color,
        )

    layout = get_default_layout(title, height)
    layout["yaxis"]["title"] = "Pressure (bar)"
    layout["yaxis"]["rangemode"] = "tozero"
    layout["hovermode"] = "x unified"
    fig.update_layout(**layout)

    return fig


# =========================================
# Confidence Chart
# =========================================

def create_confidence_chart(
    confidence: Dict[str, Any],
    title: str = "Confidence",
    height: int = 260
) -> go.Figure:
    """
    Create a horizontal bar chart of the confidence tiers.

    Args:
        confidence: Confidence dict (overall, pressure, flow, temperature)
        title: Chart title
        height: Chart height in pixels

    Returns:
        Plotly Figure object
    """
    dimensions = ["overall", "pressure", "flow", "temperature"]
    tiers = [confidence[d] for d in dimensions]

    fig = go.Figure(go.Bar(
        x=[CONFIDENCE_LEVELS[t] for t in tiers],
        y=[d.title() for d in dimensions],
        orientation="h",
        marker_color=[CONFIDENCE_COLORS[t] for t in tiers],
        text=[t.upper() for t in tiers],
        textposition="inside",
        hoverinfo="skip",
    ))

    layout = get_default_layout(title, height)
    layout["xaxis"].update({
        "range": [0, 3],
        "tickvals": [1, 2, 3],
        "ticktext": ["Low", "Medium", "High"],
    })
    layout["yaxis"]["autorange"] = "reversed"
    layout["showlegend"] = False
    fig.update_layout(**layout)

    return fig


# =========================================
# Step Readings Overview
# =========================================

def create_step_readings_chart(
    step_summary: List[Dict[str, Any]],
    title: str = "Readings per Step",
    height: int = 420
) -> go.Figure:
    """
    Create a two-row chart of mean flow and mean temperature per step.

    Args:
        step_summary: Rows with step_label, flow_mean and temp_mean
            (see tables.summarize_by_step)
        title: Chart title
        height: Chart height in pixels

    Returns:
        Plotly Figure object
    """
    labels = [row["step_label"] for row in step_summary]

    fig = make_subplots(
        rows=2, cols=1,
        shared_xaxes=True,
        vertical_spacing=0.12,
        subplot_titles=("Flow (L/min)", "Water temperature (°C)")
    )

    fig.add_trace(go.Bar(
        x=labels,
        y=[row.get("flow_mean") for row in step_summary],
        marker_color=COLORS["primary"],
        name="Flow"
    ), row=1, col=1)

    fig.add_trace(go.Scatter(
        x=labels,
        y=[row.get("temp_mean") for row in step_summary],
        mode="lines+markers",
        line={"color": COLORS["high"], "width": 2},
        name="Temperature"
    ), row=2, col=1)

    fig.update_layout(
        title={"text": title, "x": 0.5, "xanchor": "center", "font": {"color": COLORS["text"]}},
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font={"color": COLORS["text"]},
        height=height,
        showlegend=False,
    )
    fig.update_xaxes(gridcolor=COLORS["grid"])
    fig.update_yaxes(gridcolor=COLORS["grid"])

    return fig
