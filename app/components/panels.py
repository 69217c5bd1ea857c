"""
Explanation Panels

This module renders the parts of a mains test result that an engineer
reads out to the customer: risk flags with their plain-language
statements, validation warnings, the confidence rating and the
scenario story.
"""

import streamlit as st
from typing import List, Dict, Any, Optional


# =========================================
# Color and Severity Utilities
# =========================================

SEVERITY_COLORS = {
    "critical": "#EF4444",
    "high": "#F97316",
    "medium": "#FBBF24",
    "error": "#EF4444",
    "warning": "#FBBF24",
    "info": "#3B82F6",
    "low": "#EF4444",
    "ok": "#10B981",
}

SEVERITY_EMOJIS = {
    "critical": "🔴",
    "high": "🔶",
    "medium": "⚠️",
    "error": "🔴",
    "warning": "🟡",
    "info": "🔵",
}

CONFIDENCE_COLORS = {
    "high": "#10B981",
    "medium": "#FBBF24",
    "low": "#EF4444",
}


def get_severity_color(severity: str) -> str:
    """Get color for a severity."""
    return SEVERITY_COLORS.get(severity.lower(), "#6B7280")


def get_severity_emoji(severity: str) -> str:
    """Get emoji for a severity."""
    return SEVERITY_EMOJIS.get(severity.lower(), "❓")


# =========================================
# Headline Metrics
# =========================================

def render_headline_metrics(results: Dict[str, Any]) -> None:
    """Render static pressure, max flow, drop per outlet and overall confidence."""
    static = results.get("static_pressure_bar")
    max_flow = results.get("max_flow_observed_lpm")
    drop = results.get("pressure_drop_per_outlet")
    overall = results.get("confidence", {}).get("overall", "low")

    cols = st.columns(4)
    with cols[0]:
        st.metric(
            "Static Pressure",
            f"{static:.2f} bar" if static is not None else "n/a",
            help="Median pressure with all outlets closed"
        )
    with cols[1]:
        st.metric(
            "Max Flow",
            f"{max_flow:.1f} L/min" if max_flow is not None else "n/a",
            help="Highest flow recorded during the test"
        )
    with cols[2]:
        st.metric(
            "Drop per Outlet",
            f"{drop:.2f} bar" if drop is not None else "n/a",
            help="Mean pressure lost for each extra outlet opened"
        )
    with cols[3]:
        st.metric("Confidence", overall.upper())


# =========================================
# Risk Flags
# =========================================

def render_risk_flags(risk_flags: List[Dict[str, Any]]) -> None:
    """
    Render risk flags as cards with the customer statement and the
    recommended action.
    """
    st.markdown("### 🚩 Risk Flags")

    if not risk_flags:
        st.success("✅ No supply risks identified")
        return

    for flag in risk_flags:
        severity = flag.get("severity", "medium")
        color = get_severity_color(severity)
        emoji = get_severity_emoji(severity)

        card_html = f"""
        <div style="
            padding: 14px;
            background: rgba(31, 41, 55, 0.6);
            border-radius: 8px;
            border-left: 4px solid {color};
            margin-bottom: 12px;
        ">
            <div style="
                display: flex;
                justify-content: space-between;
                align-items: center;
                margin-bottom: 8px;
            ">
                <span style="font-weight: 600; color: #F3F4F6;">{emoji} {flag.get('title', '')}</span>
                <span style="
                    font-size: 0.75rem;
                    color: {color};
                    background: {color}20;
                    padding: 2px 8px;
                    border-radius: 4px;
                    text-transform: uppercase;
                ">{severity}</span>
            </div>
            <div style="font-size: 0.9rem; color: #D1D5DB; margin-bottom: 8px;">
                {flag.get('description', '')}
            </div>
            <div style="font-size: 0.9rem; color: #9CA3AF; font-style: italic; margin-bottom: 8px;">
                "{flag.get('customer_statement', '')}"
            </div>
            <div style="font-size: 0.85rem; color: #60A5FA;">
                🔧 {flag.get('recommendation', '')}
            </div>
        </div>
        """
        st.markdown(card_html, unsafe_allow_html=True)


# =========================================
# Validation Warnings
# =========================================

def render_warnings(warnings: List[Dict[str, Any]], show_fixes: bool = True) -> None:
    """Render validation warnings grouped by severity."""
    st.markdown("### 🔍 Data Checks")

    if not warnings:
        st.success("✅ All readings passed plausibility and completeness checks")
        return

    for severity in ("error", "warning", "info"):
        for warning in (w for w in warnings if w.get("severity") == severity):
            text = f"{get_severity_emoji(severity)} **{warning.get('code')}**: {warning.get('message')}"
            if show_fixes and warning.get("suggested_fix"):
                text += f"  \n💡 {warning['suggested_fix']}"

            if severity == "error":
                st.error(text)
            elif severity == "warning":
                st.warning(text)
            else:
                st.info(text)


# =========================================
# Confidence
# =========================================

def render_confidence(confidence: Dict[str, Any]) -> None:
    """Render the confidence tiers and the factors behind them."""
    overall = confidence.get("overall", "low")
    color = CONFIDENCE_COLORS.get(overall, "#6B7280")

    html = f"""
    <div style="
        padding: 16px;
        background: {color}10;
        border-left: 4px solid {color};
        border-radius: 0 8px 8px 0;
        margin: 12px 0;
    ">
        <div style="font-weight: 600; color: {color}; font-size: 1rem; margin-bottom: 8px;">
            Overall confidence: {overall.title()}
        </div>
        <div style="color: #D1D5DB; font-size: 0.9rem;">
            Pressure: {confidence.get('pressure', '').title()} ·
            Flow: {confidence.get('flow', '').title()} ·
            Temperature: {confidence.get('temperature', '').title()}
        </div>
    </div>
    """
    st.markdown(html, unsafe_allow_html=True)

    factors = confidence.get("factors", [])
    if factors:
        st.markdown("**What limits confidence:**")
        for factor in factors:
            st.markdown(f"- {factor}")


# =========================================
# Scenario Story
# =========================================

def render_scenario_story(
    scenario_name: str,
    story: str,
    expected_risks: Optional[List[str]] = None
) -> None:
    """
    Render a supply scenario story with the risks it should raise.

    Args:
        scenario_name: Name of the scenario
        story: The story text
        expected_risks: Risk codes the analysis is expected to flag
    """
    st.markdown(f"### 📖 Scenario: {scenario_name}")

    if expected_risks:
        pills_html = '<div style="display: flex; gap: 8px; flex-wrap: wrap; margin-bottom: 16px;">'
        for code in expected_risks:
            pills_html += f"""
            <span style="
                background: #1E3A5F;
                color: #60A5FA;
                padding: 4px 12px;
                border-radius: 20px;
                font-size: 0.8rem;
            ">{code.replace('_', ' ').title()}</span>
            """
        pills_html += "</div>"
        st.markdown(pills_html, unsafe_allow_html=True)

    story_html = f"""
    <div style="
        padding: 20px;
        background: linear-gradient(135deg, rgba(31, 41, 55, 0.8), rgba(17, 24, 39, 0.95));
        border-radius: 12px;
        border: 1px solid #374151;
        font-size: 0.9rem;
        line-height: 1.6;
        color: #D1D5DB;
        white-space: pre-wrap;
    ">{story.strip()}</div>
    """
    st.markdown(story_html, unsafe_allow_html=True)
