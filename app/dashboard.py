"""
Mains Supply Analyzer - Streamlit Dashboard

Dashboard for running and reviewing mains water supply performance
tests.

Features:
- Local scenario simulation (no API needed)
- Stored test review through the API
- Supply curve and per-step pressure charts
- Risk flags, data checks and confidence explained

Run with: streamlit run app/dashboard.py
"""

import os
import sys
from pathlib import Path
from typing import Dict, Any, Optional

import pandas as pd
import requests
import streamlit as st

# Analysis packages live at the repository root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from engine.generator import generate_scenario_test
from engine.supply_scenarios import ScenarioLibrary, SupplyProfile

# Import components
from components.charts import (
    create_supply_curve_chart,
    create_dynamic_pressure_chart,
    create_confidence_chart,
    create_step_readings_chart,
)
from components.panels import (
    render_headline_metrics,
    render_risk_flags,
    render_warnings,
    render_confidence,
    render_scenario_story,
)
from components.tables import (
    observations_to_dataframe,
    summarize_by_step,
    dynamic_points_to_dataframe,
    warnings_to_dataframe,
)


# =========================================
# Configuration
# =========================================

API_URL = os.getenv("API_URL", "http://localhost:8000")

# Page configuration
st.set_page_config(
    page_title="Mains Supply Analyzer",
    page_icon="🚰",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
<style>
    /* Main container */
    .main .block-container {
        padding-top: 2rem;
        padding-bottom: 2rem;
    }

    /* Headers */
    h1, h2, h3 {
        color: #F9FAFB !important;
    }

    /* Metrics */
    [data-testid="stMetric"] {
        background: rgba(31, 41, 55, 0.6);
        border-radius: 10px;
        padding: 15px;
        border: 1px solid #374151;
    }

    /* Sidebar */
    [data-testid="stSidebar"] {
        background: linear-gradient(180deg, #1F2937 0%, #111827 100%);
    }

    /* Buttons */
    .stButton > button {
        background: linear-gradient(90deg, #3B82F6, #2563EB);
        color: white;
        border: none;
        border-radius: 8px;
        padding: 10px 20px;
        font-weight: 600;
    }

    /* Hide Streamlit branding */
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
""", unsafe_allow_html=True)


# =========================================
# API Helper Functions
# =========================================

@st.cache_data(ttl=30)
def fetch_api(endpoint: str) -> Optional[Dict[str, Any]]:
    """Fetch data from API with caching."""
    try:
        response = requests.get(f"{API_URL}{endpoint}", timeout=10)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"API Error: {e}")
        return None


def post_api(endpoint: str, data: Dict[str, Any] = None) -> Optional[Dict[str, Any]]:
    """POST to API."""
    try:
        response = requests.post(f"{API_URL}{endpoint}", json=data, timeout=30)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"API Error: {e}")
        return None


def check_api_health() -> bool:
    """Check if API is available."""
    try:
        response = requests.get(f"{API_URL}/health", timeout=5)
        return response.status_code == 200
    except requests.exceptions.RequestException:
        return False


# =========================================
# Sidebar
# =========================================

def render_sidebar() -> bool:
    """Render the sidebar with the API status and quick actions."""
    with st.sidebar:
        st.markdown("## 🚰 Mains Supply Analyzer")
        st.markdown("---")

        # API Status
        api_healthy = check_api_health()
        if api_healthy:
            st.success("🟢 API Connected")
        else:
            st.warning("🟠 API Disconnected (local simulation only)")
            st.info(f"API URL: {API_URL}")

        st.markdown("---")

        # Quick Actions
        st.subheader("⚡ Quick Actions")

        if st.button("🔄 Refresh Data", use_container_width=True):
            st.cache_data.clear()
            st.rerun()

        return api_healthy


# =========================================
# Results Section (shared)
# =========================================

def render_results(results: Dict[str, Any]) -> None:
    """Render headline metrics, charts and explanations for one result."""
    render_headline_metrics(results)

    st.markdown("---")

    col1, col2 = st.columns([3, 2])
    with col1:
        fig = create_supply_curve_chart(
            results["supply_curve_points"],
            static_pressure=results.get("static_pressure_bar")
        )
        st.plotly_chart(fig, use_container_width=True)
    with col2:
        if results["dynamic_pressure_at_steps"]:
            fig = create_dynamic_pressure_chart(results["dynamic_pressure_at_steps"])
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("No pressure readings recorded")

    st.markdown("---")

    col1, col2 = st.columns(2)
    with col1:
        render_risk_flags(results["risk_flags"])
    with col2:
        st.plotly_chart(create_confidence_chart(results["confidence"]), use_container_width=True)
        render_confidence(results["confidence"])

    st.markdown("---")

    render_warnings(results["warnings"])

    with st.expander("📋 Tables", expanded=False):
        st.markdown("**Pressure per step**")
        st.dataframe(
            dynamic_points_to_dataframe(results["dynamic_pressure_at_steps"]),
            use_container_width=True
        )
        if results["warnings"]:
            st.markdown("**Data checks**")
            st.dataframe(warnings_to_dataframe(results["warnings"]), use_container_width=True)


# =========================================
# Scenario Simulator Page
# =========================================

def render_simulator_page():
    """Generate a synthetic test locally and analyze it."""
    st.title("🧪 Scenario Simulator")

    st.markdown("""
    Simulate a mains test for a typical supply and see how the analysis
    reads it. Everything runs locally, no API needed.
    """)

    scenarios = {s.profile.value: s for s in ScenarioLibrary.get_all_scenarios()}

    col1, col2, col3 = st.columns([2, 1, 1])
    with col1:
        selected = st.selectbox(
            "Select Supply Scenario",
            options=list(scenarios.keys()),
            format_func=lambda x: scenarios[x].name
        )
    with col2:
        samples = st.number_input("Readings per step", min_value=1, max_value=20, value=3)
    with col3:
        seed = st.number_input("Random seed", min_value=0, value=42)

    scenario = scenarios[selected]
    st.markdown(f"**Description:** {scenario.description}")

    with st.expander("📖 View Scenario Story", expanded=False):
        render_scenario_story(scenario.name, scenario.story, scenario.expected_risks)

    generated = generate_scenario_test(
        SupplyProfile(selected),
        random_seed=int(seed),
        samples_per_step=int(samples)
    )
    results = generated.analyze().to_dict()

    st.markdown("---")
    render_results(results)

    st.markdown("---")
    st.markdown("### 👁️ Generated Readings")

    df = observations_to_dataframe(generated.steps, generated.devices, generated.observations)
    summary = summarize_by_step(df)

    st.plotly_chart(
        create_step_readings_chart(summary.to_dict("records")),
        use_container_width=True
    )
    st.dataframe(df, use_container_width=True)

    st.download_button(
        "⬇️ Download test as JSON",
        data=generated.to_json(),
        file_name=f"mains-test-{selected}.json",
        mime="application/json"
    )


# =========================================
# Stored Tests Page
# =========================================

def render_stored_tests_page(api_healthy: bool):
    """Review tests stored through the API."""
    st.title("📊 Stored Tests")

    if not api_healthy:
        st.error("The API is not reachable. Start it with: python -m api.main")
        return

    col1, col2 = st.columns([2, 1])
    with col1:
        property_id = st.number_input("Property ID", min_value=0, value=0)
    with col2:
        st.markdown("&nbsp;")
        if st.button("🧪 Store a Demo Test", use_container_width=True):
            result = post_api("/api/v1/scenarios/generate", {
                "scenario_type": "pressure_collapse",
                "property_id": int(property_id),
                "persist": True
            })
            if result and result.get("success"):
                st.success(f"Stored test {result['test_id']}")
                st.cache_data.clear()

    listing = fetch_api(f"/api/v1/mains-tests/property/{int(property_id)}")
    if not listing or not listing.get("tests"):
        st.info("No tests stored for this property")
        return

    test_options = {t["id"]: f"{t['created_at'][:16]} ({t['source_point']})" for t in listing["tests"]}
    test_id = st.selectbox(
        "Select Test",
        options=list(test_options.keys()),
        format_func=lambda x: test_options[x]
    )

    data = fetch_api(f"/api/v1/mains-tests/{test_id}/results")
    if not data:
        return

    st.caption(f"Analysis version {data.get('analysis_version')}")
    render_results(data["results"])

    st.markdown("---")
    st.markdown("### 👁️ Recorded Readings")

    df = pd.DataFrame(data["observations"])
    if not df.empty:
        step_labels = {s["id"]: f"{s['index']}: {s['label']}" for s in data["steps"]}
        device_labels = {d["id"]: d["label"] for d in data["devices"]}
        df["step"] = df["step_id"].map(step_labels)
        df["device"] = df["device_id"].map(device_labels)

        display_cols = ["timestamp", "step", "device", "pressure_bar",
                        "flow_lpm", "water_temp_c", "quality_flags", "method"]
        st.dataframe(df[display_cols], use_container_width=True)


# =========================================
# About Page
# =========================================

def render_about_page():
    """Render the about page."""
    st.title("ℹ️ About Mains Supply Analyzer")

    st.markdown("""
    ## Mains Water Supply Performance Testing

    Before fitting a combination boiler or an unvented cylinder, an engineer
    needs to know whether the incoming mains can cope. This tool turns a
    short multi-step test into an engineering verdict.

    ### 🧪 The Test

    | Step | Outlets open | What it tells you |
    |------|-------------|-------------------|
    | 0 | None | Static pressure |
    | 1 | One | Pressure and flow for a single draw-off |
    | 2+ | More | How the supply holds up under simultaneous demand |

    ### 🚩 What Gets Flagged

    - **Low static pressure** below 1.5 bar
    - **Pressure collapse** of 30% or more between multi-outlet steps
    - **Low dynamic pressure** under demand (critical below 1.0 bar)
    - **Temperature variation** in the cold feed

    ### 🛠️ Technology Stack

    - **Backend**: FastAPI + SQLAlchemy
    - **Frontend**: Streamlit + Plotly
    """)


# =========================================
# Main Application
# =========================================

def main():
    """Main application entry point."""
    api_healthy = render_sidebar()

    # Navigation
    st.sidebar.markdown("---")
    st.sidebar.subheader("📍 Navigation")

    page = st.sidebar.radio(
        "Go to",
        ["🧪 Scenario Simulator", "📊 Stored Tests", "ℹ️ About"],
        label_visibility="collapsed"
    )

    if page == "🧪 Scenario Simulator":
        render_simulator_page()
    elif page == "📊 Stored Tests":
        render_stored_tests_page(api_healthy)
    elif page == "ℹ️ About":
        render_about_page()


if __name__ == "__main__":
    main()
