"""
Table Components for Dashboard

pandas helpers that turn generated records and analysis results into
DataFrames ready for st.dataframe().
"""

import pandas as pd
from typing import List, Dict, Any

from core.models import MainsTestDevice, MainsTestObservation, MainsTestStep


OBSERVATION_COLUMNS = [
    "step_index", "step_label", "device", "pressure_bar",
    "flow_lpm", "water_temp_c", "quality_flags", "method",
]


def observations_to_dataframe(
    steps: List[MainsTestStep],
    devices: List[MainsTestDevice],
    observations: List[MainsTestObservation]
) -> pd.DataFrame:
    """
    Flatten observations into one row per reading.

    Rows are sorted by step index; entry order is kept within a step.
    """
    step_by_id = {s.id: s for s in steps}
    label_by_device = {d.id: d.label for d in devices}

    rows = []
    for obs in observations:
        step = step_by_id.get(obs.step_id)
        rows.append({
            "step_index": step.index if step else None,
            "step_label": step.label if step else obs.step_id,
            "device": label_by_device.get(obs.device_id, obs.device_id),
            "pressure_bar": obs.pressure_bar,
            "flow_lpm": obs.flow_lpm,
            "water_temp_c": obs.water_temp_c,
            "quality_flags": ", ".join(obs.quality_flags),
            "method": obs.method.value,
        })

    df = pd.DataFrame(rows, columns=OBSERVATION_COLUMNS)
    df = df.astype({"pressure_bar": float, "flow_lpm": float, "water_temp_c": float})
    return df.sort_values("step_index", kind="stable").reset_index(drop=True)


def summarize_by_step(observations_df: pd.DataFrame) -> pd.DataFrame:
    """
    Aggregate an observations DataFrame per step.

    Returns:
        DataFrame with step_index, step_label, pressure_median,
        flow_mean, temp_mean and readings
    """
    if observations_df.empty:
        return pd.DataFrame(columns=[
            "step_index", "step_label", "pressure_median",
            "flow_mean", "temp_mean", "readings",
        ])

    summary = (
        observations_df
        .groupby(["step_index", "step_label"], sort=True)
        .agg(
            pressure_median=("pressure_bar", "median"),
            flow_mean=("flow_lpm", "mean"),
            temp_mean=("water_temp_c", "mean"),
            readings=("device", "size"),
        )
        .reset_index()
    )
    return summary.round({"pressure_median": 2, "flow_mean": 1, "temp_mean": 1})


def dynamic_points_to_dataframe(points: List[Dict[str, Any]]) -> pd.DataFrame:
    """Dynamic pressure points as a table, one row per step."""
    df = pd.DataFrame(points, columns=[
        "step_index", "step_label", "outlet_count", "pressure_bar",
        "min_pressure", "max_pressure", "sample_count",
    ])
    return df.rename(columns={"pressure_bar": "median_pressure"})


def warnings_to_dataframe(warnings: List[Dict[str, Any]]) -> pd.DataFrame:
    """Validation warnings as a table, errors first."""
    df = pd.DataFrame(warnings, columns=[
        "severity", "code", "category", "message", "suggested_fix",
    ])
    order = {"error": 0, "warning": 1, "info": 2}
    return (
        df.assign(_rank=df["severity"].map(order))
        .sort_values("_rank", kind="stable")
        .drop(columns="_rank")
        .reset_index(drop=True)
    )
