"""Test Results Display

Streamlit visualization of the orchestrator's observer-facing state: run
status and progress, the scenario log, a per-sub-cycle results table and a
chart of per-interval timing errors for the most recent result.

The table and chart builders are plain functions so they can be exercised
without a Streamlit session.
"""

from typing import Optional, Sequence

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from framecheck.models.enums import Verdict
from framecheck.models.results import TestResult


VERDICT_COLORS = {
    Verdict.PASS: "green",
    Verdict.WARN: "orange",
    Verdict.FAIL: "red",
}

RESULT_COLUMNS = [
    "scenario", "sub_cycle", "config", "verdict", "video_frames", "audio_frames",
    "measured_fps", "fps_error", "capture_time", "error",
]


def verdict_color(verdict: Verdict) -> str:
    """Get display color for a verdict.
    
    Args:
        verdict: Scenario or sub-cycle verdict
    
    Returns:
        "green" for PASS, "orange" for WARN, "red" for FAIL
    """
    return VERDICT_COLORS.get(verdict, "gray")


def results_frame(results: Sequence[TestResult]) -> pd.DataFrame:
    """Flatten results into one row per sub-cycle.
    
    Args:
        results: TestResults, in the order they should appear
    
    Returns:
        DataFrame with the RESULT_COLUMNS columns; metrics a sub-cycle did
        not produce are NaN
    """
    rows = []
    for result in results:
        for sub in result.sub_results:
            rows.append({
                "scenario": result.scenario,
                "sub_cycle": sub.label,
                "config": sub.config.describe() if sub.config is not None else "",
                "verdict": sub.verdict.value,
                "video_frames": sub.metrics.get("video_frames"),
                "audio_frames": sub.metrics.get("audio_frames"),
                "measured_fps": sub.metrics.get("measured_fps"),
                "fps_error": sub.metrics.get("fps_error"),
                "capture_time": sub.metrics.get("capture_time"),
                "error": sub.error or "",
            })
    frame = pd.DataFrame(rows, columns=RESULT_COLUMNS)
    for column in ("video_frames", "audio_frames", "measured_fps", "fps_error", "capture_time"):
        frame[column] = pd.to_numeric(frame[column], errors="coerce")
    return frame


def interval_chart(result: Optional[TestResult], allowed_error: float = 0.3) -> go.Figure:
    """Plot the relative error of every video frame interval.
    
    One trace per sub-cycle with video; error_i = |dt_i - expected| / expected.
    A dashed line marks the allowed error.
    
    Args:
        result: Result to plot (None gives an empty chart)
        allowed_error: Tolerance drawn as a reference line
    
    Returns:
        Plotly Figure
    """
    fig = go.Figure()
    if result is not None:
        for sub in result.sub_results:
            if sub.config is None or sub.config.expected_interval is None or not sub.intervals:
                continue
            expected = sub.config.expected_interval
            errors = [abs(gap - expected) / expected * 100 for gap in sub.intervals]
            fig.add_trace(go.Scatter(
                x=list(range(1, len(errors) + 1)),
                y=errors,
                mode="lines+markers",
                name=sub.label,
            ))
    
    if not fig.data:
        fig.add_annotation(text="No interval data yet", xref="paper", yref="paper",
                           x=0.5, y=0.5, showarrow=False)
    
    fig.add_hline(y=allowed_error * 100, line_dash="dash", line_color="red",
                  annotation_text="allowed error")
    fig.update_layout(
        title="Frame interval error",
        xaxis_title="Interval #",
        yaxis_title="Error (%)",
        height=350,
        margin=dict(l=20, r=20, t=60, b=20),
    )
    return fig


class TestDisplay:
    """Streamlit rendering of a TestOrchestrator.
    
    Attributes:
        orchestrator: Orchestrator whose state is rendered
        allowed_error: Tolerance shown on the interval chart
    """
    __test__ = False
    
    def __init__(self, orchestrator, allowed_error: float = 0.3):
        self.orchestrator = orchestrator
        self.allowed_error = allowed_error
    
    def render_status(self) -> None:
        orchestrator = self.orchestrator
        if orchestrator.is_running:
            st.markdown(f"**Running:** {orchestrator.current_scenario}")
        else:
            st.markdown("**Idle**")
        st.progress(orchestrator.progress)
        st.caption(orchestrator.status_text or "Ready")
    
    def render_results(self) -> None:
        results = self.orchestrator.results
        if not results:
            st.info("⏳ No results yet. Pick a scenario and press Run.")
            return
        
        latest = results[-1]
        color = verdict_color(latest.verdict)
        st.markdown(f"### Latest: {latest.scenario} :{color}[{latest.verdict.value.upper()}]")
        
        st.dataframe(results_frame(results), use_container_width=True)
        st.plotly_chart(interval_chart(latest, self.allowed_error), use_container_width=True)
    
    def render_log(self) -> None:
        st.markdown("### Log")
        lines = self.orchestrator.log_lines
        st.code("\n".join(lines) if lines else "(empty)", language=None)
    
    def render(self) -> None:
        self.render_status()
        st.markdown("---")
        self.render_results()
        st.markdown("---")
        self.render_log()
