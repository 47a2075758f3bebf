from __future__ import annotations

import logging
import math
import time
from typing import Tuple

import plotly.graph_objects as go
import streamlit as st

from pendulum_lab.constants import FRICTION_RANGE, GRAVITY_PRESETS, GRAVITY_RANGE, PLAY_SPEEDS
from pendulum_lab.sim_session import LabSession

logger = logging.getLogger(__name__)

GRAVITY_LABELS = {"moon": "Moon", "earth": "Earth", "jupiter": "Jupiter", "planet_x": "Planet X", "custom": "Custom"}


def _ensure_session() -> LabSession:
    if "lab" not in st.session_state:
        st.session_state.lab = LabSession()
        logger.info("created new lab session")
    if "last_time" not in st.session_state:
        st.session_state.last_time = time.time()
    return st.session_state.lab


def _update_params_from_sidebar(lab: LabSession) -> None:
    count = st.sidebar.radio("Pendula", [1, 2], index=lab.number_of_pendulums - 1, horizontal=True)
    lab.set_number_of_pendulums(int(count))

    for body in lab.active_bodies:
        n = body.index + 1
        lo, hi = body.length_range
        length = st.sidebar.slider(f"Length {n} (m)", min_value=lo, max_value=hi, value=float(body.length), step=0.01)
        lo, hi = body.mass_range
        mass = st.sidebar.slider(f"Mass {n} (kg)", min_value=lo, max_value=hi, value=float(body.mass), step=0.01)
        if length != body.length:
            lab.set_length(body.index, length)
        if mass != body.mass:
            lab.set_mass(body.index, mass)
        angle_deg = st.sidebar.number_input(f"Release angle {n} (°)", min_value=-180.0, max_value=180.0, value=0.0, step=5.0, key=f"angle_{n}")
        if st.sidebar.button(f"Release pendulum {n}"):
            body.is_user_controlled = True
            body.angle = math.radians(angle_deg)
            body.is_user_controlled = False

    # Gravity & friction
    env = lab.environment
    names = list(GRAVITY_PRESETS) + ["custom"]
    preset = st.sidebar.selectbox("Gravity", names, index=names.index(env.preset), format_func=GRAVITY_LABELS.get)
    if preset != "custom" and preset != env.preset:
        lab.set_gravity_preset(preset)
    g = st.sidebar.slider("g (m/s²)", min_value=GRAVITY_RANGE[0], max_value=GRAVITY_RANGE[1], value=float(env.gravity), step=0.01)
    if g != env.gravity:
        lab.set_gravity(g)
    friction = st.sidebar.slider("Friction", min_value=FRICTION_RANGE[0], max_value=FRICTION_RANGE[1], value=float(env.friction), step=0.005)
    lab.set_friction(friction)

    speed = st.sidebar.radio("Speed", list(PLAY_SPEEDS), index=list(PLAY_SPEEDS).index(lab.play_speed), horizontal=True)
    lab.set_play_speed(speed)

    # Period tracker
    tracker = lab.period_tracker
    tracker.is_visible = st.sidebar.checkbox("Period timer", value=tracker.is_visible)
    if tracker.is_visible:
        options = [b.index for b in lab.active_bodies]
        selected = st.sidebar.radio("Track pendulum", options, index=options.index(tracker.selected_index), format_func=lambda i: str(i + 1), horizontal=True)
        tracker.select(int(selected))
        tracker.is_repeating = st.sidebar.checkbox("Repeat", value=tracker.is_repeating)
        if st.sidebar.button("Measure period"):
            tracker.start()

    lab.stopwatch.is_visible = st.sidebar.checkbox("Stopwatch", value=lab.stopwatch.is_visible)
    if st.sidebar.button("Reset thermal energy"):
        for body in lab.bodies:
            body.reset_thermal_energy()


def _limits(lab: LabSession) -> Tuple[float, float]:
    max_len = max(body.length for body in lab.active_bodies)
    return max_len, max_len * 0.2


def _build_figure(lab: LabSession) -> go.Figure:
    max_len, pad = _limits(lab)
    fig = go.Figure()

    for body in lab.active_bodies:
        x, y = body.position
        fig.add_trace(go.Scatter(x=[0.0, x], y=[0.0, y], mode="lines", line=dict(color="#374151", width=3), hoverinfo="skip", showlegend=False))
        size = 10 + 10 * body.mass
        fig.add_trace(go.Scatter(x=[x], y=[y], mode="markers", marker=dict(size=size, color=body.color), hoverinfo="skip", showlegend=False))

    # period trace along the arc of the tracked pendulum
    tracker = lab.period_tracker
    if tracker.is_visible and tracker.samples:
        body = tracker.body
        radius = body.length * 0.9
        xs = [radius * math.sin(theta) for _, theta in tracker.samples]
        ys = [-radius * math.cos(theta) for _, theta in tracker.samples]
        fig.add_trace(go.Scatter(x=xs, y=ys, mode="lines", opacity=tracker.trace_opacity, line=dict(color=body.color, width=2), hoverinfo="skip", showlegend=False))

    # hinge
    fig.add_trace(go.Scatter(x=[0.0], y=[0.0], mode="markers", marker=dict(size=8, color="#1F2937"), hoverinfo="skip", showlegend=False))

    fig.update_layout(
        template="plotly_white",
        margin=dict(l=20, r=20, t=20, b=20),
        xaxis=dict(scaleanchor="y", scaleratio=1.0, range=[-max_len - pad, max_len + pad], showgrid=True, zeroline=False),
        yaxis=dict(range=[-max_len - pad, pad], showgrid=True, zeroline=False),
        dragmode=False,
    )
    return fig


def _build_energy_figure(lab: LabSession) -> go.Figure:
    labels = ["Kinetic", "Potential", "Thermal", "Total"]
    fig = go.Figure()
    for body in lab.active_bodies:
        values = [body.kinetic_energy, body.potential_energy, body.thermal_energy, body.total_energy]
        fig.add_trace(go.Bar(x=labels, y=values, name=f"Pendulum {body.index + 1}", marker_color=body.color))
    fig.update_layout(template="plotly_white", barmode="group", margin=dict(l=20, r=20, t=20, b=20), yaxis_title="J")
    return fig


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    st.set_page_config(page_title="Pendulum Lab", layout="wide")
    lab = _ensure_session()

    st.title("Pendulum Lab")
    st.caption("RK4 with at least 120 substeps per second, nonlinear friction, thermal energy bookkeeping")

    _update_params_from_sidebar(lab)

    col_a, col_b, col_c, col_d = st.columns([1, 1, 1, 1])
    with col_a:
        if not lab.is_playing:
            if st.button("Play", type="primary"):
                lab.is_playing = True
                st.session_state.last_time = time.time()
        else:
            if st.button("Pause", type="secondary"):
                lab.is_playing = False
    with col_b:
        if st.button("Step", disabled=lab.is_playing):
            lab.step_manually()
    with col_c:
        if st.button("Reset"):
            lab.reset()
            st.session_state.last_time = time.time()
    with col_d:
        st.metric("ΔE/E", f"{lab.energy_error(0) * 100.0:.6f}%")

    now = time.time()
    dt = max(0.0, now - float(st.session_state.get("last_time", now)))
    st.session_state.last_time = now
    lab.step(dt)

    left, right = st.columns([2, 1])
    with left:
        st.plotly_chart(_build_figure(lab), use_container_width=True, config={"staticPlot": False, "displayModeBar": False})
    with right:
        st.plotly_chart(_build_energy_figure(lab), use_container_width=True, config={"displayModeBar": False})
        tracker = lab.period_tracker
        if tracker.is_visible:
            value = lab.period_readout()
            st.metric("Period", "–" if value is None else f"{value:.4f} s")
        if lab.stopwatch.is_visible:
            sw = lab.stopwatch
            if st.button("Stop watch" if sw.is_running else "Start watch"):
                if sw.is_running:
                    sw.pause()
                else:
                    sw.start()
            st.metric("Stopwatch", f"{sw.elapsed_time:.2f} s")

    with st.expander("Details (State)", expanded=False):
        st.write({
            "sim_time": lab.sim_time,
            "gravity": lab.environment.gravity,
            "friction": lab.environment.friction,
            "bodies": [body.snapshot(lab.energy_ref.get(body.index)) for body in lab.active_bodies],
        })

    if lab.is_playing:
        time.sleep(0.033)
        st.rerun()


if __name__ == "__main__":
    main()
