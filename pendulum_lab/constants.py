"""
Shared constants for the pendulum lab model (SI units unless stated otherwise).
"""

from __future__ import annotations

from typing import Dict, Tuple

# Integration
SUBSTEPS_PER_SECOND = 120  # minimum temporal resolution of the integrator
MIN_SUBSTEPS = 7  # floor per step call
MAX_DT = 0.05  # s; cap for a single frame coming from the driver
MANUAL_STEP_DT = 1.0 / 60.0  # s; one press of the step button

# Pendulum ranges (inclusive), used by callers for clamping
LENGTH_RANGE: Tuple[float, float] = (0.5, 2.5)  # m
MASS_RANGE: Tuple[float, float] = (0.1, 2.1)  # kg
VALUE_PRECISION = 2  # decimals kept for length and mass
FRICTION_RANGE: Tuple[float, float] = (0.0, 0.115)
GRAVITY_RANGE: Tuple[float, float] = (0.0, 25.0)  # m/s^2

# Default slots
FIRST_PENDULUM_COLOR = "#0000FF"
SECOND_PENDULUM_COLOR = "#FF0000"
DEFAULT_PENDULUMS = (
    {"mass": 1.0, "length": 0.7, "color": FIRST_PENDULUM_COLOR, "is_visible": True},
    {"mass": 0.5, "length": 1.0, "color": SECOND_PENDULUM_COLOR, "is_visible": False},
)

# Gravity presets, m/s^2
EARTH = "earth"
GRAVITY_PRESETS: Dict[str, float] = {
    "moon": 1.62,
    EARTH: 9.81,
    "jupiter": 24.79,
    "planet_x": 14.2,
}
DEFAULT_FRICTION = 0.0

# Play speed factors
PLAY_SPEEDS: Dict[str, float] = {
    "normal": 1.0,
    "slow": 1.0 / 8.0,
}

# Period trace
MAX_TRACE_SAMPLES = 500
