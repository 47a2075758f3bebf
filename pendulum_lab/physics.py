"""
Numerical physics utilities for the single pendulum with nonlinear friction.

This module provides:
- The friction term and the angular acceleration of a pendulum
- A derivative function and a classical RK4 step (arbitrary state dimension)
- The substep heuristic used by the body integrator
- Angle normalization into (-pi, pi]
- Polar vectors, energies and linear interpolation helpers
"""

from __future__ import annotations

import math
from typing import Callable, Dict, List, Sequence, Tuple

from pendulum_lab.constants import MIN_SUBSTEPS, SUBSTEPS_PER_SECOND

State = List[float]
Params = Dict[str, float]
Vector = Tuple[float, float]

TWO_PI = 2.0 * math.pi


def friction_term(omega: float, params: Params) -> float:
    """Angular deceleration caused by friction at angular velocity omega.

    The quadratic part scales with length and mass^(-1/3), the linear part with
    mass^(-2/3), which keeps the period close to mass independent.
    """
    friction = float(params.get("friction", 0.0))
    length = float(params["length"])  # m
    mass = float(params["mass"])  # kg
    return (
        friction * length / mass ** (1.0 / 3.0) * omega * abs(omega)
        + friction / mass ** (2.0 / 3.0) * omega
    )


def angular_acceleration(theta: float, omega: float, params: Params) -> float:
    """Return domega/dt for angle theta (0 = straight down) and velocity omega."""
    g = float(params["g"])  # m/s^2
    length = float(params["length"])  # m
    return -friction_term(omega, params) - (g / length) * math.sin(theta)


def pendulum_derivatives(state: Sequence[float], params: Params) -> State:
    """Return derivatives [dtheta, domega] for a pendulum with friction."""
    theta, omega = state[:2]
    return [omega, angular_acceleration(theta, omega, params)]


def rk4_step(state: Sequence[float], dt: float, params: Params, deriv_func: Callable[[Sequence[float], Params], State]) -> State:
    """Perform one classical RK4 step for arbitrary state dimension."""
    s1 = list(state)
    k1 = deriv_func(s1, params)
    s2 = [s1[i] + 0.5 * dt * k1[i] for i in range(len(s1))]
    k2 = deriv_func(s2, params)
    s3 = [s1[i] + 0.5 * dt * k2[i] for i in range(len(s1))]
    k3 = deriv_func(s3, params)
    s4 = [s1[i] + dt * k3[i] for i in range(len(s1))]
    k4 = deriv_func(s4, params)
    return [s1[i] + dt * (k1[i] + 2.0 * k2[i] + 2.0 * k3[i] + k4[i]) / 6.0 for i in range(len(s1))]


def substep_count(dt: float) -> int:
    """Number of RK4 substeps used to integrate a step of dt seconds."""
    return max(MIN_SUBSTEPS, int(round(dt * SUBSTEPS_PER_SECOND)))


def mod_angle(angle: float) -> float:
    """Normalize an angle into (-pi, pi].

    -pi maps to pi, so the result never equals -pi. Values already inside the
    interval are returned unchanged.
    """
    a = math.fmod(angle, TWO_PI)
    if a <= -math.pi:
        a += TWO_PI
    elif a > math.pi:
        a -= TWO_PI
    return a


def polar(magnitude: float, angle: float) -> Vector:
    return (magnitude * math.cos(angle), magnitude * math.sin(angle))


def vec_add(a: Vector, b: Vector) -> Vector:
    return (a[0] + b[0], a[1] + b[1])


def linear(x1: float, x2: float, y1: float, y2: float, x: float) -> float:
    """Map x from the segment [x1, x2] onto [y1, y2]."""
    return y1 + (y2 - y1) * (x - x1) / (x2 - x1)


def kinetic_energy(mass: float, length: float, omega: float) -> float:
    speed = abs(omega) * length
    return 0.5 * mass * speed * speed


def potential_energy(mass: float, g: float, length: float, theta: float) -> float:
    """Potential energy relative to the resting position (theta = 0)."""
    height = length * (1.0 - math.cos(theta))
    return mass * g * height


def approximate_period(length: float, g: float) -> float:
    """Small-angle period 2*pi*sqrt(L/g); infinite without gravity."""
    if g <= 0:
        return math.inf
    return TWO_PI * math.sqrt(length / g)


def crosses_vertical(theta: float, new_theta: float) -> bool:
    """True if a substep from theta to new_theta passed through theta = 0.

    Landing exactly on 0 counts, leaving 0 does not. A jump of more than pi
    is a wrap over the top, not a crossing.
    """
    if abs(new_theta - theta) > math.pi:
        return False
    return theta * new_theta < 0 or (new_theta == 0 and theta != 0)


def is_turning_point(omega: float, new_omega: float) -> bool:
    """True if the angular velocity reversed (or reached exactly 0) in a substep."""
    return omega * new_omega < 0 or (new_omega == 0 and omega != 0)


def turning_angle(old_theta: float, new_theta: float) -> float:
    """The endpoint of the substep farther out on the side the bob is on."""
    # TODO: theta0 + (theta1 - theta0) * omega0 / (omega0 - omega1) would be a tighter estimate
    if old_theta + new_theta > 0:
        return max(old_theta, new_theta)
    return min(old_theta, new_theta)
