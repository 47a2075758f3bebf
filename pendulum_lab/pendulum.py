"""
Single pendulum body: primary state, RK4 integration, derived quantities and
events.

Angles are measured from the vertical (downwards is 0 rad) and kept in
(-pi, pi]. Positions use a pivot at the origin with y pointing up, so the bob
hangs at (0, -L) when the angle is zero.

Events (see ``pendulum_lab.events.Emitter``):
- ``step_emitter(dt)`` after every integrated step
- ``crossing_emitter(time, is_positive_direction)`` when the bob passes theta = 0;
  ``time`` is measured from the start of the current step
- ``peak_emitter(turning_angle)`` at a turning point
- ``user_moved_emitter()`` when the user grabs or drags the bob
- ``reset_emitter()`` on motion or full reset
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

from pendulum_lab.constants import LENGTH_RANGE, MASS_RANGE, VALUE_PRECISION
from pendulum_lab.environment import Environment
from pendulum_lab.events import Emitter
from pendulum_lab.physics import (
    Vector,
    angular_acceleration,
    approximate_period,
    crosses_vertical,
    friction_term,
    is_turning_point,
    kinetic_energy,
    linear,
    mod_angle,
    pendulum_derivatives,
    polar,
    potential_energy,
    rk4_step,
    substep_count,
    turning_angle,
    vec_add,
)

logger = logging.getLogger(__name__)


class PendulumBody:
    """One pendulum driven by ``step(dt)``.

    No range checks are applied to mass or length; callers clamp with
    ``mass_range`` / ``length_range``.
    """

    def __init__(
        self,
        index: int,
        mass: float,
        length: float,
        color: str,
        is_visible: bool,
        environment: Environment,
        length_range: Tuple[float, float] = LENGTH_RANGE,
        mass_range: Tuple[float, float] = MASS_RANGE,
        initial_angle: float = 0.0,
        initial_angular_velocity: float = 0.0,
    ):
        self.index = index
        self.color = color
        self.length_range = length_range
        self.mass_range = mass_range
        self.environment = environment

        self._initial_mass = round(mass, VALUE_PRECISION)
        self._initial_length = round(length, VALUE_PRECISION)
        self._initial_angle = mod_angle(initial_angle)
        self._initial_angular_velocity = initial_angular_velocity
        self._initial_is_visible = is_visible

        self._mass = self._initial_mass
        self._length = self._initial_length
        self._angle = self._initial_angle
        self.angular_velocity = initial_angular_velocity
        self._is_user_controlled = False
        self.is_visible = is_visible
        self.is_tick_visible = False

        self.angular_acceleration = 0.0
        self.position: Vector = (0.0, 0.0)
        self.velocity: Vector = (0.0, 0.0)
        self.acceleration: Vector = (0.0, 0.0)
        self.kinetic_energy = 0.0
        self.potential_energy = 0.0
        self.thermal_energy = 0.0
        self.total_energy = 0.0

        self.step_emitter = Emitter()
        self.crossing_emitter = Emitter()
        self.peak_emitter = Emitter()
        self.user_moved_emitter = Emitter()
        self.reset_emitter = Emitter()

        self.update_derived_variables(False)

    # ------------------------------------------------------------------
    # Linked setters

    @property
    def length(self) -> float:
        return self._length

    @length.setter
    def length(self, value: float) -> None:
        old_length = self._length
        self._length = round(float(value), VALUE_PRECISION)
        # keep the bob speed continuous
        self.angular_velocity = self.angular_velocity * old_length / self._length
        self.update_derived_variables(False)

    @property
    def mass(self) -> float:
        return self._mass

    @mass.setter
    def mass(self, value: float) -> None:
        self._mass = round(float(value), VALUE_PRECISION)
        self.update_derived_variables(False)

    @property
    def angle(self) -> float:
        return self._angle

    @angle.setter
    def angle(self, value: float) -> None:
        self._angle = mod_angle(float(value))
        self.update_derived_variables(False)
        if self._is_user_controlled:
            self.user_moved_emitter.emit()

    @property
    def is_user_controlled(self) -> bool:
        return self._is_user_controlled

    @is_user_controlled.setter
    def is_user_controlled(self, value: bool) -> None:
        value = bool(value)
        if value == self._is_user_controlled:
            return
        self._is_user_controlled = value
        self.angular_velocity = 0.0
        self.update_derived_variables(False)
        if value:
            self.is_tick_visible = True
            self.user_moved_emitter.emit()

    def _params(self):
        return self.environment.params_for(self._length, self._mass)

    # ------------------------------------------------------------------
    # Integration

    def step(self, dt: float) -> None:
        """Advance the pendulum by dt seconds.

        While user controlled only the derived quantities are refreshed and no
        events are emitted.
        """
        if not math.isfinite(dt):
            raise ValueError(f"dt must be finite, got {dt!r}")
        if self._is_user_controlled:
            self.update_derived_variables(False)
            return

        params = self._params()
        theta = self._angle
        omega = self.angular_velocity

        num_steps = substep_count(dt)
        h = dt / num_steps
        for i in range(num_steps):
            new_theta, new_omega = rk4_step([theta, omega], h, params, pendulum_derivatives)
            new_theta = mod_angle(new_theta)

            if crosses_vertical(theta, new_theta):
                self._cross(i * h, (i + 1) * h, omega > 0, theta, new_theta)

            if is_turning_point(omega, new_omega):
                self._peak(theta, new_theta)

            theta = new_theta
            omega = new_omega

        self._angle = theta
        self.angular_velocity = omega

        self.update_derived_variables(self.environment.friction > 0)
        self.step_emitter.emit(dt)

    def _cross(self, old_dt: float, new_dt: float, is_positive_direction: bool, old_theta: float, new_theta: float) -> None:
        # linear estimate of where angle 0 falls inside the substep
        crossing_dt = linear(old_theta, new_theta, old_dt, new_dt, 0.0)
        self.crossing_emitter.emit(crossing_dt, is_positive_direction)

    def _peak(self, old_theta: float, new_theta: float) -> None:
        self.peak_emitter.emit(turning_angle(old_theta, new_theta))

    # ------------------------------------------------------------------
    # Derived quantities

    def update_derived_variables(self, convert_to_thermal: bool) -> None:
        """Recompute everything that follows from angle, velocity, mass and length.

        With ``convert_to_thermal`` the drop in kinetic + potential energy since
        the last update moves into thermal energy. A rise is not subtracted, so
        thermal energy never decreases.
        """
        params = self._params()
        g = params["g"]
        length = self._length
        mass = self._mass
        theta = self._angle
        omega = self.angular_velocity

        self.angular_acceleration = angular_acceleration(theta, omega, params)

        old_kinetic = self.kinetic_energy
        old_potential = self.potential_energy
        self.kinetic_energy = kinetic_energy(mass, length, omega)
        self.potential_energy = potential_energy(mass, g, length, theta)
        if convert_to_thermal:
            dissipated = (old_kinetic - self.kinetic_energy) + (old_potential - self.potential_energy)
            self.thermal_energy += max(0.0, dissipated)
        self.total_energy = self.kinetic_energy + self.potential_energy + self.thermal_energy

        self.position = polar(length, theta - math.pi / 2.0)
        self.velocity = polar(omega * length, theta)

        # tangential friction + tangential gravity + centripetal
        acceleration = polar(-friction_term(omega, params) * length, theta)
        acceleration = vec_add(acceleration, polar(-g * math.sin(theta), theta))
        acceleration = vec_add(acceleration, polar(omega * omega * length, theta + math.pi / 2.0))
        self.acceleration = acceleration

    def refresh(self) -> None:
        """Recompute derived state after an environment change."""
        self.update_derived_variables(False)

    # ------------------------------------------------------------------
    # Resets and queries

    def reset_motion(self) -> None:
        self._angle = self._initial_angle
        self.angular_velocity = self._initial_angular_velocity
        self.update_derived_variables(False)
        self.reset_emitter.emit()

    def reset_thermal_energy(self) -> None:
        self.thermal_energy = 0.0
        self.total_energy = self.kinetic_energy + self.potential_energy

    def reset(self) -> None:
        """Restore every piece of primary state set at construction."""
        logger.debug("full reset of pendulum %d", self.index)
        self._mass = self._initial_mass
        self._length = self._initial_length
        self._angle = self._initial_angle
        self.angular_velocity = self._initial_angular_velocity
        self._is_user_controlled = False
        self.is_visible = self._initial_is_visible
        self.is_tick_visible = False
        self.thermal_energy = 0.0
        self.update_derived_variables(False)
        self.reset_emitter.emit()

    def is_stationary(self) -> bool:
        return self._is_user_controlled or (
            self._angle == 0 and self.angular_velocity == 0 and self.angular_acceleration == 0
        )

    def get_approximate_period(self) -> float:
        """Small-angle period, used as a fade time constant by consumers."""
        return approximate_period(self._length, self.environment.gravity)

    def snapshot(self, energy_ref: Optional[float] = None) -> dict:
        """Plain dict view of the state for display code."""
        x, y = self.position
        data = {
            "index": self.index,
            "angle": self._angle,
            "angular_velocity": self.angular_velocity,
            "angular_acceleration": self.angular_acceleration,
            "x": x,
            "y": y,
            "kinetic_energy": self.kinetic_energy,
            "potential_energy": self.potential_energy,
            "thermal_energy": self.thermal_energy,
            "total_energy": self.total_energy,
        }
        if energy_ref is not None:
            data["energy_err"] = abs(self.total_energy - energy_ref) / max(1e-9, abs(energy_ref))
        return data
