from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pendulum_lab.constants import DEFAULT_PENDULUMS, MANUAL_STEP_DT, MAX_DT, PLAY_SPEEDS
from pendulum_lab.environment import Environment
from pendulum_lab.pendulum import PendulumBody
from pendulum_lab.period_tracker import PeriodTracker
from pendulum_lab.stopwatch import Stopwatch

logger = logging.getLogger(__name__)


@dataclass
class LabSession:
    """Holds the per-session model: environment, two pendulum slots and tools."""

    environment: Environment = field(default_factory=Environment)
    number_of_pendulums: int = 1
    is_playing: bool = True
    play_speed: str = "normal"  # "normal" | "slow"
    sim_time: float = 0.0

    stopwatch: Stopwatch = field(default_factory=Stopwatch)
    bodies: List[PendulumBody] = field(init=False)
    period_tracker: PeriodTracker = field(init=False)

    # total energy per body at the last reset, for the drift readout
    energy_ref: Dict[int, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.number_of_pendulums not in (1, 2):
            raise ValueError(f"number_of_pendulums must be 1 or 2, got {self.number_of_pendulums}")
        if self.play_speed not in PLAY_SPEEDS:
            raise ValueError(f"unknown play speed {self.play_speed!r}")
        self.bodies = [
            PendulumBody(
                index=i,
                mass=cfg["mass"],
                length=cfg["length"],
                color=cfg["color"],
                is_visible=i < self.number_of_pendulums,
                environment=self.environment,
            )
            for i, cfg in enumerate(DEFAULT_PENDULUMS)
        ]
        self.period_tracker = PeriodTracker(self.bodies)
        for body in self.bodies:
            body.reset_emitter.add_listener(self._capture_energy_refs)
            body.user_moved_emitter.add_listener(self._capture_energy_refs)
        self._capture_energy_refs()

    @property
    def active_bodies(self) -> List[PendulumBody]:
        return self.bodies[: self.number_of_pendulums]

    def step(self, dt: float) -> None:
        """Advance by a frame of dt wall-clock seconds when playing."""
        dt = min(dt, MAX_DT) * PLAY_SPEEDS[self.play_speed]
        if self.is_playing:
            self.model_step(dt)

    def step_manually(self) -> None:
        self.model_step(MANUAL_STEP_DT)

    def model_step(self, dt: float) -> None:
        for body in self.active_bodies:
            if not body.is_user_controlled:
                body.step(dt)
        self.stopwatch.step(dt)
        self.sim_time += dt

    # ------------------------------------------------------------------
    # Parameters

    def set_gravity(self, gravity: float) -> None:
        self.environment.set_gravity(gravity)
        self._environment_changed()

    def set_gravity_preset(self, name: str) -> None:
        self.environment.apply_preset(name)
        self._environment_changed()

    def set_friction(self, friction: float) -> None:
        self.environment.friction = float(friction)

    def set_length(self, index: int, length: float) -> None:
        self.bodies[index].length = length
        self._capture_energy_refs()

    def set_mass(self, index: int, mass: float) -> None:
        self.bodies[index].mass = mass
        self._capture_energy_refs()

    def set_play_speed(self, speed: str) -> None:
        if speed not in PLAY_SPEEDS:
            raise ValueError(f"unknown play speed {speed!r}, expected one of {sorted(PLAY_SPEEDS)}")
        self.play_speed = speed

    def set_number_of_pendulums(self, n: int) -> None:
        if n not in (1, 2):
            raise ValueError(f"number_of_pendulums must be 1 or 2, got {n}")
        if n == self.number_of_pendulums:
            return
        self.number_of_pendulums = n
        second = self.bodies[1]
        second.is_visible = n == 2
        if n == 1:
            second.reset_motion()
            if self.period_tracker.selected_index == 1:
                self.period_tracker.select(0)
        logger.debug("number of pendulums set to %d", n)

    def _environment_changed(self) -> None:
        for body in self.bodies:
            if not body.is_user_controlled:
                body.refresh()
        self._capture_energy_refs()

    def _capture_energy_refs(self) -> None:
        self.energy_ref = {body.index: body.total_energy for body in self.bodies}

    # ------------------------------------------------------------------
    # Readouts and resets

    def energy_error(self, index: int) -> float:
        """Relative total-energy drift of a body since the last reference point."""
        body = self.bodies[index]
        ref = self.energy_ref.get(index, body.total_energy)
        return abs(body.total_energy - ref) / max(1e-9, abs(ref))

    def period_readout(self) -> Optional[float]:
        tracker = self.period_tracker
        return tracker.period if not tracker.is_running else tracker.elapsed_time

    def reset(self) -> None:
        logger.debug("resetting lab session")
        self.environment.reset()
        self.number_of_pendulums = 1
        self.is_playing = True
        self.play_speed = "normal"
        self.sim_time = 0.0
        for body in self.bodies:
            body.reset()
        self.bodies[1].is_visible = False
        self.period_tracker.select(0)
        self.period_tracker.reset()
        self.stopwatch.reset()
        self._capture_energy_refs()
