from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict

from pendulum_lab.constants import DEFAULT_FRICTION, EARTH, GRAVITY_PRESETS

logger = logging.getLogger(__name__)


@dataclass
class Environment:
    """Gravity and friction shared by all pendula.

    Bodies only read these values (once per step); the session owns and
    changes them.
    """

    gravity: float = GRAVITY_PRESETS[EARTH]  # m/s^2
    friction: float = DEFAULT_FRICTION
    preset: str = EARTH  # "custom" after a direct gravity change

    def params_for(self, length: float, mass: float) -> Dict[str, float]:
        """Parameter dict consumed by the physics functions."""
        return {"g": self.gravity, "friction": self.friction, "length": length, "mass": mass}

    def set_gravity(self, gravity: float) -> None:
        self.gravity = float(gravity)
        self.preset = "custom"

    def apply_preset(self, name: str) -> None:
        key = (name or "").lower()
        if key not in GRAVITY_PRESETS:
            raise ValueError(f"unknown gravity preset {name!r}, expected one of {sorted(GRAVITY_PRESETS)}")
        self.gravity = GRAVITY_PRESETS[key]
        self.preset = key
        logger.debug("gravity preset %s (%.2f m/s^2)", key, self.gravity)

    def reset(self) -> None:
        self.gravity = GRAVITY_PRESETS[EARTH]
        self.friction = DEFAULT_FRICTION
        self.preset = EARTH
