"""
Period measurement driven by a pendulum's crossing events.

A measurement window opens at one qualifying crossing of the vertical and
closes at the next one in the same direction; the time in between is the
period. Crossing events carry their time inside the current step, so the
window edges are refined below the step resolution.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from pendulum_lab.constants import MAX_TRACE_SAMPLES
from pendulum_lab.pendulum import PendulumBody

logger = logging.getLogger(__name__)


class PeriodTracker:
    """Measures the oscillation period of one of up to two bodies."""

    def __init__(
        self,
        bodies: Sequence[PendulumBody],
        count_positive_crossings: bool = True,
        is_repeating: bool = False,
        max_samples: int = MAX_TRACE_SAMPLES,
    ):
        if not bodies:
            raise ValueError("PeriodTracker needs at least one pendulum")
        self.bodies = list(bodies)
        self.count_positive_crossings = count_positive_crossings
        self.is_repeating = is_repeating
        self.max_samples = max_samples

        self.selected_index = 0
        self.elapsed_time = 0.0  # s
        self.period: Optional[float] = None  # s, last completed measurement
        self.is_running = False
        self.is_visible = False

        # (time since start, angle) for the fading trace
        self.samples: List[Tuple[float, float]] = []
        self.trace_opacity = 1.0
        self._clock = 0.0
        self._armed = False

        self._subscribe(self.body)

    @property
    def body(self) -> PendulumBody:
        return self.bodies[self.selected_index]

    # ------------------------------------------------------------------
    # Subscriptions

    def _subscribe(self, body: PendulumBody) -> None:
        body.crossing_emitter.add_listener(self._on_crossing)
        body.step_emitter.add_listener(self._on_step)
        body.reset_emitter.add_listener(self._restart_window)
        body.user_moved_emitter.add_listener(self._restart_window)

    def _unsubscribe(self, body: PendulumBody) -> None:
        body.crossing_emitter.remove_listener(self._on_crossing)
        body.step_emitter.remove_listener(self._on_step)
        body.reset_emitter.remove_listener(self._restart_window)
        body.user_moved_emitter.remove_listener(self._restart_window)

    def select(self, index: int) -> None:
        """Track another body; the current measurement window is dropped."""
        if not 0 <= index < len(self.bodies):
            raise ValueError(f"no pendulum with index {index}")
        if index == self.selected_index:
            return
        self._unsubscribe(self.body)
        self.selected_index = index
        self._subscribe(self.body)
        self._restart_window()
        logger.debug("period tracker now follows pendulum %d", index)

    # ------------------------------------------------------------------
    # Control

    def start(self) -> None:
        self.is_running = True
        self._restart_window()

    def stop(self) -> None:
        self.is_running = False

    def reset(self) -> None:
        self.is_running = False
        self.period = None
        self._restart_window()

    def _restart_window(self) -> None:
        self.elapsed_time = 0.0
        self._armed = False
        self._clock = 0.0
        self.samples.clear()
        self.trace_opacity = 1.0

    # ------------------------------------------------------------------
    # Event handlers

    def _on_crossing(self, crossing_dt: float, is_positive_direction: bool) -> None:
        if not self.is_running or is_positive_direction != self.count_positive_crossings:
            return
        if not self._armed:
            self._armed = True
            # the step event adds the whole dt afterwards
            self.elapsed_time = -crossing_dt
            return

        self.period = self.elapsed_time + crossing_dt
        if self.is_repeating:
            self.elapsed_time = -crossing_dt
        else:
            self.elapsed_time = self.period
            self.is_running = False
            logger.debug("measured period %.4f s on pendulum %d", self.period, self.selected_index)

    def _on_step(self, dt: float) -> None:
        if self.is_running:
            self._clock += dt
            if self._armed:
                self.elapsed_time += dt
            self.samples.append((self._clock, self.body.angle))
            if len(self.samples) > self.max_samples:
                self.samples.pop(0)
        elif self.period is not None and self.samples:
            self.trace_opacity *= math.exp(-dt / self.body.get_approximate_period())
