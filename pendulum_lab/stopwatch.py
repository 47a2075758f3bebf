from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Stopwatch:
    """Elapsed-time readout advanced by model time, not wall-clock time."""

    elapsed_time: float = 0.0  # s
    is_running: bool = False
    is_visible: bool = False

    def start(self) -> None:
        self.is_running = True

    def pause(self) -> None:
        self.is_running = False

    def reset(self) -> None:
        self.elapsed_time = 0.0
        self.is_running = False

    def step(self, dt: float) -> None:
        if self.is_running:
            self.elapsed_time += dt
