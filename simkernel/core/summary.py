"""Summary returned by Simulation.run()."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RunSummary:
    """What a single run() call did.

    Attributes:
        clock_events: Timed events fired during the call, process wake-ups included.
        sample_steps: Sampling ticks taken during the call.
        sim_time: Simulated time (seconds) when the call returned.
        conditions_released: Conditional events released during the call.
        stopped: True if the run ended early through Simulation.stop().
    """

    clock_events: int
    sample_steps: int
    sim_time: float
    conditions_released: int = 0
    stopped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "clock_events": self.clock_events,
            "sample_steps": self.sample_steps,
            "sim_time": self.sim_time,
            "conditions_released": self.conditions_released,
            "stopped": self.stopped,
        }

    def __str__(self) -> str:
        return (
            f"run! finished with {self.clock_events} clock events, "
            f"{self.sample_steps} sample steps, simulation time: {self.sim_time}"
        )
