"""Periodic measurement of a model quantity.

A Probe registers a sample action on a Simulation; on every sampling tick it
calls the metric and appends the result to a Data series::

    depth = Probe(sim, lambda: len(inbox), interval=0.5)
    sim.run(60.0)
    depth.data.to_dataframe()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from simkernel.instrumentation.data import Data

if TYPE_CHECKING:
    from simkernel.core.simulation import SampleAction, Simulation
    from simkernel.core.temporal import TimeLike

logger = logging.getLogger(__name__)


class Probe:
    """Samples ``metric()`` on each sampling tick of ``simulation``.

    Args:
        simulation: Session to sample.
        metric: Zero-argument callable returning the value to record.
        interval: If given, sets the session's sample rate.
        data: Series to append to; a new one is created if omitted.
        name: Label for the series and logs.
    """

    def __init__(
        self,
        simulation: Simulation,
        metric: Callable[[], Any],
        interval: TimeLike | None = None,
        data: Data | None = None,
        name: str = "probe",
    ):
        self.name = name
        self.data = data if data is not None else Data(name)
        self._sim = simulation
        self._metric = metric
        self._handle: SampleAction = simulation.periodic(self._measure, interval, label=f"probe:{name}")
        logger.debug("Probe %s attached (dt=%s)", name, simulation.sample_rate)

    def _measure(self) -> None:
        self.data.add_stat(self._metric(), self._sim.now)

    @property
    def active(self) -> bool:
        return self._handle.active

    def stop(self) -> None:
        self._handle.cancel()
