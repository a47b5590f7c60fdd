"""Error kinds raised by the simulation kernel.

Scheduling-time errors (PastSchedule, AlreadyRunning) are raised straight
back to the caller. Execution-time errors abort the run loop as an
ActionFailure that carries the simulated time of the failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from simkernel.core.temporal import Instant


class SimulationError(Exception):
    """Base class for every kernel error."""


class PastSchedule(SimulationError, ValueError):
    """Something was scheduled at an absolute time earlier than now."""


class InvalidAdvance(SimulationError, RuntimeError):
    """The clock was asked to move backwards."""


class AlreadyRunning(SimulationError, RuntimeError):
    """run() or reset() was called while a run is in progress."""


class ActionFailure(SimulationError, RuntimeError):
    """An action, predicate or process body raised during a run.

    The original exception is available as ``__cause__``.

    Attributes:
        time: Simulated time at which the failure happened.
        label: Label of the failing event or process.
    """

    def __init__(self, time: Instant, label: str, cause: BaseException):
        self.time = time
        self.label = label
        super().__init__(
            f"action {label!r} failed at t={time.to_seconds()}: "
            f"{type(cause).__name__}: {cause}"
        )


class ChannelFull(SimulationError):
    """put_nowait() on a channel with no waiting taker and no free slot."""


class ChannelEmpty(SimulationError):
    """take_nowait() on a channel with nothing buffered and no waiting putter."""
