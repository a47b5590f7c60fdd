"""Core simulation engine components."""

from simkernel.core.clock import VirtualClock
from simkernel.core.conditions import ConditionRegistry
from simkernel.core.errors import (
    ActionFailure,
    AlreadyRunning,
    ChannelEmpty,
    ChannelFull,
    InvalidAdvance,
    PastSchedule,
    SimulationError,
)
from simkernel.core.event import ConditionalEvent, TimedEvent
from simkernel.core.event_heap import EventHeap
from simkernel.core.simulation import KernelState, RepeatingEvent, SampleAction, Simulation
from simkernel.core.summary import RunSummary
from simkernel.core.temporal import Instant, as_instant

__all__ = [
    "ActionFailure",
    "AlreadyRunning",
    "ChannelEmpty",
    "ChannelFull",
    "ConditionRegistry",
    "ConditionalEvent",
    "EventHeap",
    "Instant",
    "InvalidAdvance",
    "KernelState",
    "PastSchedule",
    "RepeatingEvent",
    "RunSummary",
    "SampleAction",
    "Simulation",
    "SimulationError",
    "TimedEvent",
    "VirtualClock",
    "as_instant",
]
