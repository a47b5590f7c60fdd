"""simkernel: a discrete-event simulation kernel.

Timed and conditional events, a sampling clock, generator-based cooperative
processes with channels, and a table-driven state machine binding, all driven
by one deterministic run loop.
"""

import logging

from simkernel.core import (
    ActionFailure,
    AlreadyRunning,
    ChannelEmpty,
    ChannelFull,
    ConditionalEvent,
    Instant,
    InvalidAdvance,
    KernelState,
    PastSchedule,
    RepeatingEvent,
    RunSummary,
    SampleAction,
    Simulation,
    SimulationError,
    TimedEvent,
)
from simkernel.fsm import StateMachine, UndefinedTransition, dispatch
from simkernel.instrumentation import Data, EventLog, Probe
from simkernel.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)
from simkernel.process import (
    Channel,
    Delay,
    Interrupt,
    Join,
    Process,
    ProcessState,
    WaitFor,
    WaitUntil,
)

logging.getLogger("simkernel").addHandler(logging.NullHandler())

__all__ = [
    # core
    "ActionFailure",
    "AlreadyRunning",
    "ChannelEmpty",
    "ChannelFull",
    "ConditionalEvent",
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
    # processes
    "Channel",
    "Delay",
    "Interrupt",
    "Join",
    "Process",
    "ProcessState",
    "WaitFor",
    "WaitUntil",
    # state machines
    "StateMachine",
    "UndefinedTransition",
    "dispatch",
    # instrumentation
    "Data",
    "EventLog",
    "Probe",
    # logging
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]
