"""Cooperative processes and channels."""

from simkernel.process.channel import Channel, ChannelStats
from simkernel.process.commands import Delay, Join, Put, Take, WaitFor, WaitUntil
from simkernel.process.process import Interrupt, Process, ProcessState
from simkernel.process.scheduler import ProcessScheduler

__all__ = [
    "Channel",
    "ChannelStats",
    "Delay",
    "Interrupt",
    "Join",
    "Process",
    "ProcessScheduler",
    "ProcessState",
    "Put",
    "Take",
    "WaitFor",
    "WaitUntil",
]
