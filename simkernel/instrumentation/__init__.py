"""Measurement helpers: sampled time series and a fired-work log."""

from simkernel.instrumentation.data import Data
from simkernel.instrumentation.event_log import EventLog, LogEntry
from simkernel.instrumentation.probe import Probe

__all__ = [
    "Data",
    "EventLog",
    "LogEntry",
    "Probe",
]
