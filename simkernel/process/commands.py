"""Suspension commands yielded by process bodies.

A process body is a generator. Each ``yield`` hands one of these commands to
the scheduler, which suspends the process until the command can complete and
then resumes it with the command's result::

    def courier(sim, inbox, outbox):
        while True:
            parcel = yield inbox.take()
            yield Delay(2.5)
            yield outbox.put(parcel)

A bare number is shorthand for ``Delay``: ``yield 2.5``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from simkernel.core.temporal import TimeLike

if TYPE_CHECKING:
    from simkernel.process.channel import Channel
    from simkernel.process.process import Process


@dataclass(frozen=True)
class Delay:
    """Resume after ``duration`` of simulated time. Resumes with None."""

    duration: TimeLike


@dataclass(frozen=True)
class WaitUntil:
    """Resume at absolute simulated ``time``. Raises PastSchedule if it has passed."""

    time: TimeLike


@dataclass(frozen=True)
class WaitFor:
    """Resume at the first tick where ``predicate()`` is true."""

    predicate: Callable[[], bool]


@dataclass(frozen=True)
class Take:
    """Resume with the next message from ``channel``."""

    channel: Channel


@dataclass(frozen=True)
class Put:
    """Resume once ``value`` has been accepted by ``channel``."""

    channel: Channel
    value: Any


@dataclass(frozen=True)
class Join:
    """Resume with the result of ``process`` once it terminates."""

    process: Process


Command = Delay | WaitUntil | WaitFor | Take | Put | Join
