"""Bounded FIFO channel shared by processes and event-based code.

Processes use the blocking forms::

    msg = yield channel.take()
    yield channel.put(msg)

Event or condition based code uses the non-blocking forms on the same
instance::

    sim.schedule_when(channel.is_ready, lambda: handle(channel.take_nowait()))

A capacity of 0 makes a rendezvous channel: every put waits for a taker.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from simkernel.core.errors import ChannelEmpty, ChannelFull
from simkernel.process.commands import Put, Take

if TYPE_CHECKING:
    from simkernel.process.process import Process
    from simkernel.process.scheduler import ProcessScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelStats:
    """Frozen snapshot of channel counters."""

    puts: int = 0
    takes: int = 0
    handoffs: int = 0
    taker_waits: int = 0
    putter_waits: int = 0
    peak_buffered: int = 0


@dataclass
class _PendingPut:
    process: Process
    value: Any


@dataclass
class Handoff:
    """A completed put or take whose process has not resumed yet.

    Attributes:
        channel: Channel the operation completed on.
        value: Message delivered to a taker, or accepted from a putter.
        received: True for a taker receiving ``value``, False for a putter.
    """

    channel: Channel
    value: Any
    received: bool


class Channel:
    """FIFO message queue with room for ``capacity`` buffered messages.

    Waiting takers are always served before buffer space is used, so the
    buffer is never non-empty while a taker waits. A message handed to a
    taker that is cancelled before resuming goes back to the front of the
    channel, even if that briefly overfills the buffer.

    Args:
        capacity: Number of messages the buffer holds (0 = rendezvous).
        scheduler: Process scheduler used to resume waiting processes.
        name: Label for logs.
    """

    def __init__(self, capacity: int, scheduler: ProcessScheduler, name: str = "channel"):
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 0:
            raise ValueError(f"capacity must be an int >= 0, got {capacity!r}")
        self.name = name
        self._capacity = capacity
        self._scheduler = scheduler
        self._buffer: deque[Any] = deque()
        self._takers: deque[Process] = deque()
        self._putters: deque[_PendingPut] = deque()

        self._puts = 0
        self._takes = 0
        self._handoffs = 0
        self._taker_waits = 0
        self._putter_waits = 0
        self._peak_buffered = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def pending_takers(self) -> int:
        return len(self._takers)

    @property
    def pending_putters(self) -> int:
        return len(self._putters)

    @property
    def stats(self) -> ChannelStats:
        return ChannelStats(
            puts=self._puts,
            takes=self._takes,
            handoffs=self._handoffs,
            taker_waits=self._taker_waits,
            putter_waits=self._putter_waits,
            peak_buffered=self._peak_buffered,
        )

    def __len__(self) -> int:
        """Number of buffered messages."""
        return len(self._buffer)

    # Blocking forms, yielded by process bodies

    def put(self, value: Any) -> Put:
        return Put(self, value)

    def take(self) -> Take:
        return Take(self)

    # Probes

    def is_ready(self) -> bool:
        """True if a take would complete without waiting."""
        return bool(self._buffer) or bool(self._putters)

    def can_put(self) -> bool:
        """True if a put would complete without waiting."""
        return bool(self._takers) or len(self._buffer) < self._capacity

    # Non-blocking forms

    def put_nowait(self, value: Any) -> None:
        """Deliver ``value`` now or raise ChannelFull."""
        if not self._offer(value):
            raise ChannelFull(f"channel {self.name!r} has no waiting taker and no free slot")

    def take_nowait(self) -> Any:
        """Return the next message now or raise ChannelEmpty."""
        ready, value = self._poll()
        if not ready:
            raise ChannelEmpty(f"channel {self.name!r} is empty")
        return value

    # Scheduler side

    def _complete(self, proc: Process, value: Any, received: bool) -> None:
        """Resume ``proc`` at now and remember what it is owed until it runs."""
        self._scheduler.wake(proc, value if received else None)
        proc._handoff = Handoff(self, value, received)

    def _offer(self, value: Any) -> bool:
        self._puts += 1
        if self._takers:
            taker = self._takers.popleft()
            self._takes += 1
            self._handoffs += 1
            self._complete(taker, value, received=True)
            return True
        if len(self._buffer) < self._capacity:
            self._buffer.append(value)
            self._peak_buffered = max(self._peak_buffered, len(self._buffer))
            return True
        self._puts -= 1
        return False

    def _poll(self) -> tuple[bool, Any]:
        if self._buffer:
            value = self._buffer.popleft()
            if self._putters and len(self._buffer) < self._capacity:
                pending = self._putters.popleft()
                self._buffer.append(pending.value)
                self._puts += 1
                self._complete(pending.process, pending.value, received=False)
            self._takes += 1
            return True, value
        if self._putters:
            pending = self._putters.popleft()
            self._puts += 1
            self._takes += 1
            self._handoffs += 1
            self._complete(pending.process, pending.value, received=False)
            return True, pending.value
        return False, None

    def _restore(self, value: Any) -> None:
        """Take back a message whose taker was cancelled before resuming."""
        self._takes -= 1
        self._handoffs -= 1
        if self._takers:
            taker = self._takers.popleft()
            self._takes += 1
            self._handoffs += 1
            self._complete(taker, value, received=True)
        else:
            self._buffer.appendleft(value)
            self._peak_buffered = max(self._peak_buffered, len(self._buffer))
        logger.debug("Message %r returned to %s", value, self.name)

    def _put(self, proc: Process, value: Any) -> tuple[bool, Any]:
        if self._offer(value):
            return True, None
        self._putters.append(_PendingPut(proc, value))
        self._putter_waits += 1
        proc._channel = self
        logger.debug("%r waits to put on %s", proc, self.name)
        return False, None

    def _take(self, proc: Process) -> tuple[bool, Any]:
        ready, value = self._poll()
        if ready:
            return True, value
        self._takers.append(proc)
        self._taker_waits += 1
        proc._channel = self
        logger.debug("%r waits to take from %s", proc, self.name)
        return False, None

    def _discard(self, proc: Process) -> None:
        """Drop ``proc`` from both waiter queues."""
        if proc in self._takers:
            self._takers.remove(proc)
        self._putters = deque(p for p in self._putters if p.process is not proc)

    def clear(self) -> None:
        """Forget buffered messages and waiters."""
        self._buffer.clear()
        self._takers.clear()
        self._putters.clear()

    def __repr__(self) -> str:
        return (
            f"Channel({self.name!r}, capacity={self._capacity}, buffered={len(self._buffer)}, "
            f"takers={len(self._takers)}, putters={len(self._putters)})"
        )
