"""The simulation session: clock, stores and the run loop that drives them.

A Simulation owns one VirtualClock, one EventHeap, one ConditionRegistry and
one ProcessScheduler. Client code only touches them through the scheduling
API below; the run loop is the single control path that mutates them.

Example::

    sim = Simulation()
    sim.schedule(lambda: print("A", sim.current_time()), after=1.0)
    sim.schedule(lambda: print("B", sim.current_time()), at=1.0)
    print(sim.run(30.0))
    # run! finished with 2 clock events, 0 sample steps, simulation time: 30.0
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from simkernel.core.clock import VirtualClock
from simkernel.core.conditions import ConditionRegistry
from simkernel.core.errors import ActionFailure, AlreadyRunning, PastSchedule
from simkernel.core.event import Action, ConditionalEvent, Predicate, TimedEvent
from simkernel.core.event_heap import EventHeap
from simkernel.core.summary import RunSummary
from simkernel.core.temporal import Instant, TimeLike, as_instant
from simkernel.process.channel import Channel
from simkernel.process.commands import Delay, WaitFor, WaitUntil
from simkernel.process.process import Process
from simkernel.process.scheduler import ProcessScheduler

if TYPE_CHECKING:
    from simkernel.instrumentation.event_log import EventLog

logger = logging.getLogger(__name__)


class KernelState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    FAILED = "failed"


class SampleAction:
    """Handle for an action run on every sampling tick."""

    __slots__ = ("_active", "action", "label")

    def __init__(self, action: Action, label: str):
        self.action = action
        self.label = label
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False

    def __repr__(self) -> str:
        return f"SampleAction({self.label!r}, active={self._active})"


class RepeatingEvent:
    """Handle for an action fired at a fixed interval.

    Each firing registers the next occurrence after the action returns, so an
    action that cancels its own series stops it cleanly.

    Attributes:
        interval: Spacing between firings.
        count: Maximum number of firings, or None for unbounded.
        fired: Firings so far.
    """

    def __init__(
        self,
        simulation: Simulation,
        interval: Instant,
        action: Action,
        count: int | None,
        label: str,
    ):
        self.interval = interval
        self.count = count
        self.fired = 0
        self._sim = simulation
        self._action = action
        self._label = label
        self._cancelled = False
        self._event: TimedEvent | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def next_time(self) -> Instant | None:
        if self._event is None or not self._event.pending:
            return None
        return self._event.time

    def cancel(self) -> None:
        self._cancelled = True
        if self._event is not None:
            self._event.cancel()

    def _arm(self, time: Instant) -> None:
        self._event = self._sim._schedule_event(time, self._fire, label=self._label)

    def _fire(self) -> None:
        self.fired += 1
        self._action()
        if self._cancelled:
            return
        if self.count is not None and self.fired >= self.count:
            return
        self._arm(self._sim.now + self.interval)


@dataclass
class _RunCounters:
    clock_events: int = 0
    sample_steps: int = 0
    conditions_released: int = 0
    stopped: bool = False


class Simulation:
    """A discrete-event simulation session.

    Lifecycle: create → run* → reset → run* → discard. Only one run may be
    active at a time; a failed run leaves the session FAILED until reset().

    Args:
        epoch: Initial simulated time in seconds (or an Instant).
        sample_rate: Sampling interval; 0 disables sampling ticks.
        name: Label for logs.
        event_log: Optional EventLog that records everything the run loop fires.
    """

    def __init__(
        self,
        epoch: TimeLike = 0.0,
        sample_rate: TimeLike = 0.0,
        name: str = "simulation",
        event_log: EventLog | None = None,
    ):
        self.name = name
        self._epoch = as_instant(epoch)
        self._clock = VirtualClock(self._epoch, self._as_rate(sample_rate))
        self._event_heap = EventHeap()
        self._conditions = ConditionRegistry()
        self._processes = ProcessScheduler(self)
        self._sample_actions: list[SampleAction] = []
        self._channels: list[Channel] = []
        self._event_log = event_log

        self._state = KernelState.IDLE
        self._stop_requested = False
        self._events_processed = 0
        self._samples_taken = 0

    @staticmethod
    def _as_rate(value: TimeLike) -> Instant:
        rate = as_instant(value)
        if rate.nanoseconds < 0:
            raise ValueError(f"sample rate must be >= 0, got {rate!r}")
        return rate

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    @property
    def now(self) -> Instant:
        return self._clock.now

    def current_time(self) -> float:
        """Current simulated time in seconds. Safe to call from any action."""
        return self._clock.now.to_seconds()

    @property
    def clock(self) -> VirtualClock:
        return self._clock

    @property
    def state(self) -> KernelState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is KernelState.RUNNING

    @property
    def sample_rate(self) -> float:
        return self._clock.sample_rate.to_seconds()

    @sample_rate.setter
    def sample_rate(self, value: TimeLike) -> None:
        self._clock.sample_rate = self._as_rate(value)

    @property
    def events_processed(self) -> int:
        """Timed events fired since creation or the last reset()."""
        return self._events_processed

    @property
    def samples_taken(self) -> int:
        return self._samples_taken

    @property
    def pending_events(self) -> int:
        return self._event_heap.size()

    @property
    def pending_conditions(self) -> int:
        return len(self._conditions)

    @property
    def processes(self) -> list[Process]:
        """Live processes in launch order."""
        return self._processes.processes

    @property
    def event_log(self) -> EventLog | None:
        return self._event_log

    # ------------------------------------------------------------------
    # Scheduling API
    # ------------------------------------------------------------------

    def _schedule_event(self, time: Instant, action: Action, label: str | None = None) -> TimedEvent:
        if time < self._clock.now:
            raise PastSchedule(f"cannot schedule at {time!r}, now is {self._clock.now!r}")
        event = TimedEvent(time, action, label)
        self._event_heap.push(event)
        return event

    def schedule(
        self,
        action: Action,
        *,
        at: TimeLike | None = None,
        after: TimeLike | None = None,
        label: str | None = None,
    ) -> TimedEvent:
        """Register a timed action.

        Exactly one of ``at`` (absolute time) or ``after`` (delay from now)
        must be given.

        Returns:
            The TimedEvent; call ``cancel()`` on it to withdraw the action.

        Raises:
            PastSchedule: ``at`` lies before the current time.
            ValueError: ``after`` is negative, or both/neither of at/after given.
        """
        if (at is None) == (after is None):
            raise ValueError("schedule() needs exactly one of 'at' or 'after'")
        if at is not None:
            time = as_instant(at)
        else:
            delay = as_instant(after)
            if delay.nanoseconds < 0:
                raise ValueError(f"delay must be >= 0, got {delay!r}")
            time = self._clock.now + delay
        event = self._schedule_event(time, action, label)
        logger.debug("Scheduled %r", event)
        return event

    def schedule_when(self, predicate: Predicate, action: Action, label: str | None = None) -> ConditionalEvent:
        """Register an action released on the first tick where ``predicate()`` holds."""
        return self._conditions.register(predicate, action, label)

    def cancel(self, handle: TimedEvent | ConditionalEvent | SampleAction | RepeatingEvent) -> None:
        """Withdraw any scheduling handle. No-op if it already fired."""
        if isinstance(handle, ConditionalEvent):
            self._conditions.cancel(handle)
        else:
            handle.cancel()

    def every(
        self,
        interval: TimeLike,
        action: Action,
        *,
        start: TimeLike | None = None,
        count: int | None = None,
        label: str | None = None,
    ) -> RepeatingEvent:
        """Fire ``action`` at ``start`` (default: now) and then every ``interval``.

        Args:
            interval: Spacing between firings; must be > 0.
            action: Zero-argument callable.
            start: Absolute time of the first firing.
            count: Stop after this many firings.
        """
        step = as_instant(interval)
        if step.nanoseconds <= 0:
            raise ValueError(f"interval must be > 0, got {step!r}")
        if count is not None and count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        first = self._clock.now if start is None else as_instant(start)
        if first < self._clock.now:
            raise PastSchedule(f"cannot start a series at {first!r}, now is {self._clock.now!r}")
        series = RepeatingEvent(self, step, action, count, label or getattr(action, "__qualname__", "every"))
        series._arm(first)
        return series

    def periodic(self, action: Action, interval: TimeLike | None = None, label: str | None = None) -> SampleAction:
        """Run ``action`` on every sampling tick.

        Args:
            action: Zero-argument callable.
            interval: If given, also sets the session's sample rate.
        """
        if interval is not None:
            self.sample_rate = interval
        if not self._clock.sampling:
            logger.warning("Periodic action registered while sampling is disabled (sample_rate=0)")
        sample = SampleAction(action, label or getattr(action, "__qualname__", "sample"))
        self._sample_actions.append(sample)
        return sample

    def launch(self, body: Callable[..., Generator], *args: Any, name: str | None = None, **kwargs: Any) -> Process:
        """Start a cooperative process running ``body(*args, **kwargs)``.

        The body's first step runs at the current instant, on the next run().
        """
        return self._processes.launch(body, args, kwargs, name)

    def channel(self, capacity: int = 0, name: str | None = None) -> Channel:
        """Create a channel owned by this session (cleared on reset)."""
        ch = Channel(capacity, self._processes, name or f"channel-{len(self._channels) + 1}")
        self._channels.append(ch)
        return ch

    @staticmethod
    def delay(duration: TimeLike) -> Delay:
        return Delay(duration)

    @staticmethod
    def wait_until(time: TimeLike) -> WaitUntil:
        return WaitUntil(time)

    @staticmethod
    def wait_for(predicate: Predicate) -> WaitFor:
        return WaitFor(predicate)

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def run(self, until: TimeLike | None = None) -> RunSummary:
        """Advance the simulation to absolute time ``until``.

        With ``until=None`` the run continues until the event queue is empty
        and stops at the last event's due time.

        Returns:
            A RunSummary for this call.

        Raises:
            AlreadyRunning: A run is already in progress.
            PastSchedule: ``until`` is before the current time.
            ActionFailure: An action or process raised; the session is FAILED.
        """
        if self._state is KernelState.RUNNING:
            raise AlreadyRunning(f"{self.name} is already running")
        if self._state is KernelState.FAILED:
            raise RuntimeError(f"{self.name} failed during a previous run; call reset() first")

        end = None if until is None else as_instant(until)
        if end is not None and end < self._clock.now:
            raise PastSchedule(f"cannot run until {end!r}, now is {self._clock.now!r}")
        if end is None and self._clock.sampling:
            raise ValueError("run() without 'until' never ends while sampling is enabled")

        counters = _RunCounters()
        self._state = KernelState.RUNNING
        self._stop_requested = False
        logger.info("%s: run from %r until %r", self.name, self._clock.now, end)

        try:
            self._loop(end, counters)
        except BaseException:
            self._state = KernelState.FAILED
            raise
        self._state = KernelState.IDLE

        summary = RunSummary(
            clock_events=counters.clock_events,
            sample_steps=counters.sample_steps,
            sim_time=self.current_time(),
            conditions_released=counters.conditions_released,
            stopped=counters.stopped,
        )
        logger.info("%s: %s", self.name, summary)
        return summary

    def run_for(self, duration: TimeLike) -> RunSummary:
        """Run for ``duration`` of simulated time from now."""
        span = as_instant(duration)
        if span.nanoseconds < 0:
            raise ValueError(f"duration must be >= 0, got {span!r}")
        return self.run(self._clock.now + span)

    def stop(self) -> None:
        """Ask the active run to return once the current instant has settled."""
        if self._state is not KernelState.RUNNING:
            logger.debug("stop() ignored: %s is not running", self.name)
            return
        self._stop_requested = True

    def _loop(self, end: Instant | None, counters: _RunCounters) -> None:
        while True:
            now = self._clock.now
            if end is not None and now >= end:
                return

            next_sample = self._clock.next_sample
            head = self._event_heap.peek()
            next_timed = head.time if head is not None else None

            candidates = [t for t in (next_timed, next_sample, end) if t is not None]
            if not candidates:
                return
            target = min(candidates)
            self._clock.advance_to(target)

            if next_sample is not None and target == next_sample:
                self._clock.mark_sampled()
                self._sample_tick(counters)
            self._settle(target, counters)

            if self._stop_requested:
                counters.stopped = True
                logger.info("%s: stopped at %r", self.name, target)
                return

    def _settle(self, time: Instant, counters: _RunCounters) -> None:
        """Fire everything due at ``time``, including work that firing creates.

        Conditions are checked after every round, including on an advance
        where nothing was due.
        """
        while True:
            while (event := self._event_heap.pop_due(time)) is not None:
                self._fire(event)
                counters.clock_events += 1
            self._evaluate_conditions(counters)
            if not self._event_heap.has_due(time):
                return

    def _fire(self, event: TimedEvent) -> None:
        self._events_processed += 1
        if self._event_log is not None:
            self._event_log.record(self._clock.now, "event", event.label)
        try:
            event.fire()
        except Exception as exc:
            self._fail(event.label, exc)

    def _sample_tick(self, counters: _RunCounters) -> None:
        counters.sample_steps += 1
        self._samples_taken += 1
        if self._event_log is not None:
            self._event_log.record(self._clock.now, "sample", "sample")
        self._sample_actions = [s for s in self._sample_actions if s.active]
        for sample in list(self._sample_actions):
            if not sample.active:
                continue
            try:
                sample.action()
            except Exception as exc:
                self._fail(sample.label, exc)
        self._evaluate_conditions(counters)

    def _evaluate_conditions(self, counters: _RunCounters) -> None:
        try:
            counters.conditions_released += self._conditions.evaluate_all(on_release=self._log_condition)
        except Exception as exc:
            current = self._conditions.current
            self._conditions.current = None
            self._fail(current.label if current is not None else "condition", exc)

    def _log_condition(self, cond: ConditionalEvent) -> None:
        if self._event_log is not None:
            self._event_log.record(self._clock.now, "condition", cond.label)

    def _fail(self, label: str, exc: Exception) -> None:
        if isinstance(exc, ActionFailure):
            raise exc
        failure = ActionFailure(self._clock.now, label, exc)
        logger.error("%s: %s", self.name, failure)
        raise failure from exc

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self, epoch: TimeLike | None = None, sample_rate: TimeLike = 0.0) -> str:
        """Discard all pending work and rewind the clock to ``epoch``.

        ``epoch`` defaults to the one the session was created with.

        Clears the event queue, the condition registry, periodic sample
        actions, every live process and every session channel.

        Returns:
            A confirmation message.
        """
        if self._state is KernelState.RUNNING:
            raise AlreadyRunning(f"cannot reset {self.name} while it is running")
        start = self._epoch if epoch is None else as_instant(epoch)
        rate = self._as_rate(sample_rate)

        self._processes.clear()
        self._event_heap.clear()
        self._conditions.clear()
        self._sample_actions.clear()
        for ch in self._channels:
            ch.clear()
        self._clock.reset(start, rate)

        self._state = KernelState.IDLE
        self._stop_requested = False
        self._events_processed = 0
        self._samples_taken = 0

        message = f"clock reset to t0={start.to_seconds()}, sampling rate dt={rate.to_seconds()}."
        logger.info("%s: %s", self.name, message)
        return message

    def __repr__(self) -> str:
        return (
            f"Simulation({self.name!r}, now={self._clock.now!r}, state={self._state.value}, "
            f"pending_events={self._event_heap.size()}, processes={len(self._processes)})"
        )
