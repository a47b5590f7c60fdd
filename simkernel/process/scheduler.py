"""Drives generator-based processes on top of the event queue.

Every resumption goes through the event queue as a TimedEvent due *now*, so
processes woken at the same instant run in the order their wake-ups were
registered, and all of them run before the clock moves again. Predicate waits
are the exception: the condition registry resumes the process directly when
it releases the condition, in registration order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from itertools import count
from typing import TYPE_CHECKING, Any

from simkernel.core.errors import PastSchedule
from simkernel.core.temporal import as_instant
from simkernel.process.commands import Delay, Join, Put, Take, WaitFor, WaitUntil
from simkernel.process.process import Interrupt, Process, ProcessState

if TYPE_CHECKING:
    from simkernel.core.simulation import Simulation

logger = logging.getLogger(__name__)


class ProcessScheduler:
    """Launches, suspends and resumes the processes of one simulation."""

    def __init__(self, simulation: Simulation):
        self._sim = simulation
        self._processes: dict[int, Process] = {}
        self._pids = count(1)
        self._running: Process | None = None

    @property
    def processes(self) -> list[Process]:
        """Live (not yet terminated) processes in launch order."""
        return list(self._processes.values())

    @property
    def current(self) -> Process | None:
        """The process whose body is executing right now, if any."""
        return self._running

    def __len__(self) -> int:
        return len(self._processes)

    def launch(
        self,
        body: Callable[..., Generator],
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
        name: str | None = None,
    ) -> Process:
        """Create the body's generator and schedule its first step at now."""
        gen = body(*args, **(kwargs or {}))
        if not isinstance(gen, Generator):
            raise TypeError(
                f"process body {getattr(body, '__name__', body)!r} must be a generator function"
            )
        pid = next(self._pids)
        proc = Process(pid, name or f"{getattr(body, '__name__', 'process')}-{pid}", gen, self)
        self._processes[pid] = proc
        self.wake(proc)
        logger.debug("Launched %r at %r", proc, self._sim.now)
        return proc

    def wake(self, proc: Process, value: Any = None, error: BaseException | None = None) -> None:
        """Schedule ``proc`` to resume at the current instant."""
        proc._state = ProcessState.RUNNABLE
        proc._wakeup = self._sim._schedule_event(
            self._sim.now,
            lambda: self._step(proc, value, error),
            label=f"process:{proc.name}",
        )

    def _step(self, proc: Process, value: Any = None, error: BaseException | None = None) -> None:
        """Run ``proc`` until its next suspension point or termination."""
        self._clear_wait(proc)
        if proc.terminated:
            return
        proc._state = ProcessState.RUNNABLE

        while True:
            self._running = proc
            try:
                if error is not None:
                    command = proc._body.throw(error)
                else:
                    command = proc._body.send(value)
            except StopIteration as stop:
                self._finish(proc, stop.value)
                return
            except Interrupt as exc:
                logger.debug("%r ended by uncaught interrupt (cause=%r)", proc, exc.cause)
                self._finish(proc, None)
                return
            except Exception as exc:
                proc.error = exc
                logger.debug("%r raised %s", proc, type(exc).__name__)
                self._finish(proc, None)
                raise
            finally:
                self._running = None

            try:
                done, value = self._suspend(proc, command)
            except (ValueError, TypeError) as exc:
                # bad command: raise it inside the body, at the same instant
                error, value = exc, None
                continue
            error = None
            if not done:
                proc._state = ProcessState.SUSPENDED
                return

    def _suspend(self, proc: Process, command: Any) -> tuple[bool, Any]:
        """Apply a yielded command.

        Returns:
            (True, value) if the command completed at once and the body should
            be resumed with ``value``; (False, None) if the process now waits.
        """
        if isinstance(command, Process):
            command = Join(command)
        elif isinstance(command, (int, float)) and not isinstance(command, bool):
            command = Delay(command)

        label = f"process:{proc.name}"
        now = self._sim.now

        if isinstance(command, Delay):
            duration = as_instant(command.duration)
            if duration.nanoseconds < 0:
                raise ValueError(f"delay must be >= 0, got {duration!r}")
            proc._wakeup = self._sim._schedule_event(now + duration, lambda: self._step(proc), label=label)
            return False, None

        if isinstance(command, WaitUntil):
            time = as_instant(command.time)
            if time < now:
                raise PastSchedule(f"{proc.name} cannot wait until {time!r}, now is {now!r}")
            proc._wakeup = self._sim._schedule_event(time, lambda: self._step(proc), label=label)
            return False, None

        if isinstance(command, WaitFor):
            proc._condition = self._sim._conditions.register(
                command.predicate, lambda: self._step(proc), label=label
            )
            return False, None

        if isinstance(command, Take):
            return command.channel._take(proc)

        if isinstance(command, Put):
            return command.channel._put(proc, command.value)

        if isinstance(command, Join):
            target = command.process
            if target is proc:
                raise ValueError(f"{proc.name} cannot join itself")
            if target.terminated:
                return True, target.result
            target._joiners.append(proc)
            proc._joining = target
            return False, None

        raise TypeError(f"{proc.name} yielded unsupported value {command!r}")

    def _clear_wait(self, proc: Process) -> None:
        proc._wakeup = None
        proc._condition = None
        proc._channel = None
        proc._joining = None
        proc._handoff = None

    def _release(self, proc: Process, restore: bool = True) -> None:
        """Withdraw ``proc`` from whatever it is waiting on.

        A message already handed to ``proc`` but not yet delivered goes back
        to its channel unless ``restore`` is False.
        """
        if proc._wakeup is not None:
            proc._wakeup.cancel()
        if proc._condition is not None:
            self._sim._conditions.cancel(proc._condition)
        if proc._channel is not None:
            proc._channel._discard(proc)
        if proc._joining is not None and proc in proc._joining._joiners:
            proc._joining._joiners.remove(proc)
        handoff = proc._handoff
        self._clear_wait(proc)
        if restore and handoff is not None and handoff.received:
            handoff.channel._restore(handoff.value)

    def _finish(self, proc: Process, result: Any) -> None:
        proc._state = ProcessState.TERMINATED
        proc.result = result
        self._processes.pop(proc.pid, None)
        logger.debug("%r terminated at %r", proc, self._sim.now)

        joiners, proc._joiners = proc._joiners, []
        for joiner in joiners:
            self.wake(joiner, result)

        hooks, proc._completion_hooks = proc._completion_hooks, []
        for hook in hooks:
            hook(proc)

    def cancel(self, proc: Process) -> None:
        if proc.terminated:
            return
        if proc is self._running:
            raise RuntimeError(f"{proc.name} cannot cancel itself; return from the body instead")
        self._release(proc)
        proc._state = ProcessState.TERMINATED
        proc._body.close()
        self._finish(proc, None)

    def interrupt(self, proc: Process, cause: Any = None) -> bool:
        """Throw Interrupt(cause) into ``proc`` at the current instant.

        Returns:
            True if the Interrupt was scheduled. False if ``proc`` has
            terminated, or if its channel put or take already completed and
            only awaits delivery; that operation stands.
        """
        if proc.terminated:
            return False
        if proc is self._running:
            raise RuntimeError(f"{proc.name} cannot interrupt itself")
        if proc._handoff is not None:
            logger.debug("Interrupt of %r ignored: its %s on %s already completed", proc,
                         "take" if proc._handoff.received else "put", proc._handoff.channel.name)
            return False
        self._release(proc)
        self.wake(proc, error=Interrupt(cause))
        logger.debug("Interrupted %r (cause=%r)", proc, cause)
        return True

    def clear(self) -> None:
        """Terminate every live process without running completion hooks."""
        procs, self._processes = list(self._processes.values()), {}
        for proc in procs:
            self._release(proc, restore=False)
            proc._state = ProcessState.TERMINATED
            proc._joiners.clear()
            proc._completion_hooks.clear()
            proc._body.close()
        self._running = None
