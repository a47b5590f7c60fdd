"""Cooperative simulation processes.

A Process wraps a generator produced by calling the body passed to
``Simulation.launch()``. It runs until it yields a suspension command, then
sits SUSPENDED until the scheduler resumes it. Everything happens on the
dispatcher's single control path; a process never yields mid-expression.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from simkernel.core.event import ConditionalEvent, TimedEvent
    from simkernel.process.channel import Channel, Handoff
    from simkernel.process.scheduler import ProcessScheduler

logger = logging.getLogger(__name__)


class ProcessState(Enum):
    RUNNABLE = "runnable"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


class Interrupt(Exception):
    """Thrown into a process body by ``Process.interrupt()``.

    A body may catch it and carry on. If it escapes the body the process
    terminates quietly.

    Attributes:
        cause: Whatever the interrupting code passed along.
    """

    def __init__(self, cause: Any = None):
        super().__init__(cause)
        self.cause = cause


class Process:
    """Handle to one launched process.

    Attributes:
        pid: Session-unique id, assigned in launch order.
        name: Label used in logs and failure reports.
        result: Value returned by the body, once terminated normally.
        error: Exception that escaped the body, if any.
    """

    def __init__(
        self,
        pid: int,
        name: str,
        body: Generator,
        scheduler: ProcessScheduler,
    ):
        self.pid = pid
        self.name = name
        self.result: Any = None
        self.error: BaseException | None = None
        self._body = body
        self._scheduler = scheduler
        self._state = ProcessState.RUNNABLE

        # At most one of these is set while SUSPENDED.
        self._wakeup: TimedEvent | None = None
        self._condition: ConditionalEvent | None = None
        self._channel: Channel | None = None
        self._joining: Process | None = None
        # completed put/take waiting for the wake-up to deliver it
        self._handoff: Handoff | None = None

        self._joiners: list[Process] = []
        self._completion_hooks: list[Callable[[Process], None]] = []

    @property
    def state(self) -> ProcessState:
        return self._state

    @property
    def terminated(self) -> bool:
        return self._state is ProcessState.TERMINATED

    @property
    def is_alive(self) -> bool:
        return self._state is not ProcessState.TERMINATED

    def add_completion_hook(self, hook: Callable[[Process], None]) -> None:
        """Run ``hook(process)`` when this process terminates.

        Hooks added after termination run immediately.
        """
        if self.terminated:
            hook(self)
            return
        self._completion_hooks.append(hook)

    def cancel(self) -> None:
        """Terminate the process, releasing it from whatever it waits on."""
        self._scheduler.cancel(self)

    def interrupt(self, cause: Any = None) -> bool:
        """Abort the current wait and raise Interrupt(cause) inside the body.

        Returns:
            False if the process has terminated, or if its wait already
            completed (a channel put or take matched at this instant); the
            operation stands and no Interrupt is raised.
        """
        return self._scheduler.interrupt(self, cause)

    def __repr__(self) -> str:
        return f"Process({self.pid}, {self.name!r}, {self._state.value})"
