"""Table-driven state machines for client models.

A StateMachine maps (current state, event variant) pairs to handlers. States
are usually members of an Enum; the variant of an event is the member itself
for Enum events, otherwise the event's class. Pairs missing from the table go
to the default handler, which reports an undefined transition and leaves the
state alone.

Example::

    class Light(Enum):
        OFF = "off"
        ON = "on"

    class Toggle: ...

    switch = StateMachine(Light.OFF)

    @switch.on(Light.OFF, Toggle)
    def turn_on(machine, event):
        machine.state = Light.ON

    sim.schedule(lambda: switch.dispatch(Toggle()), after=1.0)

The binding never touches the clock; handlers schedule further work through
the Simulation like any other client code.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[["StateMachine", Any], Any]


@dataclass(frozen=True)
class UndefinedTransition:
    """Report for an event the current state has no transition for."""

    machine: str
    state: Hashable
    event: Any

    def __str__(self) -> str:
        return f"{self.machine}: undefined transition from {self.state!r} on {event_variant(self.event)!r}"


def event_variant(event: Any) -> Hashable:
    """Key used to look up an event in a transition table."""
    if isinstance(event, Enum):
        return event
    return type(event)


class StateMachine:
    """A state plus a transition table and a fallback path.

    Args:
        initial: Starting state.
        transitions: Optional mapping ``{(state, variant): handler}``.
        default: Handler for unmapped pairs. Defaults to reporting an
            undefined transition.
        on_undefined: Diagnostic callback receiving UndefinedTransition
            reports from the built-in default handler.
        name: Label for logs.
    """

    def __init__(
        self,
        initial: Hashable,
        transitions: dict[tuple[Hashable, Hashable], Handler] | None = None,
        default: Handler | None = None,
        on_undefined: Callable[[UndefinedTransition], None] | None = None,
        name: str = "machine",
    ):
        self.state = initial
        self.name = name
        self._table: dict[tuple[Hashable, Hashable], Handler] = dict(transitions or {})
        self._default = default
        self._on_undefined = on_undefined
        self.undefined: list[UndefinedTransition] = []

    @property
    def transitions(self) -> dict[tuple[Hashable, Hashable], Handler]:
        return dict(self._table)

    def add_transition(self, state: Hashable, variant: Hashable, handler: Handler) -> None:
        self._table[(state, variant)] = handler

    def on(self, state: Hashable, variant: Hashable) -> Callable[[Handler], Handler]:
        """Decorator form of add_transition()."""

        def register(handler: Handler) -> Handler:
            self.add_transition(state, variant, handler)
            return handler

        return register

    def set_default(self, handler: Handler | None) -> None:
        self._default = handler

    def handler_for(self, event: Any) -> Handler | None:
        return self._table.get((self.state, event_variant(event)))

    def dispatch(self, event: Any) -> Any:
        """Run the handler for ``event`` in the current state."""
        handler = self.handler_for(event)
        if handler is not None:
            return handler(self, event)
        if self._default is not None:
            return self._default(self, event)
        return self._report_undefined(event)

    def _report_undefined(self, event: Any) -> None:
        report = UndefinedTransition(self.name, self.state, event)
        self.undefined.append(report)
        logger.warning("%s", report)
        if self._on_undefined is not None:
            self._on_undefined(report)
        return None

    def __repr__(self) -> str:
        return f"StateMachine({self.name!r}, state={self.state!r}, transitions={len(self._table)})"


def dispatch(machine: StateMachine, event: Any) -> Any:
    """Function form of StateMachine.dispatch()."""
    return machine.dispatch(event)
