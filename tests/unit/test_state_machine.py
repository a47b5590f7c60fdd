"""Unit tests for the StateMachine binding."""

import logging
from dataclasses import dataclass
from enum import Enum

from simkernel import StateMachine, UndefinedTransition, dispatch


class Door(Enum):
    CLOSED = "closed"
    OPEN = "open"
    LOCKED = "locked"


class Signal(Enum):
    KNOCK = "knock"


@dataclass
class Push:
    force: float = 1.0


@dataclass
class Pull:
    pass


def _door() -> StateMachine:
    door = StateMachine(Door.CLOSED, name="door")

    @door.on(Door.CLOSED, Push)
    def open_door(machine, event):
        machine.state = Door.OPEN
        return "opened"

    @door.on(Door.OPEN, Pull)
    def close_door(machine, event):
        machine.state = Door.CLOSED

    return door


class TestDispatch:
    def test_matching_transition_runs_handler(self):
        door = _door()
        assert door.dispatch(Push()) == "opened"
        assert door.state is Door.OPEN

    def test_function_form(self):
        door = _door()
        dispatch(door, Push())
        dispatch(door, Pull())
        assert door.state is Door.CLOSED

    def test_enum_events_are_their_own_variant(self):
        door = StateMachine(Door.CLOSED)
        seen = []
        door.add_transition(Door.CLOSED, Signal.KNOCK, lambda m, e: seen.append(e))
        door.dispatch(Signal.KNOCK)
        assert seen == [Signal.KNOCK]

    def test_transition_table_in_constructor(self):
        door = StateMachine(
            Door.LOCKED,
            transitions={(Door.LOCKED, Push): lambda m, e: setattr(m, "state", Door.OPEN)},
        )
        door.dispatch(Push(force=9.0))
        assert door.state is Door.OPEN


class TestUndefinedTransitions:
    def test_reported_not_raised(self, caplog):
        reports = []
        door = _door()
        door._on_undefined = reports.append

        with caplog.at_level(logging.WARNING, logger="simkernel"):
            result = door.dispatch(Pull())

        assert result is None
        assert door.state is Door.CLOSED
        assert reports == [UndefinedTransition("door", Door.CLOSED, Pull())]
        assert door.undefined == reports
        assert "undefined transition" in caplog.text

    def test_custom_default_handler(self):
        fallback = []
        door = StateMachine(Door.CLOSED, default=lambda m, e: fallback.append((m.state, e)))
        door.dispatch(Pull())
        assert fallback == [(Door.CLOSED, Pull())]
        assert door.undefined == []


def test_drives_model_from_scheduled_events(sim) -> None:
    door = _door()
    states = []

    def poke(event):
        door.dispatch(event)
        states.append((sim.current_time(), door.state))

    sim.schedule(lambda: poke(Push()), at=1.0)
    sim.schedule(lambda: poke(Push()), at=2.0)
    sim.schedule(lambda: poke(Pull()), at=3.0)
    sim.run(5.0)
    assert states == [(1.0, Door.OPEN), (2.0, Door.OPEN), (3.0, Door.CLOSED)]
    assert len(door.undefined) == 1
