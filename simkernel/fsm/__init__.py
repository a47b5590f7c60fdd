"""State machine binding for client models."""

from simkernel.fsm.machine import StateMachine, UndefinedTransition, dispatch, event_variant

__all__ = [
    "StateMachine",
    "UndefinedTransition",
    "dispatch",
    "event_variant",
]
