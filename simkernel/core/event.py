"""Units of scheduled work.

A TimedEvent is an action bound to a due time. A ConditionalEvent is an action
released once its predicate holds. Both are handed back to callers as the
handle used for cancellation.

Sorting uses (time, sequence) so that events registered for the same instant
fire in registration order.
"""

import logging
from collections.abc import Callable
from itertools import count
from typing import Any

from simkernel.core.temporal import Instant

logger = logging.getLogger(__name__)

_global_sequence = count()

Action = Callable[[], Any]
Predicate = Callable[[], bool]


def _next_sequence() -> int:
    return next(_global_sequence)


def _label_for(action: Callable, label: str | None) -> str:
    if label:
        return label
    return getattr(action, "__qualname__", None) or type(action).__name__


class TimedEvent:
    """An action due at a specific simulated time.

    Immutable once registered apart from the cancelled/fired flags. Cancelled
    events stay on the heap and are skipped when they reach the top.

    Attributes:
        time: When the action is due.
        sequence: Registration order, used to break ties.
        action: Zero-argument callable run when the event fires.
        label: Human-readable name for logs and failures.
    """

    __slots__ = ("_cancelled", "_fired", "action", "label", "sequence", "time")

    def __init__(self, time: Instant, action: Action, label: str | None = None):
        if not callable(action):
            raise TypeError(f"action must be callable, got {type(action).__name__}")
        self.time = time
        self.action = action
        self.label = _label_for(action, label)
        self.sequence = _next_sequence()
        self._cancelled = False
        self._fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        """Stop this event from firing. No-op once fired or already cancelled."""
        if self._fired:
            return
        self._cancelled = True

    def fire(self) -> Any:
        self._fired = True
        return self.action()

    def __lt__(self, other: "TimedEvent") -> bool:
        if self.time != other.time:
            return self.time < other.time
        return self.sequence < other.sequence

    def __repr__(self) -> str:
        return f"TimedEvent({self.time!r}, {self.label!r}, seq={self.sequence})"


class ConditionalEvent:
    """An action released by a predicate rather than a deadline.

    Attributes:
        predicate: Zero-argument callable; the action fires once it returns True.
        action: Zero-argument callable.
        sequence: Registration order; the registry evaluates in this order.
        label: Human-readable name for logs and failures.
    """

    __slots__ = ("_cancelled", "_fired", "action", "label", "predicate", "sequence")

    def __init__(self, predicate: Predicate, action: Action, label: str | None = None):
        if not callable(predicate):
            raise TypeError(f"predicate must be callable, got {type(predicate).__name__}")
        if not callable(action):
            raise TypeError(f"action must be callable, got {type(action).__name__}")
        self.predicate = predicate
        self.action = action
        self.label = _label_for(action, label)
        self.sequence = _next_sequence()
        self._cancelled = False
        self._fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        if self._fired:
            return
        self._cancelled = True

    def fire(self) -> Any:
        self._fired = True
        return self.action()

    def __repr__(self) -> str:
        return f"ConditionalEvent({self.label!r}, seq={self.sequence})"
