"""Registry of actions released by predicates.

Predicates are checked once per tick, in registration order. They should be
cheap and must not register into this registry themselves; anything
registered while a pass is running waits for the next pass.
"""

import logging

from simkernel.core.event import Action, ConditionalEvent, Predicate

logger = logging.getLogger(__name__)


class ConditionRegistry:
    """Pending conditional events, keyed by sequence (insertion ordered)."""

    def __init__(self) -> None:
        self._pending: dict[int, ConditionalEvent] = {}
        # condition being evaluated or fired, for failure reports
        self.current: ConditionalEvent | None = None

    def register(self, predicate: Predicate, action: Action, label: str | None = None) -> ConditionalEvent:
        """Add a conditional action and return its handle.

        The predicate is not evaluated here; the earliest it can fire is the
        next tick.
        """
        cond = ConditionalEvent(predicate, action, label)
        self._pending[cond.sequence] = cond
        logger.debug("Registered %r", cond)
        return cond

    def cancel(self, cond: ConditionalEvent) -> None:
        cond.cancel()
        self._pending.pop(cond.sequence, None)

    def evaluate_all(self, on_release=None) -> int:
        """Fire and remove every pending condition whose predicate holds.

        Args:
            on_release: Optional callback invoked with each released condition
                just before its action runs.

        Returns:
            Number of conditions released during this pass.
        """
        released = 0
        for cond in list(self._pending.values()):
            # an earlier action in this pass may have cancelled it
            if not cond.pending:
                self._pending.pop(cond.sequence, None)
                continue
            self.current = cond
            if not cond.predicate():
                continue
            del self._pending[cond.sequence]
            if on_release is not None:
                on_release(cond)
            cond.fire()
            released += 1
        self.current = None
        return released

    def clear(self) -> None:
        for cond in self._pending.values():
            cond.cancel()
        self._pending.clear()

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, cond: ConditionalEvent) -> bool:
        return self._pending.get(cond.sequence) is cond
