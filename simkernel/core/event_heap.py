import heapq
import logging

from simkernel.core.event import TimedEvent
from simkernel.core.temporal import Instant

logger = logging.getLogger(__name__)


class EventHeap:
    def __init__(self, events: list[TimedEvent] | None = None):
        """Store TimedEvents directly on the heap.

        TimedEvent orders itself by (time, sequence), so there's no need to
        store (time, event) tuples. Cancellation is lazy: a cancelled event
        stays on the heap until it surfaces, then it is dropped.
        """
        self._heap = list(events) if events else []
        heapq.heapify(self._heap)

    def push(self, events: TimedEvent | list[TimedEvent]) -> None:
        """Push one TimedEvent or a list of them onto the heap."""
        if isinstance(events, list):
            for event in events:
                heapq.heappush(self._heap, event)
        else:
            heapq.heappush(self._heap, events)

    def _discard_cancelled(self) -> None:
        while self._heap and self._heap[0].cancelled:
            dropped = heapq.heappop(self._heap)
            logger.debug("Dropping cancelled %r", dropped)

    def peek(self) -> TimedEvent | None:
        """Earliest pending event, left in place."""
        self._discard_cancelled()
        return self._heap[0] if self._heap else None

    def pop(self) -> TimedEvent:
        self._discard_cancelled()
        return heapq.heappop(self._heap)

    def pop_due(self, time: Instant) -> TimedEvent | None:
        """Remove and return the earliest pending event due at or before ``time``."""
        head = self.peek()
        if head is None or head.time > time:
            return None
        return heapq.heappop(self._heap)

    def has_due(self, time: Instant) -> bool:
        head = self.peek()
        return head is not None and head.time <= time

    def cancel(self, event: TimedEvent) -> None:
        event.cancel()

    def clear(self) -> None:
        for event in self._heap:
            event.cancel()
        self._heap.clear()

    def has_events(self) -> bool:
        return self.peek() is not None

    def size(self) -> int:
        """Number of stored events, including cancelled ones not yet dropped."""
        return len(self._heap)
