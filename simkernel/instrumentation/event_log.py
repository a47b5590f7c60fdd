"""Record of the work the run loop fired, for debugging and analysis."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

import pandas as pd

from simkernel.core.temporal import Instant


@dataclass(frozen=True)
class LogEntry:
    time_s: float
    kind: str
    label: str


class EventLog:
    """Append-only list of fired timed events, released conditions and sample ticks.

    Pass one to ``Simulation(event_log=...)``. ``kinds`` limits what is kept,
    e.g. ``EventLog(kinds={"event"})``.
    """

    KINDS = frozenset({"event", "condition", "sample"})

    def __init__(self, kinds: set[str] | None = None, max_entries: int | None = None):
        if kinds is not None and not set(kinds) <= self.KINDS:
            raise ValueError(f"unknown kinds {set(kinds) - self.KINDS}; expected a subset of {sorted(self.KINDS)}")
        self._kinds = frozenset(kinds) if kinds is not None else self.KINDS
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        # oldest entries drop off once max_entries is reached
        self.entries: deque[LogEntry] = deque(maxlen=max_entries)

    def record(self, time: Instant, kind: str, label: str) -> None:
        if kind not in self._kinds:
            return
        self.entries.append(LogEntry(time.to_seconds(), kind, label))

    def labels(self, kind: str | None = None) -> list[str]:
        return [e.label for e in self.entries if kind is None or e.kind == kind]

    def clear(self) -> None:
        self.entries.clear()

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [(e.time_s, e.kind, e.label) for e in self.entries],
            columns=["time_s", "kind", "label"],
        )

    def __len__(self) -> int:
        return len(self.entries)
