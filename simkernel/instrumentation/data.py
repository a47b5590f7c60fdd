"""Time-series storage for values sampled during a run.

Data collects (time, value) pairs, usually from a Probe, and hands them to
pandas for post-run analysis.
"""

from __future__ import annotations

import builtins
from typing import Any

import pandas as pd

from simkernel.core.temporal import Instant


class Data:
    """Timestamped samples with a few summary helpers.

    Samples are kept in append order; Probes append in non-decreasing time.
    """

    TIME = "time_s"
    VALUE = "value"

    def __init__(self, name: str = "data") -> None:
        self.name = name
        self._samples: list[tuple[float, Any]] = []

    def add_stat(self, value: Any, time: Instant) -> None:
        """Record ``value`` at simulated ``time``."""
        self._samples.append((time.to_seconds(), value))

    def clear(self) -> None:
        self._samples.clear()

    @property
    def values(self) -> list[tuple[float, Any]]:
        """All samples as (time_seconds, value) tuples."""
        return self._samples

    def between(self, start_s: float, end_s: float) -> Data:
        """Samples with start_s <= time < end_s, as a new Data."""
        result = Data(self.name)
        result._samples = [(t, v) for t, v in self._samples if start_s <= t < end_s]
        return result

    def count(self) -> int:
        return len(self._samples)

    def mean(self) -> float:
        """Mean of sample values. Returns 0.0 if empty."""
        if not self._samples:
            return 0.0
        return builtins.sum(v for _, v in self._samples) / len(self._samples)

    def min(self) -> float:
        if not self._samples:
            return 0.0
        return builtins.min(v for _, v in self._samples)

    def max(self) -> float:
        if not self._samples:
            return 0.0
        return builtins.max(v for _, v in self._samples)

    def to_dataframe(self) -> pd.DataFrame:
        """Samples as a DataFrame with ``time_s`` and ``value`` columns."""
        return pd.DataFrame(self._samples, columns=[self.TIME, self.VALUE])

    def __len__(self) -> int:
        return len(self._samples)

    def __repr__(self) -> str:
        return f"Data({self.name!r}, samples={len(self._samples)})"
