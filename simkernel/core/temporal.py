"""Simulated time values.

Instant stores time as integer nanoseconds. Integer arithmetic keeps repeated
additions (a sampling clock stepping by 0.1s, say) exact, so a run asked to
stop at 30.0 lands on 30.0 and not 29.999999999.
"""

from __future__ import annotations

from functools import total_ordering
from typing import Union

_NANOS_PER_SECOND = 1_000_000_000


@total_ordering
class Instant:
    """A point (or span) on the simulated time axis.

    Attributes:
        nanoseconds: Integer nanoseconds since the simulation epoch origin.
    """

    __slots__ = ("nanoseconds",)

    def __init__(self, nanoseconds: int):
        self.nanoseconds = int(nanoseconds)

    @classmethod
    def from_seconds(cls, seconds: Union[int, float]) -> Instant:
        if isinstance(seconds, int):
            return cls(seconds * _NANOS_PER_SECOND)
        return cls(round(float(seconds) * _NANOS_PER_SECOND))

    def to_seconds(self) -> float:
        return self.nanoseconds / _NANOS_PER_SECOND

    def is_zero(self) -> bool:
        return self.nanoseconds == 0

    def __add__(self, other: Union[Instant, int, float]) -> Instant:
        if isinstance(other, Instant):
            return Instant(self.nanoseconds + other.nanoseconds)
        if isinstance(other, (int, float)):
            return Instant(self.nanoseconds + Instant.from_seconds(other).nanoseconds)
        return NotImplemented

    def __sub__(self, other: Union[Instant, int, float]) -> Instant:
        if isinstance(other, Instant):
            return Instant(self.nanoseconds - other.nanoseconds)
        if isinstance(other, (int, float)):
            return Instant(self.nanoseconds - Instant.from_seconds(other).nanoseconds)
        return NotImplemented

    def __eq__(self, other):
        if not isinstance(other, Instant):
            return NotImplemented
        return self.nanoseconds == other.nanoseconds

    def __lt__(self, other):
        if not isinstance(other, Instant):
            return NotImplemented
        return self.nanoseconds < other.nanoseconds

    def __hash__(self):
        return hash(self.nanoseconds)

    def __repr__(self) -> str:
        return f"Instant({self.to_seconds()}s)"


Instant.Epoch = Instant(0)

TimeLike = Union[Instant, int, float]
"""Anything the kernel accepts where a time or duration is expected."""


def as_instant(value: TimeLike) -> Instant:
    """Coerce seconds (int/float) or an Instant into an Instant."""
    if isinstance(value, Instant):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected Instant or seconds, got {type(value).__name__}")
    return Instant.from_seconds(value)
