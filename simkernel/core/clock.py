import logging

from simkernel.core.errors import InvalidAdvance
from simkernel.core.temporal import Instant

logger = logging.getLogger(__name__)


class VirtualClock:
    """Current simulated time plus the sampling interval.

    Only the dispatcher moves the clock. Sampling ticks fall on a fixed grid
    starting one interval after the epoch (or after the moment the rate was
    last changed); a sample rate of zero disables them.
    """

    def __init__(self, epoch: Instant = Instant.Epoch, sample_rate: Instant = Instant.Epoch):
        self._epoch = epoch
        self._now = epoch
        self._sample_rate = sample_rate
        self._next_sample = self._first_sample()

    def _first_sample(self) -> Instant | None:
        if self._sample_rate.nanoseconds <= 0:
            return None
        return self._now + self._sample_rate

    @property
    def now(self) -> Instant:
        return self._now

    @property
    def epoch(self) -> Instant:
        return self._epoch

    @property
    def sample_rate(self) -> Instant:
        return self._sample_rate

    @sample_rate.setter
    def sample_rate(self, rate: Instant) -> None:
        if rate.nanoseconds < 0:
            raise ValueError(f"sample rate must be >= 0, got {rate!r}")
        self._sample_rate = rate
        self._next_sample = self._first_sample()

    @property
    def sampling(self) -> bool:
        return self._sample_rate.nanoseconds > 0

    @property
    def next_sample(self) -> Instant | None:
        """Due time of the next sampling tick, or None when sampling is off."""
        return self._next_sample

    def mark_sampled(self) -> None:
        """Move the sampling grid on by one interval."""
        if self._next_sample is not None:
            self._next_sample = self._next_sample + self._sample_rate

    def advance_to(self, time: Instant) -> None:
        if time < self._now:
            raise InvalidAdvance(f"clock cannot move from {self._now!r} back to {time!r}")
        self._now = time

    def reset(self, epoch: Instant, sample_rate: Instant) -> None:
        """Rewind to ``epoch``. Callers must drain pending work first."""
        if sample_rate.nanoseconds < 0:
            raise ValueError(f"sample rate must be >= 0, got {sample_rate!r}")
        self._epoch = epoch
        self._now = epoch
        self._sample_rate = sample_rate
        self._next_sample = self._first_sample()
        logger.debug("Clock reset to %r (dt=%r)", epoch, sample_rate)

    def __repr__(self) -> str:
        return f"VirtualClock(now={self._now!r}, sample_rate={self._sample_rate!r})"
