"""Sampling gate for branch events.

The gate bounds how many events reach the statistics table. It combines two
independent decisions, taken in this order:

1. Deterministic sampling. A counter ``c`` is incremented on every
   evaluation and an event is kept iff ``(c * rate) % 1 < rate``. This is a
   periodic pattern, not a random one: no random number is drawn on the hot
   path, and the same counter value always gives the same decision. At rate
   1.0 every event passes, at 0.0 none does.
2. Rate limiting. An event is kept only if at least ``1000 / max`` ms have
   passed since the last kept event.

The gate never blocks or sleeps. Callers supply the current time so that the
decision is a pure function of the gate state and its inputs.

Example:
    >>> gate = SamplingGate(SamplingConfig(enabled=True, sample_rate=0.5, max_samples_per_second=0))
    >>> [gate.admit(0.0) for _ in range(4)]
    [False, True, False, True]
"""

from __future__ import annotations

import time

from pytest_hotpath.config import SamplingConfig


def monotonic_ms() -> float:
    """Return a monotonic timestamp in milliseconds."""
    return time.perf_counter() * 1000.0


class SamplingGate:
    """Decides per event whether it is recorded.

    Attributes:
        config: The sampling settings in force. May be replaced at any time.
        counter: Number of sampling decisions taken since the last reset.
        last_accepted_time: Time (ms) of the last event that passed the rate
            limiter, or None if none has.
    """

    def __init__(self, config: SamplingConfig | None = None) -> None:
        self.config = config if config is not None else SamplingConfig()
        self.counter = 0
        self.last_accepted_time: float | None = None

    def should_sample(self) -> bool:
        """Advance the counter and take the deterministic sampling decision."""
        self.counter += 1
        rate = self.config.sample_rate
        return (self.counter * rate) % 1 < rate

    def is_rate_limited(self, now: float) -> bool:
        """Return True if an event at ``now`` (ms) exceeds the rate cap.

        Accepted events move the rate limiter window forward.
        """
        max_per_second = self.config.max_samples_per_second
        if max_per_second <= 0:
            return False
        min_interval = 1000.0 / max_per_second
        if self.last_accepted_time is not None and now - self.last_accepted_time < min_interval:
            return True
        self.last_accepted_time = now
        return False

    def admit(self, now: float) -> bool:
        """Return True if the event at ``now`` (ms) should be recorded."""
        if not self.should_sample():
            return False
        return not self.is_rate_limited(now)

    def reset(self) -> None:
        """Forget all counters."""
        self.counter = 0
        self.last_accepted_time = None
