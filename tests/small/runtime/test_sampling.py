"""Tests for the sampling gate."""

from __future__ import annotations

import pytest

from pytest_hotpath.config import SamplingConfig
from pytest_hotpath.runtime.sampling import SamplingGate, monotonic_ms


def _gate(sample_rate: float = 1.0, max_samples_per_second: float = 0) -> SamplingGate:
    return SamplingGate(
        SamplingConfig(enabled=True, sample_rate=sample_rate, max_samples_per_second=max_samples_per_second)
    )


class TestDeterministicSampling:
    """Test the counter-based sampling decision."""

    def test_half_rate_keeps_exactly_half(self):
        gate = _gate(sample_rate=0.5)

        kept = sum(gate.should_sample() for _ in range(1000))

        assert kept == 500

    def test_decisions_are_reproducible(self):
        first = _gate(sample_rate=0.3)
        second = _gate(sample_rate=0.3)

        assert [first.should_sample() for _ in range(50)] == [second.should_sample() for _ in range(50)]

    def test_tenth_rate_keeps_about_a_tenth(self):
        gate = _gate(sample_rate=0.1)

        kept = sum(gate.should_sample() for _ in range(1000))

        assert 95 <= kept <= 105

    @pytest.mark.parametrize(('rate', 'expected'), [(1.0, 100), (0.0, 0)])
    def test_extreme_rates(self, rate, expected):
        gate = _gate(sample_rate=rate)

        assert sum(gate.should_sample() for _ in range(100)) == expected

    def test_counter_advances_on_every_decision(self):
        gate = _gate(sample_rate=0.0)

        for _ in range(7):
            gate.should_sample()

        assert gate.counter == 7


class TestRateLimiting:
    """Test the per-second cap."""

    def test_accepts_one_event_per_interval(self):
        gate = _gate(max_samples_per_second=10)

        accepted = [t for t in range(100) if gate.admit(float(t))]

        assert accepted == [0]

    def test_accepts_again_after_interval(self):
        gate = _gate(max_samples_per_second=10)

        decisions = [gate.admit(t) for t in (0.0, 50.0, 100.0, 150.0, 200.0)]

        assert decisions == [True, False, True, False, True]

    def test_first_event_always_passes(self):
        gate = _gate(max_samples_per_second=1)

        assert gate.is_rate_limited(123456.0) is False
        assert gate.last_accepted_time == 123456.0

    def test_zero_disables_the_cap(self):
        gate = _gate(max_samples_per_second=0)

        assert all(gate.admit(0.0) for _ in range(1000))

    def test_rejected_sample_does_not_touch_rate_limiter(self):
        gate = _gate(sample_rate=0.0, max_samples_per_second=10)

        gate.admit(0.0)

        assert gate.last_accepted_time is None


class TestReset:
    """Test resetting the gate."""

    def test_reset_clears_counters(self):
        gate = _gate(sample_rate=0.5, max_samples_per_second=10)
        gate.admit(0.0)
        gate.admit(1.0)

        gate.reset()

        assert gate.counter == 0
        assert gate.last_accepted_time is None


def test_monotonic_ms_does_not_go_backwards():
    first = monotonic_ms()
    second = monotonic_ms()

    assert second >= first
