"""Tests for the retry policy (ceiling and exponential backoff)."""

import pytest

from logship.resilience import MAX_RETRIES, RETRY_BASE_SECONDS, RetryConfig, RetryPolicy


class TestRetryConfig:
    """Tests for RetryConfig defaults and validation."""

    def test_defaults(self):
        config = RetryConfig()
        assert config.max_retries == MAX_RETRIES == 10
        assert config.base_delay == RETRY_BASE_SECONDS == 5.0
        assert config.multiplier == 2.0
        assert config.max_delay is None
        assert config.jitter == 0.0

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_retries": -1}, {"base_delay": -0.1}, {"jitter": 1.5}],
    )
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_default_delay_sequence(self):
        """Delays double from 5s up to 2560s across ten retries."""
        policy = RetryPolicy()
        delays = [policy.delay_for(n) for n in range(10)]
        assert delays == [5, 10, 20, 40, 80, 160, 320, 640, 1280, 2560]

    def test_ceiling(self):
        policy = RetryPolicy()
        assert policy.total_attempts == 11
        assert policy.should_retry(0) is True
        assert policy.should_retry(9) is True
        assert policy.should_retry(10) is False

    def test_zero_retries(self):
        policy = RetryPolicy(RetryConfig(max_retries=0))
        assert policy.total_attempts == 1
        assert policy.should_retry(0) is False

    def test_max_delay_caps(self):
        policy = RetryPolicy(RetryConfig(base_delay=1.0, max_delay=10.0))
        assert policy.delay_for(2) == 4.0
        assert policy.delay_for(5) == 10.0

    def test_jitter_stays_in_range(self):
        policy = RetryPolicy(RetryConfig(base_delay=10.0, jitter=0.1))
        for _ in range(50):
            delay = policy.delay_for(0)
            assert 9.0 <= delay <= 11.0

    def test_stats_track_schedules_and_exhaustion(self):
        policy = RetryPolicy(RetryConfig(max_retries=3))

        assert policy.schedule(0) == 5.0
        assert policy.schedule(1) == 10.0
        policy.record_exhausted()

        stats = policy.get_stats()
        assert stats["retries_scheduled"] == 2
        assert stats["exhausted"] == 1
        assert stats["max_retries"] == 3
