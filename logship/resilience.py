"""
Retry policy for logship deliveries.

Exponential backoff with a fixed attempt ceiling: the delay before retry
``n`` (0-based) is ``base_delay * multiplier**n``. With the defaults that
is 5, 10, 20, ... 2560 seconds across ten retries.

Usage:
    from logship.resilience import RetryConfig, RetryPolicy

    policy = RetryPolicy(RetryConfig(max_retries=3, base_delay=0.5))
    for retry in range(policy.config.max_retries + 1):
        ...
        await asyncio.sleep(policy.delay_for(retry))
"""

import random
import threading
from dataclasses import dataclass

MAX_RETRIES = 10
RETRY_BASE_SECONDS = 5.0


@dataclass
class RetryConfig:
    """Configuration for the delivery retry loop."""

    max_retries: int = MAX_RETRIES  # Retries after the first attempt
    base_delay: float = RETRY_BASE_SECONDS  # Delay before the first retry
    multiplier: float = 2.0  # Exponential multiplier
    max_delay: float | None = None  # Optional cap, unset means uncapped
    jitter: float = 0.0  # Random jitter factor (0-1)

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if not 0 <= self.jitter <= 1:
            raise ValueError("jitter must be between 0 and 1")


class RetryPolicy:
    """
    Stateless backoff calculator plus counters for monitoring.

    One policy is shared by every delivery of a client; the retry counter of
    an individual delivery lives in that delivery's loop, not here.
    """

    def __init__(self, config: RetryConfig | None = None):
        self.config = config or RetryConfig()
        self._lock = threading.Lock()
        self._retries_scheduled = 0
        self._exhausted = 0

    @property
    def total_attempts(self) -> int:
        """Maximum number of network attempts per delivery."""
        return self.config.max_retries + 1

    def should_retry(self, retry: int) -> bool:
        """True while ``retry`` (0-based) is below the ceiling."""
        return retry < self.config.max_retries

    def delay_for(self, retry: int) -> float:
        """Delay in seconds before re-sending after failed retry ``retry``."""
        delay = self.config.base_delay * (self.config.multiplier**retry)
        if self.config.max_delay is not None:
            delay = min(delay, self.config.max_delay)

        if self.config.jitter > 0:
            jitter_range = delay * self.config.jitter
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0.0, delay)

    def schedule(self, retry: int) -> float:
        """Record a scheduled retry and return its delay."""
        delay = self.delay_for(retry)
        with self._lock:
            self._retries_scheduled += 1
        return delay

    def record_exhausted(self):
        """Record a delivery that hit the retry ceiling."""
        with self._lock:
            self._exhausted += 1

    def get_stats(self) -> dict:
        """Get retry statistics."""
        with self._lock:
            return {
                "max_retries": self.config.max_retries,
                "base_delay": self.config.base_delay,
                "retries_scheduled": self._retries_scheduled,
                "exhausted": self._exhausted,
            }
