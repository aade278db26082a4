"""
Thread-safe token bucket rate limiter for pacing upstream API work.
"""

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Token bucket: `capacity` permits, refilled at `requests_per_second`."""

    def __init__(self, requests_per_second: float = 1.0, capacity: int = 1,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.requests_per_second = requests_per_second
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._last_refill = clock()
        self.lock = threading.Lock()

    def _refill(self):
        now = self._clock()
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._tokens = min(self.capacity, self._tokens + elapsed * self.requests_per_second)
            self._last_refill = now

    def wait(self):
        """Block until a token is available, then take it."""
        while True:
            with self.lock:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    return
                sleep_time = (1 - self._tokens) / self.requests_per_second
            logger.debug(f"Rate limit reached, waiting {sleep_time:.2f}s")
            self._sleep(sleep_time)


class NoopRateLimiter:
    """Rate limiter that never waits."""

    def wait(self):
        return None
