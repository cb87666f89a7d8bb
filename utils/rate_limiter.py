"""
Token bucket limiting calls to the external model.

The bucket holds ``capacity`` tokens (the requests-per-minute budget).
Tokens come back in whole-minute steps: after N full minutes since the
last refill, N * capacity tokens are added, capped at capacity. A caller
that finds the bucket empty is rejected immediately.

One bucket is shared by every session in the process, so refill and
consume happen under a single lock.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

REFILL_WINDOW_SECONDS = 60.0


class TokenBucket:
    """
    Process-wide requests-per-minute limiter.

    Attributes:
        capacity: Maximum number of tokens (requests per minute)
    """

    def __init__(self, capacity: int, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            capacity: Bucket size; values <= 0 reject every request
            clock: Monotonic clock in seconds, injectable for tests
        """
        self.capacity = max(0, int(capacity))
        self._clock = clock
        self._tokens = self.capacity
        self._last_refill = clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        # Caller holds the lock
        elapsed = self._clock() - self._last_refill
        minutes = int(elapsed // REFILL_WINDOW_SECONDS)
        if minutes <= 0:
            return
        self._tokens = min(self.capacity, self._tokens + minutes * self.capacity)
        self._last_refill += minutes * REFILL_WINDOW_SECONDS

    def try_acquire(self) -> bool:
        """
        Take one token if available.

        Returns:
            bool: True if the caller may make the request, False if rejected
        """
        with self._lock:
            self._refill()
            if self._tokens <= 0:
                return False
            self._tokens -= 1
            return True

    @property
    def available(self) -> int:
        """Tokens left in the current window, without refilling or consuming."""
        with self._lock:
            return self._tokens
