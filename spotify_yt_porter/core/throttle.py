"""Request pacing for destination API calls."""

import logging
import time
from collections import deque
from typing import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Allow at most ``max_requests`` calls to ``acquire()`` per sliding window.

    ``acquire()`` blocks until a slot is free. With the defaults this is one
    request every 0.3 seconds.
    """

    def __init__(self, max_requests: int = 1, window_seconds: float = 0.3,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds < 0:
            raise ValueError("window_seconds must not be negative")
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._sent: deque[float] = deque()

    def acquire(self) -> float:
        """Wait for a free slot. Returns the time spent waiting."""
        waited = 0.0
        now = self._clock()
        self._expire(now)

        if len(self._sent) >= self._max_requests:
            wait = self._sent[0] + self._window - now
            if wait > 0:
                logger.debug(f"Throttling for {wait:.2f}s")
                self._sleep(wait)
                waited = wait
            now = self._clock()
            self._expire(now)
            # Clock may not have advanced (e.g. a stubbed sleep); free the slot anyway.
            while len(self._sent) >= self._max_requests:
                self._sent.popleft()

        self._sent.append(now)
        return waited

    def _expire(self, now: float) -> None:
        while self._sent and now - self._sent[0] >= self._window:
            self._sent.popleft()
