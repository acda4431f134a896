"""Rate limiter capability consulted before an assessment runs."""

from __future__ import annotations

import time
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict, Protocol


class RateLimiter(Protocol):
    def try_acquire(self, subject_key: str) -> bool:
        ...


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` per subject within ``window_seconds``."""

    def __init__(
        self,
        *,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = Lock()

    def try_acquire(self, subject_key: str) -> bool:
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            hits = self._hits.setdefault(subject_key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    def remaining(self, subject_key: str) -> int:
        cutoff = self._clock() - self.window_seconds
        with self._lock:
            hits = self._hits.get(subject_key, deque())
            active = sum(1 for stamp in hits if stamp > cutoff)
        return max(0, self.max_requests - active)
