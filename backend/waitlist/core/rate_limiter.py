"""Rate Limiter - per-client sliding window admission gate.

Invariants:
    - Only timestamps inside the trailing window are retained
    - admit() rejects without recording when the window already holds `limit` entries
    - Check-and-record is one critical section (threading.Lock, no await inside)
    - Buckets whose entries have all aged out are dropped

Design Decisions:
    - In-process deque per client: state is lost on restart. Multi-process deployments
      need a shared counter with TTL (e.g. Redis INCR + EXPIRE) instead
    - Clock injected as a monotonic seconds callable so tests can move time
"""

import threading
import time
from collections import deque
from typing import Callable

from waitlist.core.domain_types import (
    ClientId, RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS,
)


class RateLimiter:
    """Sliding-window limiter keyed by client identifier."""

    def __init__(
        self,
        limit: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: dict[ClientId, deque[float]] = {}
        self._lock = threading.Lock()

    def admit(self, client_id: ClientId) -> bool:
        """Record and accept a request, or reject it with no side effect."""
        with self._lock:
            now = self._clock()
            window = self._purge(client_id, now)
            if len(window) >= self.limit:
                return False
            window.append(now)
            self._events[client_id] = window
            return True

    def retry_after(self, client_id: ClientId) -> int:
        """Whole seconds until the oldest entry leaves the window (0 if admissible)."""
        with self._lock:
            now = self._clock()
            window = self._purge(client_id, now)
            if len(window) < self.limit:
                return 0
            return max(1, int(window[0] + self.window_seconds - now + 0.999))

    def _purge(self, client_id: ClientId, now: float) -> deque[float]:
        """Drop aged-out entries. Caller holds the lock."""
        window = self._events.get(client_id)
        if window is None:
            return deque()
        cutoff = now - self.window_seconds
        while window and window[0] <= cutoff:
            window.popleft()
        if not window:
            del self._events[client_id]
        return window

    def __len__(self) -> int:
        """Clients with retained entries. Aged-out ones go on their next access."""
        return len(self._events)
