"""Fixed-window rate limiter keyed by client identity.

Each client gets `max_requests` per window. The first request after a window
expires starts a new window with a count of 1. Entries live in a bounded
TTLCache so idle clients are dropped instead of accumulating forever.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from cachetools import TTLCache

from .config import RATE_LIMIT_MAX_CLIENTS, RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS

UNKNOWN_CLIENT = "unknown"


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float


@dataclass(frozen=True)
class RateLimitStatus:
    allowed: bool
    limit: int
    remaining: int
    reset_in: float  # seconds until the window resets


def client_identity(forwarded_for: str | None) -> str:
    """First address of an X-Forwarded-For header, trimmed."""
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return UNKNOWN_CLIENT


class RateLimiter:
    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        max_clients: int = RATE_LIMIT_MAX_CLIENTS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # Entries outlive their window so the reset below decides when it ends.
        self._entries: TTLCache[str, RateLimitEntry] = TTLCache(
            maxsize=max_clients, ttl=window_seconds * 2, timer=clock
        )

    def check(self, client_id: str) -> RateLimitStatus:
        """Count one request for `client_id` and report whether it may proceed."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(client_id)

            if entry is None or now > entry.reset_time:
                self._entries[client_id] = RateLimitEntry(count=1, reset_time=now + self.window_seconds)
                return RateLimitStatus(True, self.max_requests, self.max_requests - 1, self.window_seconds)

            if entry.count >= self.max_requests:
                return RateLimitStatus(False, self.max_requests, 0, entry.reset_time - now)

            entry.count += 1
            return RateLimitStatus(
                True, self.max_requests, self.max_requests - entry.count, entry.reset_time - now
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
