"""Short-lived cache of upstream JSON responses.

Entries are checked for staleness on read and evicted lazily; the LRU bound
caps memory when many distinct URLs are requested.
"""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cachetools import LRUCache

from .config import CACHE_MAX_ENTRIES, CACHE_TTL_SECONDS


@dataclass(frozen=True)
class CacheEntry:
    data: Any
    timestamp: float
    ttl: float


def make_cache_key(url: str, custom_headers: list[dict[str, str]] | None = None) -> str:
    """URL plus the caller's headers, serialized in the order given."""
    return f"{url}::{json.dumps(custom_headers or [], separators=(',', ':'), ensure_ascii=False)}"


class ResponseCache:
    def __init__(
        self,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        max_entries: int = CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: LRUCache[str, CacheEntry] = LRUCache(maxsize=max_entries)

    def get(self, key: str) -> Any | None:
        """Return cached data, or None when absent or stale."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now - entry.timestamp < entry.ttl:
                return entry.data
            self._entries.pop(key, None)
            return None

    def set(self, key: str, data: Any, ttl: float | None = None) -> None:
        entry = CacheEntry(data=data, timestamp=self._clock(), ttl=self.ttl_seconds if ttl is None else ttl)
        with self._lock:
            self._entries[key] = entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
