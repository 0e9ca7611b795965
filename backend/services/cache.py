"""Simple in-memory TTL cache. No Redis needed.

Note: Each uvicorn worker (and each Functions host process) has its own
cache instance. With --workers 2, data may be fetched twice (once per
worker). The cache still eliminates repeated calls within the same worker.

Expiry is passive: a stale entry stays in memory until the next successful
store for its key replaces it, but ``lookup`` never returns it.
"""

import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable

CACHE_KEY_PREFIX = "coingecko_"


def make_cache_key(endpoint: str) -> str:
    """Cache key for an upstream endpoint. Exact string, no normalization."""
    return f"{CACHE_KEY_PREFIX}{endpoint}"


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    stored_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl


class TTLCache:
    def __init__(self, ttl_seconds: float = 600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._lock = Lock()

    def lookup(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` if it is still fresh, else None."""
        with self._lock:
            entry = self._store.get(key)
        if entry is not None and entry.is_fresh(self._clock()):
            return entry
        return None

    def store(self, key: str, value: Any) -> CacheEntry:
        entry = CacheEntry(key=key, value=value, stored_at=self._clock(), ttl=self.ttl_seconds)
        with self._lock:
            self._store[key] = entry
        return entry

    def peek(self, key: str) -> CacheEntry | None:
        """Raw entry for ``key``, stale or not."""
        with self._lock:
            return self._store.get(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
