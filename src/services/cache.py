"""Process-local LRU cache with per-entry expiry.

Backs the translation cache.  Nothing is persisted: a restart simply
means the next translation of each template goes back to the API.
"""

from __future__ import annotations

import asyncio
import hashlib
import time
from collections import OrderedDict
from typing import Callable


def stable_hash(text: str) -> str:
    """Deterministic, compact hash for use in cache keys."""
    return hashlib.sha256(text.encode()).hexdigest()[:16]


class _CacheEntry:
    __slots__ = ("expires_at", "value")

    def __init__(self, value: str, expires_at: float | None) -> None:
        self.value = value
        self.expires_at = expires_at


class TTLCache:
    """OrderedDict-based LRU cache with O(1) get/set.

    Guarded by an :class:`asyncio.Lock`, which is sufficient for the
    single-process async server.  Expired entries are evicted lazily on
    access; the least-recently-used entry is evicted when full.
    """

    __slots__ = ("_clock", "_data", "_lock", "_max_size", "_ttl_seconds", "hits", "misses")

    def __init__(
        self,
        *,
        max_size: int = 5_000,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_size = max_size
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: OrderedDict[str, _CacheEntry] = OrderedDict()
        self._lock = asyncio.Lock()
        self.hits = 0
        self.misses = 0

    async def get(self, key: str) -> str | None:
        async with self._lock:
            entry = self._data.get(key)
            if entry is None:
                self.misses += 1
                return None
            if entry.expires_at is not None and self._clock() >= entry.expires_at:
                del self._data[key]
                self.misses += 1
                return None
            self._data.move_to_end(key)
            self.hits += 1
            return entry.value

    async def set(self, key: str, value: str) -> None:
        expires_at = self._clock() + self._ttl_seconds if self._ttl_seconds is not None else None
        async with self._lock:
            self._data.pop(key, None)
            while len(self._data) >= self._max_size:
                self._data.popitem(last=False)
            self._data[key] = _CacheEntry(value, expires_at)

    async def clear(self) -> None:
        async with self._lock:
            self._data.clear()

    @property
    def size(self) -> int:
        """Current number of (possibly expired) entries."""
        return len(self._data)
