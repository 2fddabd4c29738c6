"""
Cache - In-memory read-through cache for store queries.

Entries expire a fixed TTL after they were stored. There is no write-driven
invalidation: a store write does not purge matching entries, so a read
within the TTL may return data that predates the write.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class CacheEntry:
    key: str
    payload: Any
    stored_at: int  # epoch millis


def news_cache_key(limit: int, categories: list[str] | None) -> str:
    """Cache key for a news query: `news_{limit}_{sorted categories or "all"}`."""
    category_part = ",".join(sorted(categories)) if categories else "all"
    return f"news_{limit}_{category_part}"


class MemoryCache:
    """In-memory TTL cache with LRU eviction."""

    def __init__(
        self,
        ttl_seconds: int = 600,
        max_size: int = 128,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_millis = ttl_seconds * 1000
        self.max_size = max_size
        self._clock = clock
        self._cache: dict[str, CacheEntry] = {}
        self._access_order: list[str] = []  # Track access order for LRU

    def _now_millis(self) -> int:
        return int(self._clock() * 1000)

    def is_live(self, entry: CacheEntry) -> bool:
        return self._now_millis() - entry.stored_at < self.ttl_millis

    def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            return None

        if not self.is_live(entry):
            self.delete(key)
            return None

        # Update access order (move to end for LRU)
        if key in self._access_order:
            self._access_order.remove(key)
        self._access_order.append(key)

        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        # Evict if at capacity
        while len(self._cache) >= self.max_size and key not in self._cache:
            self._evict_oldest()

        self._cache[key] = CacheEntry(
            key=key,
            payload=payload,
            stored_at=self._now_millis(),
        )

        if key in self._access_order:
            self._access_order.remove(key)
        self._access_order.append(key)

    def delete(self, key: str) -> None:
        self._cache.pop(key, None)
        if key in self._access_order:
            self._access_order.remove(key)

    def clear(self) -> None:
        self._cache.clear()
        self._access_order.clear()

    def _evict_oldest(self):
        """Evict least recently used entry."""
        if self._access_order:
            oldest_key = self._access_order.pop(0)
            self._cache.pop(oldest_key, None)

    def __contains__(self, key: str) -> bool:
        entry = self._cache.get(key)
        return entry is not None and self.is_live(entry)

    @property
    def size(self) -> int:
        return len(self._cache)
