"""
Bounded in-memory cache with LRU eviction and per-entry expiry.
"""
import threading
import time
import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, Generic, Hashable, Optional, TypeVar

from .core import CacheEntry, CacheStats

logger = logging.getLogger("cache.lru")

V = TypeVar("V")


class BoundedCache(Generic[V]):
    """
    Key/value store with a maximum entry count and lazy TTL expiry.

    - get() only returns entries whose expiry is strictly in the future,
      and marks them most-recently-used
    - set() overwrites in place; inserting a new key at capacity evicts
      exactly one entry, the least recently used
    - Thread-safe: every read/modify/write happens under one lock

    Usage:
        cache = BoundedCache(max_entries=2000, default_ttl=43200)
        cache.set(url, payload)
        payload = cache.get(url)
    """

    def __init__(
        self,
        max_entries: int,
        default_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            max_entries: Capacity, must be at least 1
            default_ttl: TTL in seconds used when set() gets none
            clock: Source of "now" in seconds
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._stats = CacheStats()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: Hashable) -> Optional[V]:
        """Return the cached value, or None on a miss or an expired entry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None

            if not entry.is_fresh(self._clock()):
                del self._entries[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                logger.debug(f"CACHE EXPIRED: {key}")
                return None

            self._entries.move_to_end(key)
            self._stats.hits += 1
            return entry.value

    def set(self, key: Hashable, value: V, ttl_seconds: Optional[float] = None) -> None:
        """
        Store a value.

        Args:
            key: Cache key
            value: Value to store
            ttl_seconds: Lifetime; defaults to the cache's default_ttl

        Raises:
            ValueError: If no TTL is given and the cache has no default
        """
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        if ttl is None:
            raise ValueError("ttl_seconds is required when the cache has no default_ttl")

        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self._max_entries:
                evicted_key, _ = self._entries.popitem(last=False)
                self._stats.evictions += 1
                logger.debug(f"CACHE EVICT: {evicted_key}")
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def __contains__(self, key: Hashable) -> bool:
        """Fresh-entry membership test; does not touch recency or stats."""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and entry.is_fresh(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> int:
        """
        Clear all cache entries.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            logger.info(f"Cleared {count} cache entries")
            return count

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return self._stats.to_dict(len(self._entries), self._max_entries)
