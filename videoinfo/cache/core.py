"""
Core cache data structures.
"""
from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class CacheEntry:
    """
    Represents a cached value with an absolute expiry timestamp.

    Timestamps come from the owning cache's clock (monotonic seconds by default).
    """
    value: Any
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        """Usable only while strictly before expiry."""
        return now < self.expires_at

    def ttl_remaining(self, now: float) -> float:
        return max(0.0, self.expires_at - now)


@dataclass
class CacheStats:
    """Counters describing cache activity."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0   # Capacity evictions
    expirations: int = 0  # Entries dropped on read after TTL

    def to_dict(self, entries: int, capacity: int) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        total = self.hits + self.misses
        hit_rate = (self.hits / total * 100) if total > 0 else 0
        return {
            "entries": entries,
            "capacity": capacity,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "hit_rate_percent": round(hit_rate, 1),
        }
