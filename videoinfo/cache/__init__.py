"""
Bounded LRU cache with per-entry expiry.
"""
from .core import CacheEntry, CacheStats
from .lru import BoundedCache

__all__ = [
    "CacheEntry",
    "CacheStats",
    "BoundedCache",
]
