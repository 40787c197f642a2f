"""Action output caching and named value caches."""

from perch.cache.actions import ActionCache, CacheEntry, CacheOptions
from perch.cache.store import Caches, ValueCache

__all__ = ["ActionCache", "CacheEntry", "CacheOptions", "Caches", "ValueCache"]
