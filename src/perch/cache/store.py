"""Named caches.

``Caches`` owns the app's ``ActionCache`` plus any number of general
purpose ``ValueCache`` instances, created only through ``add()``::

    caches = Caches()
    values = caches.add("value_cache")   # created
    caches.add("value_cache") is values  # True, returned as-is
    caches.get("missing")                # None, nothing created
"""

import threading
import time
from typing import Any

from perch.cache.actions import ActionCache, CacheEntry, Clock

_MISSING = object()


class ValueCache:
    """Thread-safe key/value store with optional per-item TTL.

    Meant for smaller amounts of data: results of heavy calculations or
    slow queries shared between requests.
    """

    __slots__ = ("_clock", "_items", "_lock", "name")

    def __init__(self, name: str, clock: Clock = time.monotonic) -> None:
        self.name = name
        self._clock = clock
        self._items: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, *, ttl: float | None = None) -> None:
        entry = CacheEntry(content=value, created_at=self._clock(), ttl=ttl)
        with self._lock:
            self._items[key] = entry

    def get(self, key: str, default: Any = None) -> Any:
        now = self._clock()
        with self._lock:
            entry = self._items.get(key)
            if entry is None:
                return default
            if not entry.is_valid(now):
                del self._items[key]
                return default
            return entry.content

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._items.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __contains__(self, key: object) -> bool:
        return self.get(key, _MISSING) is not _MISSING  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"<ValueCache {self.name!r} {len(self)} items>"


class Caches:
    """The app's action cache plus named value caches."""

    __slots__ = ("_clock", "_lock", "_named", "actions")

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self.actions = ActionCache(clock)
        self._named: dict[str, ValueCache] = {}
        self._lock = threading.Lock()

    def add(self, name: str) -> ValueCache:
        """Return the value cache called *name*, creating it if it doesn't exist."""
        with self._lock:
            cache = self._named.get(name)
            if cache is None:
                cache = self._named[name] = ValueCache(name, self._clock)
            return cache

    def get(self, name: str) -> ValueCache | None:
        """Return the value cache called *name* without creating it."""
        return self._named.get(name)

    def __getitem__(self, name: str) -> ValueCache:
        return self._named[name]

    def __contains__(self, name: object) -> bool:
        return name in self._named

    def clear(self) -> None:
        """Empty the action cache and every value cache."""
        self.actions.clear()
        with self._lock:
            named = list(self._named.values())
        for cache in named:
            cache.clear()
