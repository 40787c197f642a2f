"""Rendered-output cache for actions.

Layout::

    # no key function
    {"/widgets/show": CacheEntry(content=..., created_at=..., ttl=60)}

    # with a key function
    {"/widgets/show": {"alice": CacheEntry(...), "bob": CacheEntry(...)}}

The base key is the mount path plus action name. Positional arguments are
*not* part of it, so ``/widgets/show/1`` and ``/widgets/show/2`` share one
slot unless a key function tells them apart.

Entries live until they expire (checked lazily on read) or are removed
explicitly. There is no size bound.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING

from perch.errors import ConfigurationError

if TYPE_CHECKING:
    from perch.controller.action import Action
    from perch.http.request import Request

type Clock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class CacheOptions:
    """Per-action cache rule.

    ``ttl`` is in seconds (``None`` caches until cleared). ``key`` is called
    with the current request; its ``str()`` becomes the secondary key.
    """

    ttl: float | None = None
    key: Callable[[Request], object] | None = None

    def __post_init__(self) -> None:
        if self.ttl is not None and (
            isinstance(self.ttl, bool) or not isinstance(self.ttl, int | float) or self.ttl <= 0
        ):
            msg = f"cache ttl must be a positive number of seconds, got {self.ttl!r}"
            raise ConfigurationError(msg)
        if self.key is not None and not callable(self.key):
            msg = f"cache key must be callable, got {type(self.key).__name__}"
            raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached rendering."""

    content: str
    created_at: float
    ttl: float | None = None

    def is_valid(self, now: float) -> bool:
        return self.ttl is None or now - self.created_at < self.ttl


type _Slot = CacheEntry | dict[str, CacheEntry]


class ActionCache:
    """Two-level cache of fully rendered action output.

    Thread safety:
        One lock guards the table. Key functions run outside it. Concurrent
        stores to the same key are last-write-wins.
    """

    __slots__ = ("_clock", "_entries", "_lock")

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, _Slot] = {}
        self._lock = threading.Lock()

    @staticmethod
    def keys_for(action: Action, request: Request | None) -> tuple[str, str | None]:
        """``(base_key, secondary_key)`` for *action* under *request*."""
        options = action.cache_options
        if options is None or options.key is None:
            return action.cache_key, None
        return action.cache_key, str(options.key(request))

    def lookup(self, action: Action, request: Request | None) -> str | None:
        """Cached content for *action*, or None on miss, expiry, or no rule."""
        if action.cache_options is None:
            return None
        base, secondary = self.keys_for(action, request)
        now = self._clock()
        with self._lock:
            entry = self._find(base, secondary)
            if entry is None:
                return None
            if entry.is_valid(now):
                return entry.content
            self._remove(base, secondary)
        return None

    def store(self, action: Action, request: Request | None, content: str) -> None:
        """Cache *content* for *action*; no-op when the action has no rule."""
        options = action.cache_options
        if options is None:
            return
        base, secondary = self.keys_for(action, request)
        entry = CacheEntry(content=content, created_at=self._clock(), ttl=options.ttl)
        with self._lock:
            if secondary is None:
                self._entries[base] = entry
                return
            slot = self._entries.get(base)
            if not isinstance(slot, dict):
                slot = self._entries[base] = {}
            slot[secondary] = entry

    def get(self, base: str, key: str | None = None) -> CacheEntry | None:
        """Raw entry at *base* (and secondary *key*), expired or not."""
        with self._lock:
            return self._find(base, key)

    def delete(self, base: str) -> bool:
        """Remove everything stored under *base*. True if something was removed."""
        with self._lock:
            return self._entries.pop(base, None) is not None

    def invalidate(self, pattern: str, key: str | None = None) -> int:
        """Remove entries whose base key matches the glob *pattern*.

        With *key*, only that secondary entry is removed under each match.
        Returns the number of entries removed.
        """
        removed = 0
        with self._lock:
            for base in [b for b in self._entries if fnmatchcase(b, pattern)]:
                if key is None:
                    slot = self._entries.pop(base)
                    removed += len(slot) if isinstance(slot, dict) else 1
                elif self._remove(base, key):
                    removed += 1
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _find(self, base: str, secondary: str | None) -> CacheEntry | None:
        slot = self._entries.get(base)
        if secondary is None:
            return slot if isinstance(slot, CacheEntry) else None
        if isinstance(slot, dict):
            return slot.get(secondary)
        return None

    def _remove(self, base: str, secondary: str | None) -> bool:
        if secondary is None:
            return self._entries.pop(base, None) is not None
        slot = self._entries.get(base)
        if not isinstance(slot, dict) or slot.pop(secondary, None) is None:
            return False
        if not slot:
            del self._entries[base]
        return True

    def __contains__(self, base: object) -> bool:
        return base in self._entries

    def __len__(self) -> int:
        with self._lock:
            return sum(len(s) if isinstance(s, dict) else 1 for s in self._entries.values())

    def __repr__(self) -> str:
        return f"<ActionCache {len(self)} entries>"
