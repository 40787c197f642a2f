"""Per-controller configuration with ancestral lookup.

Every controller class owns a ``TraitStore`` linked to its parent class's
store. Reads walk the chain (own value, then the nearest ancestor that
declares it, then the process-wide default). Writes only ever touch the
writing class's own store.

Values are immutable. Declarations build a new value from the inherited
one and store it locally, so a subclass never mutates its ancestor::

    Base.layout("site")          # Base's store: layout -> LayoutRules(default=site)
    Child.deny_layout("feed")    # Child's store: copy of Base's rules + deny {feed}

Thread safety:
    Reads are lock-free (dict lookups on immutable values). Writes take the
    store's lock so two concurrent declarations on one class cannot lose
    each other's update.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True, slots=True)
class LayoutRef:
    """A reference to a layout template, resolved lazily at render time.

    ``name`` starting with ``/`` is an absolute template path. Otherwise it
    names a template under ``owner`` (the controller that declared it).
    """

    name: str
    owner: type | None = None

    @property
    def is_absolute(self) -> bool:
        return self.name.startswith("/")


@dataclass(frozen=True, slots=True)
class LayoutRules:
    """Which layout wraps which action."""

    default: LayoutRef | None = None
    per_action: Mapping[str, LayoutRef] = field(default_factory=lambda: MappingProxyType({}))
    denied: frozenset[str] = frozenset()

    def with_default(self, ref: LayoutRef | None) -> LayoutRules:
        return replace(self, default=ref)

    def with_actions(self, ref: LayoutRef, actions: tuple[str, ...]) -> LayoutRules:
        merged = {**self.per_action, **dict.fromkeys(actions, ref)}
        return replace(self, per_action=MappingProxyType(merged))

    def with_denied(self, actions: tuple[str, ...]) -> LayoutRules:
        return replace(self, denied=self.denied | frozenset(actions))

    def for_action(self, name: str) -> LayoutRef | None:
        """Layout for action *name*, or None if it gets no layout."""
        if name in self.denied:
            return None
        return self.per_action.get(name, self.default)


# Process-wide defaults, consulted when no class in the chain declares a key.
DEFAULTS: Mapping[str, Any] = MappingProxyType(
    {
        "automap": True,
        "layout": LayoutRules(),
        "cache": MappingProxyType({}),
        "excluded_capabilities": frozenset(),
        "templates": MappingProxyType({}),
        "template_root": None,
    }
)


class TraitStore:
    """Configuration for one controller class, linked to its parent's store."""

    __slots__ = ("_lock", "_own", "name", "parent")

    def __init__(self, name: str, parent: TraitStore | None = None) -> None:
        self.name = name
        self.parent = parent
        self._own: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        """Return the nearest declared value for *key*.

        Falls back to ``DEFAULTS`` and finally ``None``; never raises.
        """
        store: TraitStore | None = self
        while store is not None:
            try:
                return store._own[key]
            except KeyError:
                store = store.parent
        return DEFAULTS.get(key)

    def set(self, key: str, value: Any) -> None:
        """Declare *value* for *key* on this class only."""
        with self._lock:
            self._own[key] = value

    def update(self, key: str, change: Callable[[Any], Any]) -> Any:
        """Derive a new local value from the inherited one.

        ``change`` receives the current (possibly inherited) value and must
        return a new value; the result is stored on this class only.
        """
        with self._lock:
            value = change(self.get(key))
            self._own[key] = value
            return value

    def defines(self, key: str) -> bool:
        """True if this class (not an ancestor) declares *key*."""
        return key in self._own

    def __repr__(self) -> str:
        return f"<TraitStore {self.name} {sorted(self._own)}>"
