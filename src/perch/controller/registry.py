"""Mount-path registry.

Holds every registered controller (in registration order) and the
``mount path -> controller`` table the resolver reads.

Two kinds of mapping feed the table:

- **Explicit**: ``Controller.map("/path")``. Last writer wins per path,
  and a type has at most one path: a new ``map`` call replaces the old one.
- **Automap**: a path derived from the class name once, at registration.
  ``WidgetsController`` -> ``/widgets``; the primary controller -> ``/``.

Explicit mappings always win. Automap paths are assigned afterwards, in
registration order, and only to paths no one else has claimed.

Lifecycle:
    Written while controller classes are defined (import time), read on
    every request. Writes invalidate a compiled snapshot that readers use
    without locking, so a late registration never corrupts a dispatch in
    flight.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Mapping
from types import MappingProxyType

from perch import paths
from perch.config import AppConfig
from perch.errors import ConfigurationError

logger = logging.getLogger("perch.registry")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """``BlogPost`` -> ``blog_post``, ``HTMLPage`` -> ``html_page``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class Registry:
    """Process-scoped table of controllers and their mount paths.

    Usage::

        registry = Registry()

        class Widgets(Controller, registry=registry):
            def show(self, id): ...

        registry.at("/widgets")   # -> Widgets
    """

    __slots__ = (
        "_controllers",
        "_derived",
        "_explicit",
        "_lock",
        "_snapshot",
        "primary",
        "suffix",
    )

    def __init__(self, *, primary: str = "Main", suffix: str = "Controller") -> None:
        self.primary = primary
        self.suffix = suffix
        self._controllers: list[type] = []
        self._explicit: dict[str, type] = {}
        self._derived: dict[type, str] = {}
        self._snapshot: Mapping[str, type] | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: AppConfig) -> Registry:
        """Registry using the automap naming rules from *config*."""
        return cls(primary=config.primary_controller, suffix=config.controller_suffix)

    # -- Registration --

    def derive(self, name: str) -> str | None:
        """Automap path for a class called *name*, or None if nothing is left."""
        if self.suffix and name.endswith(self.suffix):
            name = name[: -len(self.suffix)]
        if not name:
            return None
        if name == self.primary:
            return "/"
        return "/" + snake_case(name)

    def register(self, controller: type, *, automap: bool = True) -> None:
        """Add *controller*; derive its automap path when *automap* is set."""
        derived = self.derive(controller.__name__) if automap else None
        with self._lock:
            if controller in self._controllers:
                return
            self._controllers.append(controller)
            if derived is not None:
                self._derived[controller] = derived
            self._snapshot = None
        if derived is not None:
            logger.debug("automap %s => %s", derived, controller.__qualname__)

    def map(self, controller: type, mount_path: str) -> None:
        """Map *controller* at *mount_path*, replacing its previous mapping."""
        if not isinstance(mount_path, str) or not mount_path.strip():
            msg = f"{controller.__name__}.map() got invalid path {mount_path!r}"
            raise ConfigurationError(msg)
        path = paths.normalize(mount_path)

        with self._lock:
            self._drop(controller)
            previous = self._explicit.get(path)
            if previous is not None and previous is not controller:
                logger.warning(
                    "%s replaces %s at %s",
                    controller.__qualname__,
                    previous.__qualname__,
                    path,
                )
            self._explicit[path] = controller
            self._snapshot = None
        logger.debug("mapping %s => %s", path, controller.__qualname__)

    def unmap(self, controller: type) -> None:
        """Remove every mapping of *controller*, explicit or automatic."""
        with self._lock:
            self._drop(controller)
            self._snapshot = None

    def _drop(self, controller: type) -> None:
        self._derived.pop(controller, None)
        for path in [p for p, c in self._explicit.items() if c is controller]:
            del self._explicit[path]

    # -- Lookup --

    def mapping(self) -> Mapping[str, type]:
        """Read-only snapshot of the effective ``path -> controller`` table."""
        snapshot = self._snapshot
        if snapshot is None:
            with self._lock:
                snapshot = self._snapshot
                if snapshot is None:
                    snapshot = self._snapshot = self._compile()
        return snapshot

    def _compile(self) -> Mapping[str, type]:
        table = dict(self._explicit)
        for controller in self._controllers:
            path = self._derived.get(controller)
            if path is None:
                continue
            if path in table:
                logger.debug(
                    "automap %s for %s skipped, claimed by %s",
                    path,
                    controller.__qualname__,
                    table[path].__qualname__,
                )
                continue
            table[path] = controller
        return MappingProxyType(table)

    def at(self, path: str) -> type | None:
        """Controller mapped at exactly *path*."""
        return self.mapping().get(paths.normalize(path))

    def path_for(self, controller: type) -> str | None:
        """Mount path of *controller*, or None if it is unmapped."""
        for path, mapped in self.mapping().items():
            if mapped is controller:
                return path
        return None

    @property
    def controllers(self) -> tuple[type, ...]:
        """All registered controllers in registration order."""
        with self._lock:
            return tuple(self._controllers)

    def __len__(self) -> int:
        return len(self.mapping())

    def __repr__(self) -> str:
        return f"<Registry {dict(self.mapping())!r}>"


default_registry = Registry()
"""Registry used by controllers that don't pass ``registry=`` explicitly."""
