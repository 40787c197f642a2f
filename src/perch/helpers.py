"""Capabilities: mixins a controller opts into by inheritance.

Each capability has a name. A controller's capabilities are the named
helpers in its MRO; methods contributed by an *excluded* capability never
become actions (see ``Controller.exclude``). The built-in ``link`` and
``cache`` capabilities are excluded by default.

Usage::

    class Pages(CacheHelper, Controller):
        def index(self):
            hits = self.value_cache.get("hits", 0) + 1
            self.value_cache.set("hits", hits)
            return f"{hits} views, see {self.r(Pages, 'about')}"
"""

from __future__ import annotations

import html
import logging
from typing import TYPE_CHECKING, Any, ClassVar

from kida.template import Markup

from perch import paths
from perch.errors import ConfigurationError

if TYPE_CHECKING:
    from perch.cache.actions import ActionCache
    from perch.cache.store import Caches, ValueCache
    from perch.controller.base import Controller

logger = logging.getLogger("perch.helpers")

CAPABILITIES: dict[str, type[Helper]] = {}
"""Capability name -> helper class. Filled as helper classes are defined."""


class Helper:
    """Base for capability mixins.

    Subclasses name themselves with a class keyword::

        class AuthHelper(Helper, capability="auth"):
            def current_user(self): ...
    """

    capability: ClassVar[str | None] = None

    def __init_subclass__(cls, *, capability: str | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if capability is None:
            return
        if not capability.isidentifier():
            msg = f"capability name must be an identifier, got {capability!r}"
            raise ConfigurationError(msg)
        previous = CAPABILITIES.get(capability)
        if previous is not None and previous is not cls:
            logger.debug("capability %r redefined by %s", capability, cls.__qualname__)
        cls.capability = capability
        CAPABILITIES[capability] = cls


def capabilities_of(cls: type) -> dict[str, type[Helper]]:
    """Named helpers in the MRO of *cls*."""
    found: dict[str, type[Helper]] = {}
    for klass in cls.__mro__:
        name = vars(klass).get("capability")
        if isinstance(name, str):
            found.setdefault(name, klass)
    return found


class LinkHelper(Helper, capability="link"):
    """Build paths to controllers from their mount paths."""

    def r(self, target: type[Controller] | None = None, *parts: object) -> str:
        """Path to *target* (default: this controller) followed by *parts*.

        ::

            self.r(Blog, "show", 7)   # "/blog/show/7"
        """
        controller = target or type(self)
        mount = controller.mount_path()  # type: ignore[attr-defined]
        if mount is None:
            msg = f"{controller.__name__} is not mapped"
            raise ConfigurationError(msg)
        return paths.join(mount, *parts)

    def a(self, text: str, *parts: object, target: type[Controller] | None = None) -> Markup:
        """An ``<a>`` tag linking *text* to ``r(target, *parts)``, safe to embed in templates."""
        href = self.r(target, *parts)
        return Markup(f'<a href="{html.escape(href)}">{html.escape(text)}</a>')


class CacheHelper(Helper, capability="cache"):
    """Access to the app's caches from inside an action."""

    caches: Caches | None

    @property
    def value_cache(self) -> ValueCache:
        """Shared general-purpose cache, created on first use."""
        return self._caches().add("value_cache")

    @property
    def action_cache(self) -> ActionCache:
        """The rendered-action cache, for manual invalidation."""
        return self._caches().actions

    def _caches(self) -> Caches:
        caches = getattr(self, "caches", None)
        if caches is None:
            msg = "caches are only available while dispatching a request"
            raise RuntimeError(msg)
        return caches
