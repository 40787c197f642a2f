"""The controller base class and its declarations.

Subclassing ``Controller`` registers the new class with a registry right
away. Configuration is declared with class methods after the class body,
any time before the first dispatch::

    class Widgets(Controller):
        def index(self):
            return "all widgets"

        def show(self, id):
            return {"widget": load(id)}

    Widgets.map("/w")
    Widgets.layout("page")
    Widgets.deny_layout("feed")
    Widgets.cache("index", ttl=60)

Class keywords:
    ``registry``  registry to join (inherited; defaults to ``default_registry``)
    ``abstract``  don't register this class, only its subclasses
    ``automap``   override the inherited automap flag

Every setting is looked up ancestrally through ``TraitStore``; declaring
on a subclass never changes its parent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar

from perch.cache.actions import CacheOptions
from perch.context import controller_var
from perch.controller.action import ActionMethod, build_method_table
from perch.controller.registry import Registry, default_registry
from perch.controller.traits import LayoutRef, LayoutRules, TraitStore
from perch.errors import ConfigurationError
from perch.helpers import CAPABILITIES, LinkHelper, capabilities_of

if TYPE_CHECKING:
    from collections.abc import Callable

    from perch.cache.store import Caches
    from perch.controller.action import Action
    from perch.http.request import Request

logger = logging.getLogger("perch.controller")


def _names(kind: str, values: Iterable[object], *, required: bool = False) -> tuple[str, ...]:
    names = tuple(values)
    if required and not names:
        msg = f"{kind} needs at least one action name"
        raise ConfigurationError(msg)
    for name in names:
        if not isinstance(name, str) or not name:
            msg = f"{kind} expects non-empty action names, got {name!r}"
            raise ConfigurationError(msg)
    return names


class Controller(LinkHelper):
    """Base class for request handlers.

    One instance is created per dispatched request. While the action runs,
    ``request``, ``action`` and ``caches`` describe the request being
    served and ``Controller.current()`` returns the instance.
    """

    _traits: ClassVar[TraitStore] = TraitStore("Controller")
    _registry: ClassVar[Registry] = default_registry
    _action_table: ClassVar[tuple[frozenset[str], Mapping[str, ActionMethod]] | None] = None

    request: Request | None
    action: Action | None
    caches: Caches | None

    def __init__(self, request: Request | None = None, *, caches: Caches | None = None) -> None:
        self.request = request
        self.caches = caches
        self.action = None

    def __init_subclass__(
        cls,
        *,
        registry: Registry | None = None,
        abstract: bool = False,
        automap: bool | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        parent = next(vars(k)["_traits"] for k in cls.__mro__[1:] if "_traits" in vars(k))
        cls._traits = TraitStore(cls.__qualname__, parent)
        cls._action_table = None
        if registry is not None:
            cls._registry = registry
        if automap is not None:
            cls._traits.set("automap", automap)
        cls.actions()
        if not abstract:
            cls._registry.register(cls, automap=bool(cls._traits.get("automap")))

    # -- Introspection --

    @classmethod
    def trait(cls, key: str) -> Any:
        """Ancestral lookup of setting *key* (``None`` if never declared)."""
        return cls._traits.get(key)

    @classmethod
    def registry(cls) -> Registry:
        return cls._registry

    @classmethod
    def capabilities(cls) -> frozenset[str]:
        """Names of the capabilities this controller includes."""
        return frozenset(capabilities_of(cls))

    @classmethod
    def actions(cls) -> Mapping[str, ActionMethod]:
        """Action methods by name.

        Built when the class is registered and rebuilt only when the
        excluded capability set seen by this class changes.
        """
        excluded: frozenset[str] = cls._traits.get("excluded_capabilities")
        table = vars(cls).get("_action_table")
        if table is not None and table[0] == excluded:
            return table[1]
        helpers = capabilities_of(cls)
        skipped = set(Controller.__mro__) - set(helpers.values())
        skipped.update(helper for name, helper in helpers.items() if name in excluded)
        actions = MappingProxyType(build_method_table(cls, skipped))
        cls._action_table = (excluded, actions)
        return actions

    @classmethod
    def mount_path(cls) -> str | None:
        """Effective mount path: explicit, else automap, else None."""
        return cls._registry.path_for(cls)

    @classmethod
    def at(cls, path: str) -> type | None:
        """Controller mapped at *path* in this controller's registry."""
        return cls._registry.at(path)

    @classmethod
    def current(cls) -> Controller | None:
        """The controller instance serving the current request, if any."""
        return controller_var.get(None)

    # -- Declarations --

    @classmethod
    def map(cls, path: str) -> None:
        """Mount this controller at *path*, replacing its earlier mount path."""
        cls._registry.map(cls, path)

    @classmethod
    def layout(cls, layout: str | Mapping[str, str | Iterable[str]] | None) -> None:
        """Wrap actions in a layout template.

        A name applies to every action; a mapping of ``layout -> actions``
        applies per action; ``None`` removes the controller-wide layout::

            Blog.layout("page")
            Blog.layout({"print": ["show", "archive"], "/layouts/bare": "feed"})
        """
        if layout is None:
            cls._traits.update("layout", lambda rules: rules.with_default(None))
            return
        if isinstance(layout, str):
            ref = cls._layout_ref(layout)
            cls._traits.update("layout", lambda rules: rules.with_default(ref))
            return
        if not isinstance(layout, Mapping):
            msg = f"{cls.__name__}.layout() expects a name or a mapping, got {type(layout).__name__}"
            raise ConfigurationError(msg)

        assignments: list[tuple[LayoutRef, tuple[str, ...]]] = []
        for name, actions in layout.items():
            ref = cls._layout_ref(name)
            if isinstance(actions, str):
                actions = (actions,)
            elif not isinstance(actions, Iterable):
                msg = f"{cls.__name__}.layout({name!r}) expects action names, got {actions!r}"
                raise ConfigurationError(msg)
            assignments.append((ref, _names("layout()", actions)))

        def apply(rules: LayoutRules) -> LayoutRules:
            for ref, actions in assignments:
                rules = rules.with_actions(ref, actions)
            return rules

        cls._traits.update("layout", apply)

    @classmethod
    def _layout_ref(cls, name: object) -> LayoutRef:
        if not isinstance(name, str) or not name.strip("/"):
            msg = f"{cls.__name__}.layout() got invalid layout name {name!r}"
            raise ConfigurationError(msg)
        if name.startswith("/"):
            return LayoutRef(name)
        return LayoutRef(name, cls)

    @classmethod
    def deny_layout(cls, *actions: str) -> None:
        """Never wrap *actions* in a layout, whatever else is configured."""
        names = _names("deny_layout()", actions, required=True)
        cls._traits.update("layout", lambda rules: rules.with_denied(names))

    @classmethod
    def cache(
        cls,
        *actions: str,
        ttl: float | None = None,
        key: Callable[[Request], object] | None = None,
    ) -> None:
        """Cache the rendered output of *actions*.

        ``ttl`` is in seconds. ``key`` receives the request and splits the
        cache per returned value::

            Greeter.cache("hello", ttl=60, key=lambda request: request.get("name"))
        """
        names = _names("cache()", actions, required=True)
        options = CacheOptions(ttl=ttl, key=key)
        cls._traits.update(
            "cache", lambda rules: MappingProxyType({**rules, **dict.fromkeys(names, options)})
        )

    @classmethod
    def cache_options(cls, action: str) -> CacheOptions | None:
        return cls._traits.get("cache").get(action)

    @classmethod
    def template_root(cls, path: str | Path | None = None) -> Path | None:
        """Set (or with no argument, return) this controller's template directory."""
        if path is None:
            return cls._traits.get("template_root")
        root = Path(path)
        if not root.is_dir():
            logger.warning("%s.template_root is %s which does not exist", cls.__name__, root)
        cls._traits.set("template_root", root)
        return root

    @classmethod
    def template(
        cls,
        action: str,
        source: type[Controller] | str,
        source_action: str | None = None,
    ) -> None:
        """Render *action* with another action's template.

        ::

            Main.template("index", Other, "list")   # Other's list template
            Main.template("foo", "bar")             # this controller's bar template
        """
        if source_action is None:
            if not isinstance(source, str):
                msg = f"{cls.__name__}.template({action!r}) needs the source action name"
                raise ConfigurationError(msg)
            source, source_action = cls, source
        if not (isinstance(source, type) and issubclass(source, Controller)):
            msg = f"{cls.__name__}.template({action!r}) expects a Controller, got {source!r}"
            raise ConfigurationError(msg)
        (name,) = _names("template()", (action,))
        (target,) = _names("template()", (source_action,))
        cls._traits.update(
            "templates", lambda routes: MappingProxyType({**routes, name: (source, target)})
        )

    @classmethod
    def template_for(cls, action: str) -> tuple[type[Controller], str]:
        """``(controller, action)`` whose template *action* renders with."""
        return cls._traits.get("templates").get(action, (cls, action))

    @classmethod
    def exclude(cls, *capabilities: str) -> None:
        """Keep methods of the named capabilities out of the action table."""
        unknown = [name for name in capabilities if name not in CAPABILITIES]
        if unknown:
            msg = f"{cls.__name__}.exclude() got unknown capabilities: {', '.join(map(str, unknown))}"
            raise ConfigurationError(msg)
        cls._traits.update("excluded_capabilities", lambda current: current | frozenset(capabilities))
        cls.actions()

    @classmethod
    def include(cls, *capabilities: str) -> None:
        """Expose methods of the named capabilities as actions again."""
        cls._traits.update("excluded_capabilities", lambda current: current - frozenset(capabilities))
        cls.actions()

    def __repr__(self) -> str:
        return f"<{type(self).__qualname__} request={getattr(self.request, 'id', None)}>"


Controller._traits.set("excluded_capabilities", frozenset({"cache", "link"}))
