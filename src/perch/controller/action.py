"""Action descriptors and per-controller method tables.

A controller's actions are its public plain methods, minus anything
contributed by the framework base class or by excluded capabilities. The
table records each method's positional arity so the resolver can reject
a bad argument count before anything is invoked.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from perch import paths

if TYPE_CHECKING:
    from perch.cache.actions import CacheOptions
    from perch.controller.base import Controller


@dataclass(frozen=True, slots=True)
class ActionMethod:
    """One callable action with its declared positional arity.

    ``max_args`` is ``None`` when the method takes ``*args``.
    """

    name: str
    function: Callable[..., Any]
    min_args: int
    max_args: int | None

    def accepts(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args


@dataclass(frozen=True, slots=True)
class Action:
    """A resolved invocation target. Created per dispatch, never stored."""

    controller: type[Controller]
    name: str
    args: tuple[str, ...] = ()
    mount_path: str = "/"
    method: ActionMethod | None = None
    cache_options: CacheOptions | None = None
    instance: Controller | None = None

    @property
    def cache_key(self) -> str:
        """Base cache key: mount path plus action name, never the arguments."""
        return paths.join(self.mount_path, self.name)

    def bind(self, instance: Controller) -> Action:
        """Return a copy bound to the controller instance serving the request."""
        return replace(self, instance=instance)


def describe(name: str, function: Callable[..., Any]) -> ActionMethod | None:
    """Build an ``ActionMethod`` from an unbound method.

    Returns ``None`` for methods that cannot be called with positional
    arguments alone (required keyword-only parameters).
    """
    params = list(inspect.signature(function).parameters.values())[1:]
    min_args = 0
    max_args: int | None = 0
    for param in params:
        match param.kind:
            case inspect.Parameter.POSITIONAL_ONLY | inspect.Parameter.POSITIONAL_OR_KEYWORD:
                if param.default is inspect.Parameter.empty:
                    min_args += 1
                if max_args is not None:
                    max_args += 1
            case inspect.Parameter.VAR_POSITIONAL:
                max_args = None
            case inspect.Parameter.KEYWORD_ONLY if param.default is inspect.Parameter.empty:
                return None
    return ActionMethod(name=name, function=function, min_args=min_args, max_args=max_args)


def build_method_table(
    controller: type, excluded: Iterable[type]
) -> dict[str, ActionMethod]:
    """Collect the actions of *controller*.

    Walks the MRO base-first so overrides in subclasses win. Attributes
    defined on an excluded class never become actions, and a non-function
    attribute shadowing an inherited method removes that action.
    """
    skip = set(excluded)
    table: dict[str, ActionMethod] = {}
    for klass in reversed(controller.__mro__):
        if klass is object or klass in skip:
            continue
        for name, value in vars(klass).items():
            if name.startswith("_"):
                continue
            method = describe(name, value) if inspect.isfunction(value) else None
            if method is None:
                table.pop(name, None)
            else:
                table[name] = method
    return table
