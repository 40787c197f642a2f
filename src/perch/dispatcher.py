"""Dispatch pipeline: the single entry point from a host server.

Sequence for one request::

    resolve(path) -> Action
        │
        ├── cache rule and valid entry? ──> cached content (no invocation, no layout)
        │
        ├── instantiate controller, bind request/controller context
        ├── invoke action method (sync or async), await its bindings
        ├── render return value (str / Template / dict / None)
        ├── wrap in layout
        ├── store in cache (if the action has a rule)
        └──> content

Only successful, fully rendered (post-layout) output is ever cached.
Changing a layout does not invalidate cached pages; clear the cache.
"""

import inspect
import logging
from typing import Any

from perch.cache.actions import ActionCache
from perch.cache.store import Caches
from perch.context import controller_var, request_var
from perch.controller.action import Action
from perch.controller.registry import Registry
from perch.controller.resolve import Resolver
from perch.errors import ActionInvocationError, PerchError
from perch.http.request import Request
from perch.layout import LayoutEngine
from perch.templating.integration import Renderer, resolve_bindings, template_path
from perch.templating.returns import Template

logger = logging.getLogger("perch.dispatch")


class Dispatcher:
    """Resolve, invoke, lay out, and cache.

    Usage::

        dispatcher = Dispatcher(registry, KidaRenderer(config))
        html = await dispatcher.dispatch("/widgets/show/7", request)

    Thread safety:
        Holds no per-request state. The registry snapshot, trait stores and
        caches it reads are each safe for concurrent use; the current
        request and controller live in ContextVars.
    """

    __slots__ = ("_caches", "_extension", "_layouts", "_renderer", "_resolver", "registry")

    def __init__(
        self,
        registry: Registry,
        renderer: Renderer,
        *,
        caches: Caches | None = None,
        extension: str = ".html",
    ) -> None:
        self.registry = registry
        self._resolver = Resolver(registry)
        self._renderer = renderer
        self._layouts = LayoutEngine(renderer, extension=extension)
        self._caches = caches or Caches()
        self._extension = extension

    @property
    def cache(self) -> ActionCache:
        return self._caches.actions

    @property
    def caches(self) -> Caches:
        return self._caches

    def resolve(self, path: str) -> Action:
        return self._resolver.resolve(path)

    async def dispatch(self, path: str, request: Request | None = None) -> str:
        """Render *path* and return the final content.

        A query string on *path* never takes part in resolution; it only
        fills the default request's parameters.

        Resolution errors (``NoMappingError``, ``ActionNotFoundError``,
        ``ArityError``), ``LayoutResolutionError``, ``ActionInvocationError``
        and template engine errors propagate to the caller.
        """
        if request is None:
            request = Request(path)
        path = path.partition("?")[0]
        action = self._resolver.resolve(path)
        logger.debug("dispatch %s [%s]", path, request.id)

        cache = self._caches.actions
        if action.cache_options is not None:
            cached = cache.lookup(action, request)
            if cached is not None:
                logger.debug("cache hit %s [%s]", action.cache_key, request.id)
                return cached

        request_token = request_var.set(request)
        try:
            action = self._instantiate(action, request)
            controller_token = controller_var.set(action.instance)  # type: ignore[arg-type]
            try:
                result = await self._invoke(action)
                body = self.render_result(action, result)
                content = self._layouts.render(action, body)
            finally:
                controller_var.reset(controller_token)
        finally:
            request_var.reset(request_token)

        if action.cache_options is not None:
            cache.store(action, request, content)
        return content

    def _instantiate(self, action: Action, request: Request) -> Action:
        try:
            instance = action.controller(request, caches=self._caches)
        except Exception as exc:
            raise ActionInvocationError(action, exc) from exc
        bound = action.bind(instance)
        instance.action = bound
        return bound

    async def _invoke(self, action: Action) -> Any:
        """Call the action method and resolve awaitables in what it returns.

        Anything raised on the way, including by awaitable bindings, is
        wrapped in ``ActionInvocationError``.
        """
        method = action.method
        if method is None:
            msg = f"{action.controller.__name__}.{action.name} was not resolved to a method"
            raise PerchError(msg)
        try:
            result = method.function(action.instance, *action.args)
            if inspect.isawaitable(result):
                result = await result
            return await resolve_result(result)
        except Exception as exc:
            original = _single(exc)
            raise ActionInvocationError(action, original) from original

    def render_result(self, action: Action, result: Any) -> str:
        """Turn an action's (resolved) return value into a body string."""
        controller = action.controller
        match result:
            case str():
                return result
            case Template():
                bindings = {**self._defaults(action), **result.context}
                return self._renderer.render(
                    result.name, bindings, root=controller.template_root()
                )
            case dict() | None:
                source, source_action = controller.template_for(action.name)
                name = template_path(source.mount_path(), source_action, self._extension)
                root = source.template_root()
                if result is None and not self._renderer.exists(name, root=root):
                    return ""
                bindings = {**self._defaults(action), **(result or {})}
                return self._renderer.render(name, bindings, root=root)
            case _:
                return str(result)

    @staticmethod
    def _defaults(action: Action) -> dict[str, Any]:
        instance = action.instance
        return {
            "controller": instance,
            "action": action,
            "request": instance.request if instance is not None else None,
        }


async def resolve_result(result: Any) -> Any:
    """Return *result* with awaitable template bindings resolved."""
    match result:
        case Template():
            return Template(result.name, **await resolve_bindings(result.context))
        case dict():
            return await resolve_bindings(result)
        case _:
            return result


def _single(exc: Exception) -> Exception:
    """The lone exception inside (nested) single-member exception groups."""
    while isinstance(exc, ExceptionGroup) and len(exc.exceptions) == 1:
        exc = exc.exceptions[0]
    return exc
