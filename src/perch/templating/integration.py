"""Kida environment setup and the render service.

The dispatch core only talks to a ``Renderer``: render a named template
with bindings, or ask whether a template exists. ``KidaRenderer`` is the
default implementation. It keeps one kida Environment per template root
(the app's ``template_dir`` plus any ``Controller.template_root``),
created on first use.
"""

import inspect
import threading
from collections.abc import Awaitable, Mapping
from pathlib import Path
from typing import Any, Protocol

import anyio
from kida import Environment, FileSystemLoader
from kida.environment.exceptions import TemplateNotFoundError

from perch import paths
from perch.config import AppConfig


class Renderer(Protocol):
    """The render service the layout engine and dispatcher depend on."""

    def render(self, name: str, bindings: Mapping[str, Any], *, root: Path | None = None) -> str:
        """Render template *name*. Raises the engine's own errors unwrapped."""
        ...

    def exists(self, name: str, *, root: Path | None = None) -> bool:
        """True if template *name* can be located."""
        ...


def create_environment(config: AppConfig, template_dir: str | Path | None = None) -> Environment:
    """Create a kida Environment for *template_dir* (default ``config.template_dir``)."""
    return Environment(
        loader=FileSystemLoader(str(template_dir or config.template_dir)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )


def template_path(mount_path: str | None, name: str, extension: str = ".html") -> str:
    """Template name for *name* under a controller mounted at *mount_path*.

    ::

        template_path("/blog", "show")      -> "blog/show.html"
        template_path("/", "index")         -> "index.html"
        template_path(None, "/layouts/site") -> "layouts/site.html"
    """
    if name.startswith("/"):
        joined = paths.normalize(name)
    else:
        joined = paths.join(mount_path or "/", name)
    return joined.lstrip("/") + extension


class KidaRenderer:
    """``Renderer`` backed by kida.

    Usage::

        renderer = KidaRenderer(AppConfig(template_dir="views"))
        html = renderer.render("blog/show.html", {"post": post})

    Pass ``env`` to use a ready-made environment (e.g. a ``DictLoader``
    in tests) for the default root.
    """

    __slots__ = ("_config", "_default", "_envs", "_lock")

    def __init__(self, config: AppConfig | None = None, *, env: Environment | None = None) -> None:
        self._config = config or AppConfig()
        self._default = env or create_environment(self._config)
        self._envs: dict[Path, Environment] = {}
        self._lock = threading.Lock()

    def environment(self, root: Path | None = None) -> Environment:
        """Environment for template *root*, created on first use."""
        if root is None:
            return self._default
        env = self._envs.get(root)
        if env is None:
            with self._lock:
                env = self._envs.get(root)
                if env is None:
                    env = self._envs[root] = create_environment(self._config, root)
        return env

    def render(self, name: str, bindings: Mapping[str, Any], *, root: Path | None = None) -> str:
        template = self.environment(root).get_template(name)
        return template.render(dict(bindings))

    def exists(self, name: str, *, root: Path | None = None) -> bool:
        try:
            self.environment(root).get_template(name)
        except TemplateNotFoundError:
            return False
        return True


async def resolve_bindings(bindings: Mapping[str, Any]) -> dict[str, Any]:
    """Resolve any awaitables in *bindings* concurrently.

    Values that are coroutines or awaitables are awaited in parallel;
    everything else passes through unchanged. Returns a new dict.
    """
    resolved: dict[str, Any] = {}
    pending: dict[str, Awaitable[Any]] = {}

    for key, value in bindings.items():
        if inspect.isawaitable(value):
            pending[key] = value
        else:
            resolved[key] = value

    if not pending:
        return resolved

    results: dict[str, Any] = {}

    async def _resolve(key: str, awaitable: Awaitable[Any]) -> None:
        results[key] = await awaitable

    async with anyio.create_task_group() as tg:
        for key, awaitable in pending.items():
            tg.start_soon(_resolve, key, awaitable)

    resolved.update(results)
    return resolved
