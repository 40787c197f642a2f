"""Perch application class.

Ties a registry, a render service and the caches together behind one
``handle()`` call. Frozen on first use: the dispatcher and kida
environment are built once, after every controller has been defined.
"""

import logging
import threading
from pathlib import Path

from kida import Environment

from perch.cache.actions import Clock
from perch.cache.store import Caches
from perch.config import AppConfig
from perch.controller.registry import Registry, default_registry
from perch.dispatcher import Dispatcher
from perch.http.request import Request
from perch.templating.integration import KidaRenderer, Renderer

logger = logging.getLogger("perch.app")


class App:
    """The perch application.

    Usage::

        registry = Registry()

        class Main(Controller, registry=registry):
            def index(self):
                return "Hello, World!"

        app = App(registry=registry)
        html = await app.handle("/")

    Thread safety:
        Controllers are defined (and registered) at import time, before the
        first request. The freeze transition uses a Lock + double-check so
        exactly one thread builds the dispatcher even when several requests
        arrive at once.

    Logging:
        The app never installs log handlers itself. Call
        ``perch.inform.configure(app.config)`` to apply the ``log_*``
        settings of its config.
    """

    __slots__ = (
        "_caches",
        "_dispatcher",
        "_freeze_lock",
        "_kida_env",
        "_renderer",
        "config",
        "registry",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        registry: Registry | None = None,
        renderer: Renderer | None = None,
        kida_env: Environment | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.registry: Registry = registry if registry is not None else default_registry
        self._renderer: Renderer | None = renderer
        self._kida_env: Environment | None = kida_env
        self._caches: Caches = Caches(clock) if clock is not None else Caches()
        self._dispatcher: Dispatcher | None = None
        self._freeze_lock: threading.Lock = threading.Lock()

    @property
    def caches(self) -> Caches:
        return self._caches

    @property
    def dispatcher(self) -> Dispatcher:
        return self._ensure_frozen()

    async def handle(self, path: str, request: Request | None = None) -> str:
        """Dispatch *path* and return the rendered content."""
        return await self.dispatcher.dispatch(path, request)

    def startup(self) -> bool:
        """Check the environment and log what was found.

        Missing template or public directories and an empty mapping are
        logged as warnings, never raised. Returns False when no controller
        is mapped.
        """
        controllers = ", ".join(c.__qualname__ for c in self.registry.controllers)
        logger.debug("found controllers: %s", controllers or "none")

        for label, path in (
            ("Template", self.config.template_dir),
            ("Public", self.config.public_dir),
        ):
            if not Path(path).is_dir():
                logger.warning("%s root: %s doesn't exist", label, path)

        mapping = self.registry.mapping()
        if not mapping:
            logger.warning("No controllers mapped, will serve public files only.")
            return False
        logger.debug(
            "mapped controllers: %s",
            ", ".join(f"{path} => {c.__qualname__}" for path, c in mapping.items()),
        )
        return True

    # -- Internal --

    def _ensure_frozen(self) -> Dispatcher:
        """Thread-safe freeze with double-check locking. Returns the dispatcher."""
        dispatcher = self._dispatcher
        if dispatcher is not None:
            return dispatcher
        with self._freeze_lock:
            dispatcher = self._dispatcher
            if dispatcher is None:
                dispatcher = self._freeze()
            return dispatcher

    def _freeze(self) -> Dispatcher:
        """Build the runtime state. MUST only be called while holding _freeze_lock."""
        renderer = self._renderer or KidaRenderer(self.config, env=self._kida_env)
        dispatcher = self._dispatcher = Dispatcher(
            self.registry,
            renderer,
            caches=self._caches,
            extension=self.config.template_extension,
        )
        self.startup()
        return dispatcher
