"""Perch: a small MVC dispatch framework.

Maps request paths to controller actions, wraps output in layouts, and
caches rendered pages.

Basic usage::

    from perch import App, Controller

    class Main(Controller):
        def index(self):
            return "Hello, World!"

        def greet(self, name):
            return {"name": name}   # rendered with templates/greet.html

    Main.layout("page")             # templates/page.html wraps everything
    Main.cache("index", ttl=60)

    app = App()
    html = await app.handle("/greet/world")
"""

__version__ = "0.1.0"
__all__ = [
    "ActionInvocationError",
    "ActionNotFoundError",
    "App",
    "AppConfig",
    "ArityError",
    "CacheHelper",
    "CacheOptions",
    "ConfigurationError",
    "Controller",
    "Helper",
    "LayoutResolutionError",
    "LinkHelper",
    "NoMappingError",
    "NotFound",
    "PerchError",
    "Registry",
    "Request",
    "Template",
    "get_controller",
    "get_request",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "App":
        from perch.app import App

        return App

    if name == "AppConfig":
        from perch.config import AppConfig

        return AppConfig

    if name in ("Controller", "Registry"):
        from perch import controller as _controller

        return getattr(_controller, name)

    if name in ("Helper", "CacheHelper", "LinkHelper"):
        from perch import helpers as _helpers

        return getattr(_helpers, name)

    if name == "CacheOptions":
        from perch.cache.actions import CacheOptions

        return CacheOptions

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name == "Template":
        from perch.templating.returns import Template

        return Template

    if name in ("get_controller", "get_request"):
        from perch import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "ActionInvocationError",
        "ActionNotFoundError",
        "ArityError",
        "ConfigurationError",
        "LayoutResolutionError",
        "NoMappingError",
        "NotFound",
        "PerchError",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
