"""Perch exception hierarchy.

Shared across the resolver, layout engine, dispatcher, and controller
declarations so every module raises and catches the same types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perch.controller.action import Action


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when a controller declaration or app configuration is invalid.

    Raised at class definition time (``map``, ``layout``, ``cache``, ...),
    never deferred to the first dispatch.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    The host server decides how to turn these into responses.
    """

    status: int
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: nothing can serve the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class NoMappingError(NotFound):
    """No controller is mapped at any prefix of the path.

    Non-fatal: the host should fall back to static files or a generic 404.
    """

    def __init__(self, path: str) -> None:
        super().__init__(f"No controller mapped for {path!r}")


class ActionNotFoundError(NotFound):
    """The resolved controller has no action with the requested name."""

    def __init__(self, controller: type, name: str) -> None:
        super().__init__(f"{controller.__name__} has no action {name!r}")


class ArityError(ActionNotFoundError):
    """The action exists but cannot take the given number of arguments."""

    def __init__(self, controller: type, name: str, given: int) -> None:
        NotFound.__init__(
            self,
            f"{controller.__name__}.{name} does not accept {given} argument(s)",
        )


class LayoutResolutionError(PerchError):
    """A configured layout could not be located.

    Distinct from "no layout configured", which is not an error.
    """


class ActionInvocationError(PerchError):
    """Handler code raised while running an action.

    The original exception is available as ``__cause__`` and ``original``.
    """

    def __init__(self, action: Action, original: BaseException) -> None:
        self.action = action
        self.original = original
        super().__init__(
            f"{action.controller.__name__}.{action.name} raised "
            f"{type(original).__name__}: {original}"
        )
