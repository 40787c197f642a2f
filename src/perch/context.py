"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: The ``Request`` being dispatched in this task/thread.
- ``controller_var``: The controller instance serving it.

Both are set by the dispatcher around action invocation and reset
afterwards. Accessing them outside a dispatch raises ``LookupError``.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    threads, so concurrent dispatches never see each other's values.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perch.controller.base import Controller
    from perch.http.request import Request

request_var: ContextVar[Request] = ContextVar("perch_request")
"""The current request. Set by the dispatcher before invoking an action."""

controller_var: ContextVar[Controller] = ContextVar("perch_controller")
"""The controller instance serving the current request."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a dispatch.
    """
    return request_var.get()


def get_controller() -> Controller:
    """Return the controller instance serving the current request.

    Raises ``LookupError`` if called outside a dispatch.
    """
    return controller_var.get()
