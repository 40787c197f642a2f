"""Layout composition.

Which layout wraps an action, checked in order:

1. action is in the controller's deny set   -> no layout
2. per-action layout declared               -> that layout
3. controller-wide layout declared          -> that layout
4. otherwise                                -> no layout

The chosen layout is rendered as a plain template with the action's
output bound to ``content``. Layouts are never dispatched as actions, so
a layout's own controller layout is not applied on top of it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from kida.template import Markup

from perch.errors import LayoutResolutionError
from perch.templating.integration import Renderer, template_path

if TYPE_CHECKING:
    from perch.controller.action import Action
    from perch.controller.traits import LayoutRef, LayoutRules

logger = logging.getLogger("perch.layout")


class LayoutEngine:
    """Wrap rendered action bodies in their layout template."""

    __slots__ = ("_extension", "_renderer")

    def __init__(self, renderer: Renderer, *, extension: str = ".html") -> None:
        self._renderer = renderer
        self._extension = extension

    def layout_for(self, action: Action) -> LayoutRef | None:
        rules: LayoutRules = action.controller.trait("layout")
        return rules.for_action(action.name)

    def locate(self, ref: LayoutRef, action: Action) -> tuple[str, Path | None]:
        """Template name and template root for layout *ref*."""
        owner = ref.owner or action.controller
        mount = None if ref.is_absolute else owner.mount_path()  # type: ignore[attr-defined]
        return template_path(mount, ref.name, self._extension), owner.template_root()  # type: ignore[attr-defined]

    def render(self, action: Action, body: str) -> str:
        """Return *body* wrapped in the action's layout, or unchanged if it has none.

        Raises ``LayoutResolutionError`` if a layout is configured but its
        template cannot be found. Render errors inside the layout propagate
        unwrapped.
        """
        ref = self.layout_for(action)
        if ref is None:
            return body

        name, root = self.locate(ref, action)
        if not self._renderer.exists(name, root=root):
            msg = (
                f"Layout {ref.name!r} for {action.controller.__name__}.{action.name} "
                f"not found (looked for template {name!r})"
            )
            raise LayoutResolutionError(msg)

        logger.debug("layout %s for %s.%s", name, action.controller.__qualname__, action.name)
        return self._renderer.render(name, self.bindings(action, body), root=root)

    @staticmethod
    def bindings(action: Action, body: str) -> dict[str, Any]:
        instance = action.instance
        return {
            "content": Markup(body),
            "action": action,
            "controller": instance,
            "request": instance.request if instance is not None else None,
        }
