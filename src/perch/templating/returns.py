"""Return types for actions.

An action returns one of:

- ``str``          used as the body as-is
- ``Template``     a named template rendered with the given bindings
- ``dict``         bindings for the action's own template
- ``None``         the action's own template with no bindings (empty body
                   when the action has no template)
- anything else    converted with ``str()``
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Template:
    """Render a named kida template.

    Usage::

        return Template("widgets/card.html", widget=widget)
    """

    name: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, name: str, /, **context: Any) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "context", context)
