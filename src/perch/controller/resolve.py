"""Path resolution: request path to ``Action``.

Algorithm::

    "/widgets/show/7"
      1. normalize               -> "/widgets/show/7"
      2. longest mount on a segment boundary
                                 -> "/widgets"  (never "/widget" for "/widgets")
      3. no mount matched        -> controller at "/" with the whole path
      4. remainder segments      -> name "show", args ("7",); empty -> "index"
      5. check the method table  -> ActionNotFoundError / ArityError

``/`` is the shortest possible mount, so step 3 falls out of step 2.
"""

import logging
from collections.abc import Mapping

from perch import paths
from perch.controller.action import Action
from perch.controller.registry import Registry
from perch.errors import ActionNotFoundError, ArityError, NoMappingError

logger = logging.getLogger("perch.resolve")

DEFAULT_ACTION = "index"


def longest_mount(mapping: Mapping[str, type], path: str) -> str | None:
    """Longest mount path in *mapping* containing *path* on a segment boundary.

    An exact match is the longest possible candidate, so it always wins
    over a prefix match.
    """
    best: str | None = None
    for mount in mapping:
        if paths.contains(mount, path) and (best is None or len(mount) > len(best)):
            best = mount
    return best


class Resolver:
    """Resolve request paths against a registry.

    Stateless apart from the registry it reads; safe to share between
    concurrent dispatches.
    """

    __slots__ = ("_registry",)

    def __init__(self, registry: Registry) -> None:
        self._registry = registry

    def resolve(self, path: str) -> Action:
        """Resolve *path* to an unbound ``Action``.

        Raises ``NoMappingError``, ``ActionNotFoundError`` or ``ArityError``.
        """
        normalized = paths.normalize(path)
        mapping = self._registry.mapping()
        mount = longest_mount(mapping, normalized)
        if mount is None:
            raise NoMappingError(normalized)

        controller = mapping[mount]
        segments = paths.remainder(mount, normalized)
        name = segments[0] if segments else DEFAULT_ACTION
        args = tuple(segments[1:])

        method = controller.actions().get(name)  # type: ignore[attr-defined]
        if method is None:
            raise ActionNotFoundError(controller, name)
        if not method.accepts(len(args)):
            raise ArityError(controller, name, len(args))

        logger.debug("%s => %s.%s%r", normalized, controller.__qualname__, name, args)
        return Action(
            controller=controller,  # type: ignore[arg-type]
            name=name,
            args=args,
            mount_path=mount,
            method=method,
            cache_options=controller.cache_options(name),  # type: ignore[attr-defined]
        )
