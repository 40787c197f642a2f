"""Immutable request passed through dispatch.

The dispatch core only needs two things from a request: named parameters
(read by cache key functions and actions) and an identity for log context.
Host servers build one per inbound request.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs


class Params(Mapping[str, str]):
    """Immutable multi-value request parameters.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    """

    __slots__ = ("_data",)

    _data: dict[str, list[str]]

    def __init__(self, data: Mapping[str, str | list[str]] | None = None) -> None:
        normalized = {
            key: list(value) if isinstance(value, list | tuple) else [value]
            for key, value in (data or {}).items()
        }
        object.__setattr__(self, "_data", normalized)

    @classmethod
    def from_query(cls, query_string: str | bytes) -> Params:
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        return cls(parse_qs(query_string, keep_blank_values=True))

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Params({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (empty list if missing)."""
        return list(self._data.get(key, ()))


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable request.

    Usage::

        request = Request("/widgets/show/7", params={"name": "alice"})
        request["name"]        # "alice"
        request.get("missing") # None
    """

    path: str = "/"
    params: Params = field(default_factory=Params)
    method: str = "GET"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    extra: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def __init__(
        self,
        path: str = "/",
        *,
        params: Params | Mapping[str, str | list[str]] | None = None,
        method: str = "GET",
        id: str | None = None,  # noqa: A002
        extra: Mapping[str, Any] | None = None,
    ) -> None:
        path, _, query = path.partition("?")
        from_query = Params.from_query(query)
        data = {key: from_query.get_list(key) for key in from_query}
        if params is not None:
            given = params if isinstance(params, Params) else Params(params)
            data.update({key: given.get_list(key) for key in given})
        object.__setattr__(self, "path", path or "/")
        object.__setattr__(self, "params", Params(data))
        object.__setattr__(self, "method", method.upper())
        object.__setattr__(self, "id", id or uuid.uuid4().hex)
        object.__setattr__(self, "extra", dict(extra or {}))

    def __getitem__(self, name: str) -> str:
        return self.params[name]

    def get(self, name: str, default: str | None = None) -> str | None:
        """Read a named parameter."""
        return self.params.get(name, default)
