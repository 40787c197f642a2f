"""Shared fixtures for perch tests."""

from collections.abc import Callable

import pytest
from kida import DictLoader, Environment

from perch.cache.store import Caches
from perch.controller.registry import Registry
from perch.dispatcher import Dispatcher
from perch.templating.integration import KidaRenderer


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def registry() -> Registry:
    """A fresh registry so controllers defined in one test never leak into another."""
    return Registry()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_renderer() -> Callable[..., KidaRenderer]:
    """Build a renderer over in-memory templates."""

    def factory(templates: dict[str, str] | None = None) -> KidaRenderer:
        return KidaRenderer(env=Environment(loader=DictLoader(templates or {})))

    return factory


@pytest.fixture
def make_dispatcher(
    registry: Registry,
    clock: FakeClock,
    make_renderer: Callable[..., KidaRenderer],
) -> Callable[..., Dispatcher]:
    """Build a dispatcher over *registry* with in-memory templates and the fake clock."""

    def factory(templates: dict[str, str] | None = None) -> Dispatcher:
        return Dispatcher(registry, make_renderer(templates), caches=Caches(clock))

    return factory
