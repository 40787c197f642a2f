"""Tests for capability helpers: links, caches, include/exclude."""

import pytest

from perch.controller.base import Controller
from perch.controller.registry import Registry
from perch.errors import ConfigurationError
from perch.helpers import CAPABILITIES, CacheHelper, Helper, LinkHelper


class TestLinkHelper:
    def test_path_to_other_controller(self, registry: Registry) -> None:
        class Blog(Controller, registry=registry):
            def show(self, id):
                return id

        class Main(Controller, registry=registry):
            def index(self):
                return self.r(Blog, "show", 7)

        assert Main().r(Blog, "show", 7) == "/blog/show/7"
        assert Main().r() == "/"
        assert Blog().r(None, "show", 1) == "/blog/show/1"

    def test_follows_explicit_mapping(self, registry: Registry) -> None:
        class Blog(Controller, registry=registry):
            pass

        Blog.map("/journal")
        assert Blog().r(Blog, "archive") == "/journal/archive"

    def test_unmapped_target(self, registry: Registry) -> None:
        class Hidden(Controller, registry=registry, automap=False):
            pass

        with pytest.raises(ConfigurationError, match="not mapped"):
            Hidden().r()

    def test_anchor_is_escaped(self, registry: Registry) -> None:
        class Blog(Controller, registry=registry):
            pass

        link = Blog().a("Tom & <Jerry>", "tag", "a&b")
        assert link == '<a href="/blog/tag/a&amp;b">Tom &amp; &lt;Jerry&gt;</a>'


class TestCapabilities:
    def test_builtin_helpers_registered(self) -> None:
        assert CAPABILITIES["link"] is LinkHelper
        assert CAPABILITIES["cache"] is CacheHelper

    def test_capabilities_of_controller(self, registry: Registry) -> None:
        class Pages(CacheHelper, Controller, registry=registry):
            pass

        assert Pages.capabilities() == {"cache", "link"}

    def test_helper_methods_are_not_actions_by_default(self, registry: Registry) -> None:
        class Pages(Controller, registry=registry):
            def index(self):
                return "home"

        assert set(Pages.actions()) == {"index"}

    def test_include_exposes_helper_methods(self, registry: Registry) -> None:
        class Pages(Controller, registry=registry):
            def index(self):
                return "home"

        Pages.include("link")
        assert {"index", "r", "a"} <= set(Pages.actions())

        Pages.exclude("link")
        assert set(Pages.actions()) == {"index"}

    def test_include_does_not_leak_to_parent(self, registry: Registry) -> None:
        class Base(Controller, registry=registry, abstract=True):
            def index(self):
                return "home"

        class Child(Base):
            pass

        Child.include("link")
        assert "r" in Child.actions()
        assert "r" not in Base.actions()

    def test_custom_capability(self, registry: Registry) -> None:
        class AuditHelper(Helper, capability="audit_test"):
            def audit_log(self):
                return "log"

        class Pages(AuditHelper, Controller, registry=registry):
            def index(self):
                return "home"

        assert "audit_log" in Pages.actions()
        Pages.exclude("audit_test")
        assert "audit_log" not in Pages.actions()

    def test_unknown_capability(self, registry: Registry) -> None:
        class Pages(Controller, registry=registry):
            pass

        with pytest.raises(ConfigurationError, match="unknown capabilities"):
            Pages.exclude("telepathy")

    def test_capability_name_must_be_identifier(self) -> None:
        with pytest.raises(ConfigurationError):

            class Bad(Helper, capability="not valid"):
                pass


class TestCacheHelper:
    @pytest.mark.anyio
    async def test_value_cache_during_dispatch(self, registry: Registry, make_dispatcher) -> None:
        class Pages(CacheHelper, Controller, registry=registry):
            def index(self):
                hits = self.value_cache.get("hits", 0) + 1
                self.value_cache.set("hits", hits)
                return f"{hits} views"

        dispatcher = make_dispatcher()
        assert await dispatcher.dispatch("/pages") == "1 views"
        assert await dispatcher.dispatch("/pages") == "2 views"
        assert dispatcher.caches["value_cache"].get("hits") == 2

    @pytest.mark.anyio
    async def test_action_cache_invalidation_from_action(
        self, registry: Registry, make_dispatcher
    ) -> None:
        counter = {"n": 0}

        class Pages(CacheHelper, Controller, registry=registry):
            def index(self):
                counter["n"] += 1
                return f"render {counter['n']}"

            def touch(self):
                self.action_cache.delete(self.r(Pages, "index"))
                return "ok"

        Pages.cache("index")
        dispatcher = make_dispatcher()

        assert await dispatcher.dispatch("/pages") == "render 1"
        assert await dispatcher.dispatch("/pages") == "render 1"
        await dispatcher.dispatch("/pages/touch")
        assert await dispatcher.dispatch("/pages") == "render 2"

    def test_outside_dispatch(self, registry: Registry) -> None:
        class Pages(CacheHelper, Controller, registry=registry):
            pass

        with pytest.raises(RuntimeError, match="only available while dispatching"):
            Pages().value_cache
