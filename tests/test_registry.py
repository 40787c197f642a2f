"""Tests for perch.controller.registry: mount table and automap."""

import pytest

from perch.config import AppConfig
from perch.controller.base import Controller
from perch.controller.registry import Registry, snake_case
from perch.errors import ConfigurationError


class TestSnakeCase:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Widgets", "widgets"),
            ("BlogPost", "blog_post"),
            ("HTMLPage", "html_page"),
            ("V2Api", "v2_api"),
        ],
    )
    def test_names(self, name: str, expected: str) -> None:
        assert snake_case(name) == expected


class TestDerive:
    def test_plain_name(self) -> None:
        assert Registry().derive("Widgets") == "/widgets"

    def test_suffix_stripped(self) -> None:
        assert Registry().derive("BlogPostController") == "/blog_post"

    def test_primary_maps_to_root(self) -> None:
        registry = Registry()
        assert registry.derive("Main") == "/"
        assert registry.derive("MainController") == "/"

    def test_bare_suffix_has_no_path(self) -> None:
        assert Registry().derive("Controller") is None

    def test_from_config(self) -> None:
        registry = Registry.from_config(AppConfig(primary_controller="Home", controller_suffix="Handler"))
        assert registry.derive("HomeHandler") == "/"
        assert registry.derive("WidgetsHandler") == "/widgets"


class TestAutomap:
    def test_widgets(self, registry: Registry) -> None:
        class Widgets(Controller, registry=registry):
            pass

        assert Widgets.mount_path() == "/widgets"
        assert registry.at("/widgets") is Widgets

    def test_primary(self, registry: Registry) -> None:
        class MainController(Controller, registry=registry):
            pass

        assert MainController.mount_path() == "/"

    def test_disabled(self, registry: Registry) -> None:
        class Widgets(Controller, registry=registry, automap=False):
            pass

        assert Widgets.mount_path() is None
        assert Widgets in registry.controllers

    def test_abstract_not_registered(self, registry: Registry) -> None:
        class Base(Controller, registry=registry, abstract=True):
            pass

        assert Base not in registry.controllers
        assert len(registry) == 0

    def test_registry_inherited_by_subclasses(self, registry: Registry) -> None:
        class Base(Controller, registry=registry, abstract=True):
            pass

        class Widgets(Base):
            pass

        assert registry.controllers == (Widgets,)


class TestExplicitMapping:
    def test_map_overrides_automap(self, registry: Registry) -> None:
        class Widgets(Controller, registry=registry):
            pass

        Widgets.map("/w")
        assert Widgets.mount_path() == "/w"
        assert registry.at("/widgets") is None

    def test_map_replaces_previous_path(self, registry: Registry) -> None:
        class Widgets(Controller, registry=registry):
            pass

        Widgets.map("/a")
        Widgets.map("/c")
        assert Widgets.mount_path() == "/c"
        assert registry.at("/a") is None
        assert dict(registry.mapping()) == {"/c": Widgets}

    def test_paths_normalized(self, registry: Registry) -> None:
        class Widgets(Controller, registry=registry):
            pass

        Widgets.map("things/")
        assert registry.at("/things") is Widgets

    def test_explicit_wins_over_earlier_automap(self, registry: Registry) -> None:
        class Widgets(Controller, registry=registry):
            pass

        class Gadgets(Controller, registry=registry):
            pass

        Gadgets.map("/widgets")
        assert registry.at("/widgets") is Gadgets
        assert Widgets.mount_path() is None

    def test_automap_never_takes_claimed_path(self, registry: Registry) -> None:
        class Gadgets(Controller, registry=registry):
            pass

        Gadgets.map("/widgets")

        class Widgets(Controller, registry=registry):
            pass

        assert registry.at("/widgets") is Gadgets
        assert Widgets.mount_path() is None

    def test_last_explicit_mapping_wins(self, registry: Registry) -> None:
        class A(Controller, registry=registry, automap=False):
            pass

        class B(Controller, registry=registry, automap=False):
            pass

        A.map("/shared")
        B.map("/shared")
        assert registry.at("/shared") is B
        assert A.mount_path() is None

    def test_unmap(self, registry: Registry) -> None:
        class Widgets(Controller, registry=registry):
            pass

        registry.unmap(Widgets)
        assert Widgets.mount_path() is None
        assert Widgets in registry.controllers

    @pytest.mark.parametrize("path", ["", " ", 42])
    def test_invalid_paths_rejected(self, registry: Registry, path: object) -> None:
        class Widgets(Controller, registry=registry):
            pass

        with pytest.raises(ConfigurationError):
            Widgets.map(path)  # type: ignore[arg-type]
        assert Widgets.mount_path() == "/widgets"

    def test_mapping_is_read_only(self, registry: Registry) -> None:
        class Widgets(Controller, registry=registry):
            pass

        with pytest.raises(TypeError):
            registry.mapping()["/x"] = Widgets  # type: ignore[index]

    def test_controllers_in_registration_order(self, registry: Registry) -> None:
        class B(Controller, registry=registry):
            pass

        class A(Controller, registry=registry):
            pass

        assert registry.controllers == (B, A)
