"""Tests for the perch CLI."""

import sys
import types

import pytest

from perch import App, AppConfig, Controller, Registry, inform
from perch.cli import main
from perch.cli._resolve import resolve_app


@pytest.fixture
def app_module(monkeypatch, tmp_path):
    """Install an importable module ``perch_cli_app`` holding an App."""
    registry = Registry()

    class Main(Controller, registry=registry):
        def index(self):
            return "home"

        def about(self):
            return "about"

    class Blog(Controller, registry=registry):
        def show(self, id):
            return id

    Blog.map("/journal")

    module = types.ModuleType("perch_cli_app")
    module.app = App(AppConfig(template_dir=tmp_path, public_dir=tmp_path), registry=registry)
    module.empty = App(AppConfig(template_dir=tmp_path, public_dir=tmp_path), registry=Registry())
    module.tuned = App(
        AppConfig(template_dir=tmp_path, public_dir=tmp_path, backtrace_size=3, log_format="%text"),
        registry=registry,
    )
    module.factory = lambda: module.app
    module.not_app = 42
    monkeypatch.setitem(sys.modules, "perch_cli_app", module)
    return module


class TestResolve:
    def test_default_attribute(self, app_module) -> None:
        assert resolve_app("perch_cli_app") is app_module.app

    def test_factory(self, app_module) -> None:
        assert resolve_app("perch_cli_app:factory") is app_module.app

    def test_not_an_app(self, app_module) -> None:
        with pytest.raises(TypeError, match="not a perch.App"):
            resolve_app("perch_cli_app:not_app")

    def test_missing_attribute(self, app_module) -> None:
        with pytest.raises(AttributeError):
            resolve_app("perch_cli_app:nope")


class TestRoutes:
    def test_prints_mount_table(self, app_module, capsys) -> None:
        main(["routes", "perch_cli_app:app"])
        lines = capsys.readouterr().out.splitlines()

        assert lines[0].split() == ["PATH", "CONTROLLER", "ACTIONS"]
        assert lines[1].startswith("---")
        rows = [line.split(None, 2) for line in lines[2:]]
        assert rows[0][0] == "/"
        assert rows[0][2] == "about, index"
        assert rows[1][0] == "/journal"
        assert rows[1][2] == "show"

    def test_empty_mapping(self, app_module, capsys) -> None:
        main(["routes", "perch_cli_app:empty"])
        assert capsys.readouterr().out == "No controllers mapped.\n"

    def test_bad_import(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "perch_no_such_module:app"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestCheck:
    def test_keeps_app_log_settings(self, app_module, monkeypatch) -> None:
        seen: list[AppConfig] = []
        monkeypatch.setattr(inform, "configure", seen.append)

        main(["check", "perch_cli_app:tuned", "--tags", "error"])

        (config,) = seen
        assert config.backtrace_size == 3
        assert config.log_format == "%text"
        assert config.log_tags == {"error"}
        assert config.log_to == (sys.stderr,)

    def test_mapped_app_passes(self, app_module, capsys) -> None:
        main(["check", "perch_cli_app:app", "--tags", "warn,error"])
        assert capsys.readouterr().err == ""

    def test_empty_app_fails(self, app_module, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["check", "perch_cli_app:empty"])
        assert exc_info.value.code == 1
        assert "No controllers mapped" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "routes" in capsys.readouterr().out
