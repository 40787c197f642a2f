"""Tests for perch.inform: tag-filtered multi-sink logging."""

import io
import logging
import sys
from collections.abc import Iterator

import pytest

from perch import inform
from perch.config import AppConfig
from perch.errors import ConfigurationError
from perch.inform import InformFormatter, TagFilter, tag_for


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    inform.shutdown()


def _record(level: int, msg: str, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord("perch.test", level, __file__, 1, msg, None, exc_info)


class TestTags:
    @pytest.mark.parametrize(
        ("level", "tag"),
        [
            (logging.DEBUG, "debug"),
            (logging.INFO, "info"),
            (logging.WARNING, "warn"),
            (logging.ERROR, "error"),
            (logging.CRITICAL, "error"),
        ],
    )
    def test_tag_for_level(self, level: int, tag: str) -> None:
        assert tag_for(level) == tag

    def test_filter_passes_selected_tags(self) -> None:
        f = TagFilter({"info", "error"})
        assert f.filter(_record(logging.INFO, "x"))
        assert f.filter(_record(logging.ERROR, "x"))
        assert not f.filter(_record(logging.DEBUG, "x"))
        assert not f.filter(_record(logging.WARNING, "x"))

    def test_unknown_tag(self) -> None:
        with pytest.raises(ConfigurationError, match="verbose"):
            TagFilter({"info", "verbose"})


class TestFormatter:
    def test_default_layout(self) -> None:
        formatter = InformFormatter(timestamp="STAMP")
        assert formatter.format(_record(logging.INFO, "mapping /")) == "[STAMP] INFO   mapping /"
        assert formatter.format(_record(logging.WARNING, "careful")) == "[STAMP] WARN   careful"

    def test_custom_template(self) -> None:
        formatter = InformFormatter("%prefix|%text", timestamp="T")
        assert formatter.format(_record(logging.ERROR, "bad")) == "ERROR|bad"

    def test_message_placeholders_left_alone(self) -> None:
        formatter = InformFormatter("%prefix %text", timestamp="T")
        assert formatter.format(_record(logging.INFO, "literal %time")) == "INFO  literal %time"

    def test_color_wraps_prefix_only(self) -> None:
        formatter = InformFormatter("%prefix %text", color=True)
        line = formatter.format(_record(logging.INFO, "ready"))
        assert line == "\033[32mINFO \033[0m ready"

    def test_backtrace_is_truncated(self) -> None:
        def inner():
            raise ValueError("deep")

        def middle():
            inner()

        def outer():
            middle()

        try:
            outer()
        except ValueError:
            exc_info = sys.exc_info()

        formatter = InformFormatter("%text", backtrace_size=1)
        lines = formatter.format(_record(logging.ERROR, "failed", exc_info)).splitlines()
        assert lines[0] == "failed"
        assert lines[1] == "ValueError('deep')"
        joined = "\n".join(lines[2:])
        assert "inner" in joined
        assert "outer" not in joined

    def test_zero_backtrace_keeps_repr(self) -> None:
        try:
            raise KeyError("k")
        except KeyError:
            exc_info = sys.exc_info()

        formatter = InformFormatter("%text", backtrace_size=0)
        lines = formatter.format(_record(logging.ERROR, "failed", exc_info)).splitlines()
        assert lines == ["failed", "KeyError('k')"]


class TestConfigure:
    def test_multiple_sinks_with_tag_filter(self, tmp_path) -> None:
        stream = io.StringIO()
        log_file = tmp_path / "perch.log"
        config = AppConfig(
            log_to=(stream, log_file),
            log_tags=frozenset({"warn", "error"}),
            log_format="%prefix %text",
        )
        inform.configure(config)

        logger = logging.getLogger("perch.app")
        logger.info("quiet")
        logger.warning("loud")
        inform.shutdown()

        assert stream.getvalue() == "WARN  loud\n"
        assert log_file.read_text(encoding="utf-8") == "WARN  loud\n"

    def test_file_sink_appends(self, tmp_path) -> None:
        log_file = tmp_path / "perch.log"
        log_file.write_text("earlier\n", encoding="utf-8")
        inform.configure(AppConfig(log_to=(log_file,), log_format="%text"))
        logging.getLogger("perch").error("later")
        inform.shutdown()

        assert log_file.read_text(encoding="utf-8") == "earlier\nlater\n"

    def test_reconfigure_replaces_handlers(self) -> None:
        first, second = io.StringIO(), io.StringIO()
        inform.configure(AppConfig(log_to=(first,), log_format="%text"))
        inform.configure(AppConfig(log_to=(second,), log_format="%text"))

        logging.getLogger("perch.dispatch").info("once")
        assert first.getvalue() == ""
        assert second.getvalue() == "once\n"
        assert len(logging.getLogger("perch").handlers) == 1

    def test_color_never_applied_to_plain_streams(self) -> None:
        stream = io.StringIO()
        inform.configure(AppConfig(log_to=(stream,), log_format="%prefix", log_color=True))
        logging.getLogger("perch").info("x")
        assert "\033[" not in stream.getvalue()

    def test_shutdown_restores_propagation(self) -> None:
        logger = inform.configure(AppConfig(log_to=(io.StringIO(),)))
        assert logger.propagate is False
        inform.shutdown()
        assert logger.propagate is True
        assert logger.handlers == []
