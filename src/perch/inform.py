"""Tag-filtered, multi-sink logging on top of stdlib ``logging``.

Every perch module logs through ``logging.getLogger("perch.<area>")``.
``configure()`` attaches one handler per sink to the ``perch`` logger, each
filtered by tag and formatted as::

    [2024-01-19 21:09:32] INFO   mapping /widgets => Widgets

Tags map onto logging levels:

    debug -> DEBUG    info -> INFO    warn -> WARNING    error -> ERROR

Sinks are ``"stdout"``, ``"stderr"``, any text stream, or a file path
(opened in append mode). Colors are applied to the prefix only, and only
on stdout/stderr.
"""

import logging
import sys
import threading
import traceback
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import IO

from perch.config import AppConfig
from perch.errors import ConfigurationError

TAG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

PREFIXES: dict[str, str] = {
    "debug": "DEBUG",
    "info": "INFO ",
    "warn": "WARN ",
    "error": "ERROR",
}

# ANSI SGR codes
COLORS: dict[str, str] = {
    "debug": "33",  # yellow
    "info": "32",  # green
    "warn": "31",  # red
    "error": "31",  # red
}

LOGGER_NAME = "perch"

_lock = threading.Lock()
_installed: list[logging.Handler] = []


def tag_for(levelno: int) -> str:
    """Tag for a logging level number."""
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    if levelno >= logging.INFO:
        return "info"
    return "debug"


class TagFilter(logging.Filter):
    """Pass only records whose tag is in *tags*."""

    def __init__(self, tags: Iterable[str]) -> None:
        super().__init__()
        self.tags = frozenset(tags)
        unknown = self.tags - TAG_LEVELS.keys()
        if unknown:
            msg = f"unknown log tags: {', '.join(sorted(unknown))}"
            raise ConfigurationError(msg)

    def filter(self, record: logging.LogRecord) -> bool:
        return tag_for(record.levelno) in self.tags


class InformFormatter(logging.Formatter):
    """Format records with ``%time``, ``%prefix`` and ``%text`` placeholders.

    Records with exception info get the exception's repr and the innermost
    ``backtrace_size`` frames appended, one per line.
    """

    def __init__(
        self,
        template: str = "[%time] %prefix  %text",
        timestamp: str = "%Y-%m-%d %H:%M:%S",
        *,
        color: bool = False,
        backtrace_size: int = 10,
    ) -> None:
        super().__init__()
        self.template = template
        self.timestamp = timestamp
        self.color = color
        self.backtrace_size = backtrace_size

    def prefix(self, tag: str) -> str:
        text = PREFIXES[tag]
        if self.color:
            return f"\033[{COLORS[tag]}m{text}\033[0m"
        return text

    def backtrace(
        self, exc_info: tuple[type[BaseException], BaseException, TracebackType | None]
    ) -> list[str]:
        _, exc, tb = exc_info
        frames = traceback.format_tb(tb)
        if self.backtrace_size >= 0:
            frames = frames[-self.backtrace_size :] if self.backtrace_size else []
        lines = [repr(exc)]
        lines.extend(frame.rstrip() for frame in frames)
        return lines

    def format(self, record: logging.LogRecord) -> str:
        text = record.getMessage()
        if record.exc_info and record.exc_info[1] is not None:
            text = "\n".join([text, *self.backtrace(record.exc_info)])  # type: ignore[arg-type]
        stamp = datetime.fromtimestamp(record.created).strftime(self.timestamp)
        # %text last so message contents are never substituted
        message = self.template.replace("%time", stamp)
        message = message.replace("%prefix", self.prefix(tag_for(record.levelno)))
        return message.replace("%text", text)


def _handler_for(sink: str | Path | IO[str]) -> tuple[logging.Handler, bool]:
    """Handler for *sink* and whether it is a terminal stream (colorable)."""
    if sink in ("stdout", sys.stdout):
        return logging.StreamHandler(sys.stdout), True
    if sink in ("stderr", sys.stderr):
        return logging.StreamHandler(sys.stderr), True
    if hasattr(sink, "write"):
        return logging.StreamHandler(sink), False  # type: ignore[arg-type]
    return logging.FileHandler(str(sink), mode="a", encoding="utf-8"), False


def configure(config: AppConfig | None = None) -> logging.Logger:
    """Install perch's handlers, replacing any installed earlier.

    Returns the ``perch`` logger.
    """
    config = config or AppConfig()
    tag_filter = TagFilter(config.log_tags)
    logger = logging.getLogger(LOGGER_NAME)

    with _lock:
        _detach(logger)
        for sink in config.log_to:
            handler, colorable = _handler_for(sink)
            handler.setFormatter(
                InformFormatter(
                    config.log_format,
                    config.log_timestamp,
                    color=config.log_color and colorable,
                    backtrace_size=config.backtrace_size,
                )
            )
            handler.addFilter(tag_filter)
            logger.addHandler(handler)
            _installed.append(handler)
        levels = [TAG_LEVELS[tag] for tag in tag_filter.tags]
        logger.setLevel(min(levels) if levels else logging.CRITICAL + 1)
        logger.propagate = False
    return logger


def shutdown() -> None:
    """Detach perch's handlers and close file sinks."""
    logger = logging.getLogger(LOGGER_NAME)
    with _lock:
        _detach(logger)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


def _detach(logger: logging.Logger) -> None:
    for handler in _installed:
        logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
        else:
            handler.flush()
    _installed.clear()
