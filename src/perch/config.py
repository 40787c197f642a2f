"""Application configuration.

AppConfig is a frozen dataclass and is immutable after creation.
Controller-level settings live in each controller's trait store instead.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import IO


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(template_dir="views", log_tags=frozenset({"info", "error"}))
    """

    debug: bool = False

    # Templates
    template_dir: str | Path = "templates"
    template_extension: str = ".html"
    autoescape: bool = True

    # Static files
    public_dir: str | Path = "public"

    # Automap
    primary_controller: str = "Main"  # Mapped to "/" instead of "/main"
    controller_suffix: str = "Controller"  # Stripped before snake-casing

    # Logging (see perch.inform)
    log_tags: frozenset[str] = frozenset({"debug", "info", "warn", "error"})
    log_to: tuple[str | Path | IO[str], ...] = ("stdout",)
    log_format: str = "[%time] %prefix  %text"
    log_timestamp: str = "%Y-%m-%d %H:%M:%S"
    log_color: bool = False
    backtrace_size: int = 10
