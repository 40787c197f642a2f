"""``perch check``: run an app's startup check with logging on stderr."""

import argparse
import sys
from dataclasses import replace

from perch import inform
from perch.cli._resolve import resolve_app


def run_check(args: argparse.Namespace) -> None:
    """Log the startup check; exit 1 when no controller is mapped."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    tags = frozenset(tag.strip() for tag in args.tags.split(",") if tag.strip())
    inform.configure(replace(app.config, log_tags=tags, log_to=(sys.stderr,)))
    try:
        ok = app.startup()
    finally:
        inform.shutdown()
    if not ok:
        raise SystemExit(1)
