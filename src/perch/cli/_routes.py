"""``perch routes``: list the mount table."""

import argparse
import sys

from perch.cli._resolve import resolve_app


def run_routes(args: argparse.Namespace) -> None:
    """Print PATH, CONTROLLER and ACTIONS for every mounted controller."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    mapping = app.registry.mapping()
    if not mapping:
        print("No controllers mapped.")
        return

    rows: list[tuple[str, str, str]] = [
        (path, controller.__qualname__, ", ".join(sorted(controller.actions())))  # type: ignore[attr-defined]
        for path, controller in sorted(mapping.items())
    ]

    max_path = max(4, *(len(r[0]) for r in rows))
    max_controller = max(10, *(len(r[1]) for r in rows))

    fmt = f"{{:<{max_path}}}  {{:<{max_controller}}}  {{}}"
    print(fmt.format("PATH", "CONTROLLER", "ACTIONS"))
    sep_len = max_path + max_controller + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for row in rows:
        print(fmt.format(*row))
