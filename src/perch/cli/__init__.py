"""Perch CLI: inspect an app's mount table and run its startup check.

Entry point registered as ``perch`` in ``pyproject.toml``::

    [project.scripts]
    perch = "perch.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``perch`` command."""
    parser = argparse.ArgumentParser(
        prog="perch",
        description="Perch: a small MVC dispatch framework.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- perch routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List mounted controllers")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    # -- perch check ------------------------------------------------------
    check_parser = subparsers.add_parser("check", help="Run the startup check")
    check_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    check_parser.add_argument(
        "--tags",
        default="info,warn,error",
        help="Comma-separated log tags to show (debug,info,warn,error)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from perch.cli._routes import run_routes

        run_routes(args)
    elif args.command == "check":
        from perch.cli._check import run_check

        run_check(args)
