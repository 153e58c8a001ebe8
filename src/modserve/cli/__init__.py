"""modserve CLI — serve installed packages and inspect their routes.

Entry point registered as ``modserve`` in ``pyproject.toml``::

    [project.scripts]
    modserve = "modserve.cli:main"
"""

import argparse
import sys


def _add_package_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "packages",
        nargs="*",
        help="Packages to serve (default: MODSERVE_PACKAGES)",
    )
    parser.add_argument("--root", default=None, help="Packages directory (default: node_modules)")
    parser.add_argument(
        "--base-url",
        default=None,
        help="URL path the packages are served under (default: /node_modules)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error"],
        help="Logging level (default: info)",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``modserve`` command."""
    parser = argparse.ArgumentParser(
        prog="modserve",
        description="modserve — serve installed packages to the browser, unbundled.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- modserve serve ---------------------------------------------------
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP server")
    _add_package_args(serve_parser)
    serve_parser.add_argument("--host", default=None, help="Bind host address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    serve_parser.add_argument(
        "--shutdown-timeout",
        type=int,
        default=None,
        metavar="MS",
        help="Grace window before a second interrupt force-exits (default: 10000)",
    )
    serve_parser.add_argument(
        "--skip-missing",
        action="store_true",
        default=None,
        help="Skip packages whose manifest cannot be loaded instead of aborting",
    )

    # -- modserve routes --------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="Print each package's route table")
    _add_package_args(routes_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from modserve.cli._serve import run_serve

        run_serve(args)
    elif args.command == "routes":
        from modserve.cli._routes import run_routes

        run_routes(args)
