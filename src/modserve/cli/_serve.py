"""``modserve serve`` — serve packages until interrupted.

Builds the app from environment and flags, mounts the packages and runs
the server. Ctrl+C drains; a second Ctrl+C after the shutdown timeout
forces the exit.
"""

import argparse
import sys

from modserve.app import App
from modserve.cli._config import config_from_args, configure_logging
from modserve.errors import ManifestError


def run_serve(args: argparse.Namespace) -> None:
    """Start the server for ``args.packages``."""
    config = config_from_args(args)
    configure_logging(config.log_level)

    if not config.packages:
        print("Error: no packages given (pass names or set MODSERVE_PACKAGES)", file=sys.stderr)
        raise SystemExit(2)

    app = App(config)
    try:
        app.mount_packages()
    except ManifestError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    from modserve.server.run import run

    run(app, config)
