"""``modserve routes`` — print the compiled route table of each package."""

import argparse
import sys

from modserve.cli._config import config_from_args, configure_logging
from modserve.errors import ManifestError
from modserve.modules.resolver import join_url
from modserve.modules.router import serve_module


def run_routes(args: argparse.Namespace) -> None:
    """Print one block per package; exit 1 if any manifest fails."""
    config = config_from_args(args)
    configure_logging(config.log_level)

    failed = False
    for package in config.packages:
        package_url = join_url(config.base_url, package)
        try:
            unit = serve_module(package, config.packages_dir, package_url)
        except ManifestError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            failed = True
            continue

        manifest = unit.manifest
        version = f"@{manifest.version}" if manifest.version else ""
        print(f"{package}{version}  ({package_url}, entry from {manifest.entry_field!r})")
        for rule in unit.table:
            print(f"  {type(rule).__name__:<24} {rule.describe()}")
        print(f"  {'(fallback)':<24} /... -> {manifest.directory}/...")

    if failed:
        raise SystemExit(1)
