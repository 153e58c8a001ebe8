"""Shared CLI helpers: config resolution and logging setup."""

import argparse
import logging

from modserve.config import ServeConfig

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def config_from_args(args: argparse.Namespace) -> ServeConfig:
    """Environment first, then CLI flags on top."""
    config = ServeConfig.from_env()
    return config.with_overrides(
        packages=tuple(args.packages) or None,
        packages_dir=args.root,
        base_url=args.base_url,
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
        shutdown_timeout_ms=getattr(args, "shutdown_timeout", None),
        skip_missing=getattr(args, "skip_missing", None),
        log_level=args.log_level,
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
