"""Server configuration.

ServeConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from modserve.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class ServeConfig:
    """Server configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ServeConfig(packages=("lit", "htmx.org"), port=3000)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    backlog: int = 2048

    # Packages
    packages_dir: str | Path = "node_modules"
    base_url: str = "/node_modules"
    packages: tuple[str, ...] = ()
    skip_missing: bool = False  # Skip packages whose manifest fails to load

    # Static fallback
    cache_control: str = "no-cache"

    # Shutdown
    shutdown_timeout_ms: int = 10_000  # Grace window before a second interrupt kills

    # Logging
    log_level: str = "info"

    @classmethod
    def from_env(
        cls,
        prefix: str = "MODSERVE_",
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> ServeConfig:
        """Build a config from ``<PREFIX><FIELD>`` environment variables.

        ``MODSERVE_PORT=3000``, ``MODSERVE_PACKAGES=lit,htmx.org``,
        ``MODSERVE_SKIP_MISSING=true``. Keyword *overrides* win over the
        environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(prefix + f.name.upper())
            if raw is None:
                continue
            values[f.name] = _coerce(f.name, f.default, raw)
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> ServeConfig:
        """Return a copy with the non-``None`` *overrides* applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _coerce(name: str, default: Any, raw: str) -> Any:
    """Convert an environment string to the type of the field default."""
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off", ""):
            return False
        msg = f"Invalid boolean for {name}: {raw!r}"
        raise ConfigurationError(msg)
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError as exc:
            msg = f"Invalid integer for {name}: {raw!r}"
            raise ConfigurationError(msg) from exc
    if isinstance(default, tuple):
        return tuple(part.strip() for part in raw.split(",") if part.strip())
    return raw
