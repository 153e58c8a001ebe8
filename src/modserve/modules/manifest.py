"""Package manifest loading.

Reads ``<root>/<package>/package.json`` once, at route-build time, and
reduces it to the handful of fields the resolver needs: the entry point
and the ordered export map.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from modserve.errors import EntryPointNotFound, ManifestNotFound, ManifestParseError

logger = logging.getLogger("modserve.modules")

MANIFEST_FILENAME = "package.json"

# First non-empty string wins.
ENTRY_FIELDS: tuple[str, ...] = ("browser", "module", "main")

# Condition keys honoured when an export target is a conditions object,
# in priority order. Anything else (``require``, ``node``, ``types``...)
# does not describe a file a browser can import.
EXPORT_CONDITIONS: tuple[str, ...] = ("browser", "import", "module", "default")

# Keys that mark an object as a conditions object rather than a sub-path map.
KNOWN_CONDITIONS: frozenset[str] = frozenset(
    {*EXPORT_CONDITIONS, "require", "node", "types", "deno", "worker", "development", "production"}
)


@dataclass(frozen=True, slots=True)
class PackageManifest:
    """The routing-relevant view of one ``package.json``.

    Immutable; owned by whoever called ``read_manifest``.
    """

    name: str
    directory: Path
    entry_field: str
    entry_point: str
    exports: tuple[tuple[str, str], ...] = ()
    declared_name: str | None = None
    version: str | None = None


def read_manifest(package: str, root: str | Path) -> PackageManifest:
    """Load and parse the manifest of *package* installed under *root*.

    Raises:
        ManifestNotFound: The package directory or its manifest is absent.
        EntryPointNotFound: None of ``browser``/``module``/``main`` is set.
        ManifestParseError: The file is not a well-formed JSON object.
    """
    directory = Path(root) / package
    path = directory / MANIFEST_FILENAME

    try:
        raw = path.read_bytes()
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise ManifestNotFound(package, path, "manifest not found") from exc

    try:
        data = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ManifestParseError(package, path, f"not UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ManifestParseError(
            package, path, f"invalid JSON at line {exc.lineno} column {exc.colno}: {exc.msg}"
        ) from exc

    if not isinstance(data, dict):
        raise ManifestParseError(
            package, path, f"expected a JSON object, got {type(data).__name__}"
        )

    entry_field, entry_point = resolve_entry_point(data, package, path)
    exports = normalize_exports(data.get("exports"), package)

    manifest = PackageManifest(
        name=package,
        directory=directory,
        entry_field=entry_field,
        entry_point=entry_point,
        exports=exports,
        declared_name=_optional_str(data.get("name")),
        version=_optional_str(data.get("version")),
    )
    logger.debug(
        "Loaded %s: entry %s=%r, %d export(s)",
        package,
        entry_field,
        entry_point,
        len(exports),
    )
    return manifest


def resolve_entry_point(data: dict[str, Any], package: str, path: Path) -> tuple[str, str]:
    """Pick the entry point by priority ``browser > module > main``.

    A ``browser`` *object* (the file-replacement map form) is not an
    entry point and is skipped.
    """
    for field_name in ENTRY_FIELDS:
        value = data.get(field_name)
        if isinstance(value, str) and value:
            return field_name, value
    raise EntryPointNotFound(package, path, "no browser, module or main entry point")


def normalize_exports(value: Any, package: str = "") -> tuple[tuple[str, str], ...]:
    """Flatten an ``exports`` declaration to ordered ``(key, target)`` pairs.

    Handles every shape the field takes in the wild::

        "./index.js"                          -> ((".", "./index.js"),)
        {"import": "./a.mjs", "require": ...} -> ((".", "./a.mjs"),)
        {".": "./a.js", "./b": "./b.js"}      -> ((".", "./a.js"), ("./b", "./b.js"))

    Entries whose target resolves to nothing are dropped.
    """
    if value is None:
        return ()
    if isinstance(value, (str, list)):
        value = {".": value}
    if not isinstance(value, dict):
        logger.debug("%s: ignoring exports of type %s", package, type(value).__name__)
        return ()
    if _is_conditions(value):
        # Top-level conditions object, e.g. {"import": ..., "default": ...}
        value = {".": value}

    pairs: list[tuple[str, str]] = []
    for key, target in value.items():
        resolved = resolve_target(target)
        if resolved is None:
            logger.debug("%s: export %r has no browser-usable target", package, key)
            continue
        pairs.append((key, resolved))
    return tuple(pairs)


def resolve_target(target: Any) -> str | None:
    """Reduce one export target to a path string, or ``None``.

    Strings pass through; lists yield their first resolvable entry;
    conditions objects are searched in ``EXPORT_CONDITIONS`` order
    (recursively, since conditions nest).
    """
    match target:
        case str():
            return target
        case list():
            for candidate in target:
                resolved = resolve_target(candidate)
                if resolved is not None:
                    return resolved
            return None
        case dict():
            for condition in EXPORT_CONDITIONS:
                if condition in target:
                    resolved = resolve_target(target[condition])
                    if resolved is not None:
                        return resolved
            return None
        case _:
            return None


def _is_conditions(value: dict[str, Any]) -> bool:
    """True for a top-level conditions object such as ``{"import": ..., "default": ...}``.

    Keys without a leading dot that are not known conditions are kept as
    (legacy) sub-path keys instead.
    """
    if not value or any(key.startswith(".") for key in value):
        return False
    return any(key in KNOWN_CONDITIONS for key in value)


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None
