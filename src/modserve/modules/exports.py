"""Compile a manifest's export map into an ordered route table."""

import logging
import re

from modserve.modules.manifest import PackageManifest
from modserve.modules.rules import (
    DirectoryDelegationRule,
    EntryRule,
    ExactFileRule,
    GlobRule,
    RouteRule,
    RouteTable,
)

logger = logging.getLogger("modserve.modules")

# Targets with these extensions are single files; anything else is a directory.
SCRIPT_EXTENSIONS: tuple[str, ...] = (".js", ".mjs", ".cjs")

_LEADING_DOT = re.compile(r"^\./?")


def normalize_export_key(key: str) -> str:
    """Strip one leading ``./`` (or bare ``.``) from an export key.

    Keys without the leading dot are returned verbatim::

        "."         -> ""
        "./bar"     -> "bar"
        "./lib/*"   -> "lib/*"
        "bar"       -> "bar"
    """
    return _LEADING_DOT.sub("", key, count=1)


def compile_exports(manifest: PackageManifest) -> RouteTable:
    """Turn *manifest* into its route table.

    The entry rule comes first. Export entries follow in declared order;
    the root key is skipped because the entry rule already answers it.
    """
    rules: list[RouteRule] = [EntryRule(target_path=manifest.entry_point)]

    for key, target in manifest.exports:
        subpath = normalize_export_key(key)
        if not subpath:
            continue
        rules.append(compile_export(subpath, target))

    logger.debug("Compiled %d rule(s) for %s", len(rules), manifest.name)
    return RouteTable(package=manifest.name, rules=tuple(rules))


def compile_export(subpath: str, target: str) -> RouteRule:
    """Build the rule for one normalized export key."""
    if subpath.endswith("*"):
        return GlobRule(request_prefix=subpath[:-1], target_pattern=target)
    if target.endswith(SCRIPT_EXTENSIONS):
        return ExactFileRule(request_path=subpath, target_path=target)
    return DirectoryDelegationRule(request_prefix=subpath.rstrip("/"), target_directory=target)
