"""Serve installed packages over HTTP.

The manifest of each package is read once, compiled into an ordered
route table and mounted as a routable unit::

    from modserve.modules import serve_modules

    app.mount("/vendor", serve_modules(["lit"], "node_modules", "/vendor"))
"""

from modserve.modules.exports import compile_exports, normalize_export_key
from modserve.modules.manifest import PackageManifest, read_manifest
from modserve.modules.resolver import join_url, resolve_redirect
from modserve.modules.router import ModuleRouter, ModulesRouter, serve_module, serve_modules
from modserve.modules.rules import (
    DirectoryDelegationRule,
    EntryRule,
    ExactFileRule,
    GlobRule,
    RouteRule,
    RouteTable,
    RuleMatch,
)

__all__ = [
    "DirectoryDelegationRule",
    "EntryRule",
    "ExactFileRule",
    "GlobRule",
    "ModuleRouter",
    "ModulesRouter",
    "PackageManifest",
    "RouteRule",
    "RouteTable",
    "RuleMatch",
    "compile_exports",
    "join_url",
    "normalize_export_key",
    "read_manifest",
    "resolve_redirect",
    "serve_module",
    "serve_modules",
]
