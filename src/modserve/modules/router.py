"""Routable units serving installed packages.

``serve_module`` builds the unit for one package; ``serve_modules`` mounts
several of them side by side, each under ``/<package-name>``. Both return
middleware, so they can be mounted anywhere::

    app.mount("/vendor", serve_modules(["lit", "htmx.org"], "node_modules", "/vendor"))

Request handling inside one package, in order:

1. The route table (entry point first, then the export map as declared):
   entry, exact-file and glob matches redirect to the real file;
   directory delegation serves ``<target directory>/<rest>`` in place.
2. The fallback: any file of the package directory, served as is.
3. Otherwise the request continues down the outer chain, which ends
   in the dispatcher's own 404.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from modserve.errors import ConfigurationError, ManifestError
from modserve.http.request import Request
from modserve.middleware.protocol import AnyResponse, Next
from modserve.middleware.static import StaticFiles
from modserve.modules.exports import compile_exports
from modserve.modules.manifest import PackageManifest, read_manifest
from modserve.modules.resolver import join_url, resolve_redirect
from modserve.modules.rules import RouteTable
from modserve.routing.mount import Mount

logger = logging.getLogger("modserve.modules")


class ModuleRouter:
    """Serves one package from its compiled route table.

    Only ``GET`` and ``HEAD`` are answered; other methods fall through.
    """

    __slots__ = ("_base_url", "_manifest", "_static", "_table")

    def __init__(
        self,
        manifest: PackageManifest,
        table: RouteTable,
        base_url: str,
        *,
        cache_control: str = "no-cache",
    ) -> None:
        self._manifest = manifest
        self._table = table
        self._base_url = base_url
        self._static = StaticFiles(manifest.directory, prefix="/", cache_control=cache_control)

    @property
    def manifest(self) -> PackageManifest:
        return self._manifest

    @property
    def table(self) -> RouteTable:
        return self._table

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        subpath = request.path.lstrip("/")
        match = self._table.match(subpath)
        if match is not None:
            if match.redirects:
                response = resolve_redirect(match, self._base_url)
                logger.debug(
                    "%s %s -> %s", request.method, request.full_path, response.location
                )
                return response

            response = self._static.lookup(match.target, request)
            if response is not None:
                return response

        return await self._static(request, next)


class ModulesRouter:
    """Several ``ModuleRouter`` units, each mounted under its package name.

    Mount order follows the caller's list. Packages own disjoint path
    segments, so no cross-package precedence applies.
    """

    __slots__ = ("_mounts",)

    def __init__(self, mounts: Iterable[Mount]) -> None:
        self._mounts: tuple[Mount, ...] = tuple(mounts)

    @property
    def packages(self) -> list[str]:
        """Mounted package names, in mount order."""
        return [mount.prefix[1:] for mount in self._mounts]

    @property
    def tables(self) -> dict[str, RouteTable]:
        """Route table per package name, in mount order."""
        return {mount.prefix[1:]: mount.unit.table for mount in self._mounts}  # type: ignore[attr-defined]

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        for mount in self._mounts:
            if mount.owns(request.path):
                return await mount(request, next)
        return await next(request)


def serve_module(
    package: str,
    packages_dir: str | Path,
    base_url: str,
    *,
    cache_control: str = "no-cache",
) -> ModuleRouter:
    """Build the routable unit for one installed package.

    Args:
        package: Package name, e.g. ``"lit"`` or ``"@scope/pkg"``.
        packages_dir: The directory packages are installed into
            (``node_modules``).
        base_url: Absolute URL path at which this package's root is
            reachable; redirect targets are joined onto it.
        cache_control: ``Cache-Control`` value for statically served files.

    Raises:
        ManifestNotFound: The package or its manifest is missing.
        ManifestParseError: The manifest is malformed.
    """
    manifest = read_manifest(package, packages_dir)
    table = compile_exports(manifest)
    return ModuleRouter(manifest, table, base_url, cache_control=cache_control)


def serve_modules(
    packages: Iterable[str],
    packages_dir: str | Path,
    base_url: str,
    *,
    skip_missing: bool = False,
    cache_control: str = "no-cache",
) -> ModulesRouter:
    """Serve a whitelist of packages as if it were the packages directory.

    Each package is mounted at ``/<name>`` and redirects to
    ``<base_url>/<name>/...``, so *base_url* must be where the returned
    unit itself gets mounted.

    Manifest errors propagate unless *skip_missing* is set, in which case
    the package is left out and a warning logged.
    """
    mounts: list[Mount] = []
    seen: set[str] = set()
    for package in packages:
        if package in seen:
            msg = f"Package {package!r} listed more than once."
            raise ConfigurationError(msg)
        seen.add(package)

        package_url = join_url(base_url, package)
        try:
            unit = serve_module(package, packages_dir, package_url, cache_control=cache_control)
        except ManifestError as exc:
            if not skip_missing:
                raise
            logger.warning("Skipping %s: %s", package, exc)
            continue

        logger.info(
            "Serving %s at %s (entry %s: %s)",
            package,
            package_url,
            unit.manifest.entry_field,
            unit.manifest.entry_point,
        )
        mounts.append(Mount("/" + package, unit))

    return ModulesRouter(mounts)
