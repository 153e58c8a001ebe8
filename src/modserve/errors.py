"""modserve exception hierarchy.

Shared across the dispatcher, the module resolver and the shutdown
machinery so every module raises and catches the same types.
"""

from dataclasses import dataclass
from pathlib import Path


class ModserveError(Exception):
    """Base for all modserve-specific errors."""


class ConfigurationError(ModserveError):
    """Raised when the app or server configuration is invalid.

    Typically raised at startup: duplicate mounts, routes added after
    freeze, a second shutdown coordinator installed in one process.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(ModserveError):
    """An error that maps directly to an HTTP status code.

    Raised by the dispatcher or handlers. The ASGI handler catches
    these and dispatches to the matching ``@app.error()`` handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — nothing answered the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


# -- Package manifests --


class ManifestError(ModserveError):
    """A package manifest could not be turned into routes.

    Fatal for the affected package: its route table cannot be built.
    Whether that aborts startup is the caller's decision.
    """

    def __init__(self, package: str, path: Path, detail: str) -> None:
        self.package = package
        self.path = path
        self.detail = detail
        super().__init__(f"{package}: {detail} ({path})")


class ManifestNotFound(ManifestError):  # noqa: N818
    """The package directory or its ``package.json`` does not exist."""


class EntryPointNotFound(ManifestNotFound):  # noqa: N818
    """The manifest declares none of ``browser``, ``module`` or ``main``."""


class ManifestParseError(ManifestError):
    """The manifest is not well-formed JSON, or not a JSON object."""
