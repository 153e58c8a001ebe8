"""Immutable HTTP request.

Frozen metadata. Mounted units see a request whose ``path`` is relative
to their mount point; ``mount_path`` records what was stripped.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from modserve.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Module routes never read the body, so only metadata is carried.
    """

    method: str
    path: str
    headers: Headers
    query_string: bytes = b""
    mount_path: str = ""
    http_version: str = "1.1"
    client: tuple[str, int] | None = None

    @property
    def full_path(self) -> str:
        """The path as the client sent it (mount prefix included)."""
        return self.mount_path + self.path

    @property
    def url(self) -> str:
        """Full request path plus query string."""
        if self.query_string:
            return f"{self.full_path}?{self.query_string.decode('latin-1')}"
        return self.full_path

    def mounted(self, prefix: str) -> Request:
        """Return the request as seen by a unit mounted at *prefix*.

        ``/foo/bar`` mounted at ``/foo`` becomes path ``/bar`` with
        ``mount_path`` extended by ``/foo``. The bare prefix maps to ``/``.
        """
        rest = self.path[len(prefix) :] or "/"
        return replace(self, path=rest, mount_path=self.mount_path + prefix)

    @classmethod
    def from_asgi(cls, scope: dict[str, Any]) -> Request:
        """Create a Request from an ASGI scope."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query_string=scope.get("query_string", b""),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
        )
