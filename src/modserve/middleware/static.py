"""Static file serving middleware.

Serves files from a directory for matching URL prefixes, with automatic
index file resolution for directories. Falls through to the next
handler for non-matching paths and missing files.
"""

import mimetypes
from pathlib import Path

from modserve.http.request import Request
from modserve.http.response import Redirect, Response
from modserve.middleware.protocol import AnyResponse, Next

# Module files must reach the browser with a JavaScript MIME type,
# whatever the host's mimetypes database says.
_CONTENT_TYPES = {
    ".js": "text/javascript; charset=utf-8",
    ".mjs": "text/javascript; charset=utf-8",
    ".cjs": "text/javascript; charset=utf-8",
    ".map": "application/json; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".wasm": "application/wasm",
}


class StaticFiles:
    """Middleware that serves static files from a directory.

    Files are served for paths matching the configured prefix.
    Non-matching paths fall through to the next handler.

    Security: resolves symlinks and verifies the final path
    is within the configured directory to prevent path traversal.

    Usage::

        app.add_middleware(StaticFiles(directory="./public", prefix="/"))
    """

    __slots__ = ("_cache_control", "_directory", "_index", "_prefix")

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/static",
        *,
        index: str = "index.html",
        cache_control: str = "no-cache",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control

        # Normalize prefix: ensure leading slash, strip trailing.
        # Root prefix "/" normalizes to "" (every path is a candidate).
        stripped = "/" + prefix.strip("/")
        self._prefix = stripped if stripped != "/" else ""

    @property
    def directory(self) -> Path:
        """The resolved directory this instance serves from."""
        return self._directory

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Serve a static file or fall through."""
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        path = request.path

        if self._prefix:
            if not path.startswith(self._prefix + "/") and path != self._prefix:
                return await next(request)
            relative = path[len(self._prefix) :].lstrip("/")
        else:
            relative = path.lstrip("/")

        response = self.lookup(relative, request)
        if response is None:
            return await next(request)
        return response

    def lookup(self, relative: str, request: Request) -> Response | None:
        """Resolve *relative* inside the directory.

        Returns the file response, a 403 for traversal attempts, a 301 to
        the trailing-slash URL for directories holding an index file, or
        ``None`` when nothing is there.
        """
        file_path = (self._directory / relative).resolve() if relative else self._directory
        if not file_path.is_relative_to(self._directory):
            return Response(body="Forbidden", status=403)

        if file_path.is_dir():
            index_path = file_path / self._index
            if not index_path.is_file():
                return None
            # Relative links inside the index need the trailing slash.
            if relative and not request.path.endswith("/"):
                return Redirect(request.full_path + "/", status=301).to_response()
            file_path = index_path

        if not file_path.is_file():
            return None

        return self._serve_file(file_path)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _serve_file(self, file_path: Path, *, status: int = 200) -> Response:
        """Read a file and build a response."""
        content_type = _CONTENT_TYPES.get(file_path.suffix.lower())
        if content_type is None:
            content_type, _ = mimetypes.guess_type(str(file_path))
        if content_type is None:
            content_type = "application/octet-stream"

        body = file_path.read_bytes()

        return (
            Response(body=body, content_type=content_type, status=status)
            .with_header("Cache-Control", self._cache_control)
        )
