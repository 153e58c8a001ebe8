"""Mount a routable unit under a path prefix."""

from modserve.errors import ConfigurationError
from modserve.http.request import Request
from modserve.middleware.protocol import AnyResponse, Middleware, Next


def normalize_prefix(prefix: str) -> str:
    """Return *prefix* with one leading slash and no trailing slash.

    The root prefix normalizes to ``""``.

    Examples::

        "vendor"    -> "/vendor"
        "/vendor/"  -> "/vendor"
        "/"         -> ""
    """
    stripped = prefix.strip("/")
    return "/" + stripped if stripped else ""


class Mount:
    """Middleware that forwards requests under *prefix* to *unit*.

    The unit receives the request with the prefix stripped (``/`` for
    the bare prefix). When the unit falls through, the original request
    continues down the outer chain, so mounts compose like
    ``router.use(prefix, unit)``.

    Usage::

        app.add_middleware(Mount("/vendor", serve_modules(["lit"], "node_modules", "/vendor")))
    """

    __slots__ = ("_prefix", "_unit")

    def __init__(self, prefix: str, unit: Middleware) -> None:
        if not callable(unit):
            msg = f"Cannot mount {unit!r} at {prefix!r}: not a middleware callable."
            raise ConfigurationError(msg)
        self._prefix = normalize_prefix(prefix)
        self._unit = unit

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def unit(self) -> Middleware:
        return self._unit

    def owns(self, path: str) -> bool:
        """True if *path* is the prefix itself or lies beneath it."""
        if not self._prefix:
            return True
        return path == self._prefix or path.startswith(self._prefix + "/")

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        if not self.owns(request.path):
            return await next(request)

        async def fall_through(_: Request) -> AnyResponse:
            return await next(request)

        return await self._unit(request.mounted(self._prefix), fall_through)
