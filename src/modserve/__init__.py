"""modserve — serve installed packages to the browser, unbundled.

Maps each whitelisted package's manifest (entry point and export map) to
HTTP routes, redirecting module specifiers to real files so relative
imports resolve, and shuts down gracefully on interrupt.

Basic usage::

    from modserve import App, ServeConfig

    app = App(ServeConfig(packages=("lit", "htmx.org"), base_url="/vendor"))
    app.mount_packages()
    app.run()

As a unit inside another router::

    from modserve import serve_modules

    unit = serve_modules(["lit"], "node_modules", "/vendor")
    app.mount("/vendor", unit)
"""

__version__ = "0.1.0"
__all__ = [
    "AnyResponse",
    "App",
    "ConfigurationError",
    "HTTPError",
    "ManifestError",
    "ManifestNotFound",
    "ManifestParseError",
    "Middleware",
    "ModserveError",
    "Mount",
    "Next",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "ServeConfig",
    "ShutdownCoordinator",
    "StaticFiles",
    "install_shutdown",
    "serve_module",
    "serve_modules",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import modserve`` fast while providing a clean top-level API.
    """
    if name == "App":
        from modserve.app import App

        return App

    if name == "ServeConfig":
        from modserve.config import ServeConfig

        return ServeConfig

    if name == "Request":
        from modserve.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from modserve.http import response as _resp

        return getattr(_resp, name)

    if name in ("AnyResponse", "Middleware", "Next"):
        from modserve.middleware import protocol as _mw

        return getattr(_mw, name)

    if name == "StaticFiles":
        from modserve.middleware.static import StaticFiles

        return StaticFiles

    if name == "Mount":
        from modserve.routing.mount import Mount

        return Mount

    if name in ("serve_module", "serve_modules"):
        from modserve.modules import router as _router

        return getattr(_router, name)

    if name in ("ShutdownCoordinator", "install_shutdown"):
        from modserve.server import shutdown as _shutdown

        return getattr(_shutdown, name)

    if name in (
        "ConfigurationError",
        "HTTPError",
        "ManifestError",
        "ManifestNotFound",
        "ManifestParseError",
        "ModserveError",
        "NotFound",
    ):
        from modserve import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
