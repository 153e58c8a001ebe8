"""modserve application class.

Mutable during setup (mounts, middleware, error handlers).
Frozen at runtime when app.run() or __call__() is first invoked.
"""

from __future__ import annotations

import inspect
import threading
from collections.abc import Callable, Iterable
from typing import Any

from modserve._internal.asgi import Receive, Scope, Send
from modserve.config import ServeConfig
from modserve.errors import ConfigurationError
from modserve.middleware.protocol import Middleware
from modserve.modules.router import ModulesRouter, serve_modules
from modserve.routing.mount import Mount, normalize_prefix
from modserve.server.handler import handle_request

ErrorHandler = Callable[..., Any]


class App:
    """The modserve application.

    Mutable during setup (mounts, middleware, error handlers).
    Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked.

    Usage::

        app = App(ServeConfig(packages=("lit",), base_url="/vendor"))
        app.mount_packages()
        app.run()

    Thread safety:
        The freeze transition uses a Lock + double-check so exactly one
        caller compiles the middleware tuple, even if the server calls
        ``__call__()`` concurrently on first request.
    """

    __slots__ = (
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_mounted_prefixes",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: ServeConfig | None = None) -> None:
        self.config: ServeConfig = config or ServeConfig()
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._mounted_prefixes: set[str] = set()
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state — set during _freeze()
        self._middleware: tuple[Callable[..., Any], ...] = ()

    # -- Mounting --

    def mount(self, path: str, unit: Middleware) -> Mount:
        """Mount a routable unit under *path*.

        The unit sees request paths relative to *path* and may pass
        anything it does not answer on to the rest of the pipeline.
        """
        self._check_not_frozen()
        prefix = normalize_prefix(path)
        if prefix in self._mounted_prefixes:
            msg = f"Something is already mounted at {prefix or '/'!r}."
            raise ConfigurationError(msg)
        self._mounted_prefixes.add(prefix)
        mount = Mount(prefix, unit)
        self._middleware_list.append(mount)
        return mount

    def mount_packages(
        self,
        packages: Iterable[str] | None = None,
        *,
        packages_dir: str | None = None,
        base_url: str | None = None,
    ) -> ModulesRouter:
        """Serve installed packages at ``base_url`` (defaults from config).

        Manifest errors propagate unless ``config.skip_missing`` is set.
        """
        url = base_url if base_url is not None else self.config.base_url
        router = serve_modules(
            self.config.packages if packages is None else packages,
            self.config.packages_dir if packages_dir is None else packages_dir,
            normalize_prefix(url) or "/",
            skip_missing=self.config.skip_missing,
            cache_control=self.config.cache_control,
        )
        self.mount(url, router)
        return router

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler for a status code or exception type."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a hook run once when the server starts (sync or async)."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a hook run once after the server has drained."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    async def startup(self) -> None:
        """Freeze the app and run startup hooks."""
        self._ensure_frozen()
        await _run_hooks(self._startup_hooks)

    async def shutdown(self) -> None:
        """Run shutdown hooks."""
        await _run_hooks(self._shutdown_hooks)

    # -- Serving --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start the server and block until it has shut down.

        The first interrupt drains open connections; once
        ``config.shutdown_timeout_ms`` has elapsed a second interrupt
        forces the process to exit.
        """
        from modserve.server.run import run

        run(self, self.config.with_overrides(host=host, port=port))

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()

        await handle_request(
            scope,
            receive,
            send,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            debug=self.config.log_level == "debug",
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol for servers that speak it."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        self._middleware = tuple(self._middleware_list)
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving. "
                "Mount units and register middleware before the first request."
            )
            raise ConfigurationError(msg)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "setup"
        return f"<App {state} middleware={len(self._middleware_list)}>"


async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
    """Call each hook in order, awaiting the async ones."""
    for hook in hooks:
        result = hook()
        if inspect.isawaitable(result):
            await result
