"""Run an app behind a listener with managed shutdown.

Starts the listener, installs the shutdown coordinator for ``SIGINT`` and
``SIGTERM``, and returns once the listener has drained. A forced kill
never returns: the coordinator exits the process.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

from modserve.config import ServeConfig
from modserve.server.listener import Listener
from modserve.server.shutdown import ShutdownCoordinator

if TYPE_CHECKING:
    from modserve.app import App

logger = logging.getLogger("modserve.server")

SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


async def serve(app: App, config: ServeConfig | None = None) -> None:
    """Serve *app* until an interrupt drains the listener."""
    config = config or app.config
    await app.startup()

    listener = Listener(app, host=config.host, port=config.port, backlog=config.backlog)
    await listener.start()

    coordinator = ShutdownCoordinator(listener, config.shutdown_timeout_ms)
    coordinator.install(SHUTDOWN_SIGNALS)
    host, port = listener.address or (config.host, config.port)
    logger.info("Serving on http://%s:%d (Ctrl+C to stop)", host, port)

    try:
        await coordinator.wait_terminated()
    finally:
        coordinator.uninstall()
        await app.shutdown()


def run(app: App, config: ServeConfig | None = None) -> None:
    """Blocking wrapper around ``serve()``."""
    asyncio.run(serve(app, config))
