"""HTTP listener built on uvicorn's protocol implementation.

uvicorn's ``Server`` owns signal handling and its own shutdown timeout.
The shutdown coordinator needs both, so the listener binds an asyncio
server with uvicorn's HTTP protocol class directly and exposes the two
operations a drain needs: stop accepting, and wait for the last
connection to end.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import uvicorn
from uvicorn.server import ServerState

if TYPE_CHECKING:
    from modserve._internal.asgi import ASGIApp

logger = logging.getLogger("modserve.server")


class Listener:
    """A bound HTTP socket serving one ASGI app.

    Usage::

        listener = Listener(app, host="127.0.0.1", port=8000)
        await listener.start()
        ...
        listener.close()            # stop accepting, let in-flight finish
        await listener.wait_closed()
    """

    __slots__ = ("_config", "_server", "_state")

    def __init__(
        self,
        app: ASGIApp,
        host: str = "127.0.0.1",
        port: int = 8000,
        *,
        backlog: int = 2048,
    ) -> None:
        self._config = uvicorn.Config(
            app,
            host=host,
            port=port,
            backlog=backlog,
            lifespan="off",
            log_config=None,
            server_header=False,
        )
        self._state = ServerState()
        self._server: asyncio.Server | None = None

    @property
    def connection_count(self) -> int:
        """Connections currently open (idle keep-alive included)."""
        return len(self._state.connections)

    @property
    def closing(self) -> bool:
        return self._server is not None and not self._server.is_serving()

    @property
    def sockets(self) -> tuple[Any, ...]:
        if self._server is None:
            return ()
        return tuple(self._server.sockets)

    @property
    def address(self) -> tuple[str, int] | None:
        """The bound ``(host, port)``; useful when port 0 was requested."""
        for sock in self.sockets:
            name = sock.getsockname()
            return name[0], name[1]
        return None

    async def start(self) -> None:
        """Bind the socket and start accepting connections."""
        if self._server is not None:
            msg = "Listener already started"
            raise RuntimeError(msg)

        config = self._config
        if not config.loaded:
            config.load()
        self._state.default_headers = list(config.encoded_headers)

        def create_protocol(_loop: asyncio.AbstractEventLoop | None = None) -> asyncio.Protocol:
            return config.http_protocol_class(  # type: ignore[call-arg]
                config=config,
                server_state=self._state,
                app_state={},
                _loop=_loop,
            )

        loop = asyncio.get_running_loop()
        self._server = await loop.create_server(
            create_protocol,
            host=config.host,
            port=config.port,
            backlog=config.backlog,
        )
        logger.debug("Listening on %s", self.address)

    def close(self) -> None:
        """Stop accepting connections; let in-flight requests finish.

        Idle keep-alive connections close right away, busy ones close
        after their current response.
        """
        if self._server is None:
            return
        self._server.close()
        for connection in list(self._state.connections):
            connection.shutdown()

    async def wait_closed(self) -> None:
        """Return once the socket is closed and every connection has ended."""
        if self._server is None:
            return
        await self._server.wait_closed()
