"""Graceful shutdown with a forced-exit escalation.

The first interrupt always starts a graceful drain: the listener stops
accepting and in-flight connections are allowed to finish. A deadline
timer runs alongside. When it fires the coordinator only *arms* the
kill switch; the process is killed by the next interrupt, never by the
timer itself. A listener that finishes draining after the deadline but
before that second interrupt still exits cleanly.

::

    IDLE --interrupt--> DRAINING --drained--> TERMINATED
                            |
                        deadline
                            v
                        ESCALATED --interrupt--> KILLED (exit -1)
                            |
                         drained
                            v
                        TERMINATED

Interrupts while DRAINING (before the deadline) are ignored, so
key-repeat on Ctrl+C cannot turn a graceful stop into a kill.

Everything runs on the event loop thread: the signal handler and the
timer callback are the only writers of the state and cannot interleave.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from modserve.errors import ConfigurationError

_log = logging.getLogger("modserve.shutdown")

# Process exit status on a forced kill (255 once truncated by the OS).
FORCED_EXIT_STATUS = -1


class Listener(Protocol):
    """What the coordinator needs from a server socket."""

    def close(self) -> None:
        """Stop accepting new connections; let in-flight ones finish."""
        ...

    async def wait_closed(self) -> None:
        """Return once every connection has ended."""
        ...


class ShutdownMode(Enum):
    GRACEFUL = "graceful"
    KILL = "kill"


class ShutdownPhase(Enum):
    IDLE = "idle"
    DRAINING = "draining"
    ESCALATED = "escalated"
    TERMINATED = "terminated"
    KILLED = "killed"


@dataclass(slots=True)
class ShutdownState:
    """The one mutable record shared by the interrupt and timer callbacks."""

    mode: ShutdownMode = ShutdownMode.GRACEFUL
    terminating: bool = False
    deadline_timer: asyncio.TimerHandle | None = None
    drained: bool = False
    killed: bool = False

    @property
    def phase(self) -> ShutdownPhase:
        if self.killed:
            return ShutdownPhase.KILLED
        if self.drained:
            return ShutdownPhase.TERMINATED
        if self.mode is ShutdownMode.KILL:
            return ShutdownPhase.ESCALATED
        if self.terminating:
            return ShutdownPhase.DRAINING
        return ShutdownPhase.IDLE

    def cancel_timer(self) -> None:
        if self.deadline_timer is not None:
            self.deadline_timer.cancel()
            self.deadline_timer = None


# The coordinator currently holding the process's interrupt handler.
_installed: ShutdownCoordinator | None = None


class ShutdownCoordinator:
    """Drive one listener through a graceful shutdown.

    Args:
        listener: The server socket to drain.
        deadline_ms: Grace window in milliseconds. After it elapses, the
            next interrupt kills the process.
        logger: Where transitions are logged (``modserve.shutdown`` by
            default).
        exit_func: Called with ``FORCED_EXIT_STATUS`` on a forced kill.
            Defaults to ``os._exit``: no cleanup, no waiting.
        loop: Event loop for the timer and signal handler (defaults to
            the running loop at ``install()`` / first interrupt).
    """

    __slots__ = (
        "_deadline_ms",
        "_drain_task",
        "_exit",
        "_installed_signals",
        "_listener",
        "_logger",
        "_loop",
        "_terminated",
        "state",
    )

    def __init__(
        self,
        listener: Listener,
        deadline_ms: int,
        *,
        logger: logging.Logger | None = None,
        exit_func: Callable[[int], object] = os._exit,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if deadline_ms < 0:
            msg = f"Shutdown deadline must be >= 0 ms, got {deadline_ms}"
            raise ConfigurationError(msg)
        self._listener = listener
        self._deadline_ms = deadline_ms
        self._logger = logger or _log
        self._exit = exit_func
        self._loop = loop
        self._drain_task: asyncio.Task[None] | None = None
        self._terminated: asyncio.Event | None = None
        self._installed_signals: tuple[signal.Signals, ...] = ()
        self.state = ShutdownState()

    @property
    def phase(self) -> ShutdownPhase:
        return self.state.phase

    @property
    def deadline_ms(self) -> int:
        return self._deadline_ms

    # -- Signal wiring --

    def install(self, signals: Iterable[signal.Signals] = (signal.SIGINT,)) -> None:
        """Register ``interrupt()`` as the handler for *signals*.

        Only one coordinator may be installed per process.
        """
        global _installed
        if _installed is not None:
            msg = "A shutdown coordinator is already installed for this process."
            raise ConfigurationError(msg)

        loop = self._get_loop()
        sigs = tuple(signals)
        for sig in sigs:
            loop.add_signal_handler(sig, self.interrupt)
        self._installed_signals = sigs
        _installed = self

    def uninstall(self) -> None:
        """Remove the signal handlers registered by ``install()``."""
        global _installed
        if _installed is not self:
            return
        loop = self._get_loop()
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals = ()
        _installed = None

    # -- Events --

    def interrupt(self) -> None:
        """React to one interrupt according to the current phase."""
        state = self.state

        if state.killed:
            return

        if state.mode is ShutdownMode.KILL and not state.drained:
            self._kill()
            return

        if state.terminating:
            self._logger.debug("Interrupt ignored (phase %s)", state.phase.value)
            return

        state.terminating = True
        loop = self._get_loop()
        self._logger.info(
            "Shutting down: draining connections (interrupt again after %d ms to force)",
            self._deadline_ms,
        )
        self._listener.close()
        state.deadline_timer = loop.call_later(self._deadline_ms / 1000, self._on_deadline)
        self._drain_task = loop.create_task(self._wait_drained())

    def _on_deadline(self) -> None:
        state = self.state
        state.deadline_timer = None
        if state.drained or state.killed:
            return
        state.mode = ShutdownMode.KILL
        self._logger.warning(
            "Connections still open after %d ms; interrupt again to force exit",
            self._deadline_ms,
        )

    async def _wait_drained(self) -> None:
        try:
            await self._listener.wait_closed()
        except Exception:
            # The listener is already closed, so the drain still completes.
            self._logger.exception("Waiting for connections to close failed")
        self._on_drained()

    def _on_drained(self) -> None:
        state = self.state
        if state.killed:
            return
        state.cancel_timer()
        state.drained = True
        self._logger.info("All connections closed; shutdown complete")
        self._terminated_event().set()

    def _kill(self) -> None:
        state = self.state
        state.cancel_timer()
        state.killed = True
        self._logger.error("Forcing exit with open connections (status %d)", FORCED_EXIT_STATUS)
        self._exit(FORCED_EXIT_STATUS)

    # -- Awaiting --

    async def wait_terminated(self) -> None:
        """Return once the listener has fully drained."""
        await self._terminated_event().wait()

    def _terminated_event(self) -> asyncio.Event:
        if self._terminated is None:
            self._terminated = asyncio.Event()
        return self._terminated

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop


def install_shutdown(
    listener: Listener,
    deadline_ms: int,
    logger: logging.Logger | None = None,
    *,
    signals: Iterable[signal.Signals] = (signal.SIGINT,),
) -> ShutdownCoordinator:
    """Create a coordinator for *listener* and install it for the process."""
    coordinator = ShutdownCoordinator(listener, deadline_ms, logger=logger)
    coordinator.install(signals)
    return coordinator
