"""Process lifecycle: run services, shut down on signals or fatal errors.

The :class:`Supervisor` runs every service and a signal watcher in one task
group. Shutdown is requested by a termination signal, by a service returning,
or by calling :meth:`Supervisor.request_shutdown`; it closes every open
session, asks each service to stop, waits up to a grace period and cancels
whatever is left. A service raising instead surfaces through the task group
and takes the same path, but the exit status is 1.
"""

from __future__ import annotations

import logging
import signal
from collections.abc import Sequence
from typing import Protocol

import anyio

from github_commit_mcp.sessions import SessionRegistry

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1

DEFAULT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGTERM, signal.SIGINT)


class Service(Protocol):
    name: str

    async def serve(self) -> None: ...

    def stop(self) -> None: ...


class Supervisor:
    def __init__(
        self,
        sessions: SessionRegistry,
        grace_period: float = 5.0,
        signals: Sequence[signal.Signals] = DEFAULT_SIGNALS,
    ) -> None:
        self.sessions = sessions
        self.grace_period = grace_period
        self.signals = tuple(signals)
        self.shutdown_reason: str | None = None
        self._stopping: anyio.Event | None = None

    def request_shutdown(self, reason: str) -> None:
        if self.shutdown_reason is not None:
            return
        self.shutdown_reason = reason
        logger.info("Shutting down: %s", reason)
        if self._stopping is not None:
            self._stopping.set()

    async def _watch_signals(self) -> None:
        try:
            with anyio.open_signal_receiver(*self.signals) as received:
                async for signum in received:
                    self.request_shutdown(f"received {signal.Signals(signum).name}")
                    return
        except NotImplementedError:
            logger.debug("Signal handling is not supported on this platform")

    async def _serve(self, service: Service) -> None:
        await service.serve()
        self.request_shutdown(f"{service.name} stopped")

    async def run(self, *services: Service) -> int:
        """Run ``services`` until shutdown; return the process exit status."""
        self._stopping = stopping = anyio.Event()
        if self.shutdown_reason is not None:
            stopping.set()
        services_done = anyio.Event()

        async def run_services() -> None:
            try:
                async with anyio.create_task_group() as tg:
                    for service in services:
                        tg.start_soon(self._serve, service, name=service.name)
            finally:
                services_done.set()

        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(self._watch_signals)
                tg.start_soon(run_services)
                await stopping.wait()

                await self.sessions.close_all()
                for service in services:
                    service.stop()
                with anyio.move_on_after(self.grace_period) as scope:
                    await services_done.wait()
                if scope.cancelled_caught:
                    logger.warning("Services did not stop within %.1fs, cancelling", self.grace_period)
                tg.cancel_scope.cancel()
        except Exception as exc:
            logger.critical("Fatal error, shutting down", exc_info=exc)
            self.shutdown_reason = f"fatal error: {exc!r}"
            with anyio.CancelScope(shield=True):
                await self.sessions.close_all()
            return EXIT_FATAL
        return EXIT_OK
