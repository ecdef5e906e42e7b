"""Services the supervisor can run: the SSE HTTP server and the stdio server."""

from __future__ import annotations

import contextlib
import os
import sys
import threading
from collections.abc import AsyncIterator, Iterator
from concurrent.futures import CancelledError
from typing import Any

import anyio
import anyio.from_thread
import anyio.lowlevel
import uvicorn
from anyio.streams.memory import MemoryObjectSendStream
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from starlette.types import ASGIApp

from github_commit_mcp.utilities.logging import get_logger

logger = get_logger(__name__)

READ_SIZE = 64 * 1024


class SupervisedUvicornServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the supervisor."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class UvicornService:
    name = "http"

    def __init__(self, app: ASGIApp, host: str, port: int, log_level: str = "INFO") -> None:
        config = uvicorn.Config(app, host=host, port=port, log_level=log_level.lower())
        self.server = SupervisedUvicornServer(config)

    async def serve(self) -> None:
        await self.server.serve()

    def stop(self) -> None:
        self.server.should_exit = True


class StdinLines:
    """Lines of a file descriptor as an async iterator, read on a daemon thread.

    A read blocked in the kernel cannot be interrupted. Reading on a daemon
    thread lets the consumer be cancelled at any time and lets the process exit
    while the read is still pending; the thread is abandoned, never joined.
    """

    def __init__(self, fd: int | None = None, encoding: str = "utf-8") -> None:
        self.fd = sys.stdin.fileno() if fd is None else fd
        self.encoding = encoding

    async def __aiter__(self) -> AsyncIterator[str]:
        send_stream, receive_stream = anyio.create_memory_object_stream[str](0)
        token = anyio.lowlevel.current_token()
        thread = threading.Thread(
            target=self._pump,
            args=(send_stream, token),
            name="stdin-reader",
            daemon=True,
        )
        thread.start()
        async with receive_stream:
            async for line in receive_stream:
                yield line

    def _lines(self) -> Iterator[bytes]:
        pending = b""
        while chunk := os.read(self.fd, READ_SIZE):
            pending += chunk
            *lines, pending = pending.split(b"\n")
            for line in lines:
                yield line + b"\n"
        if pending:
            yield pending

    def _pump(self, send_stream: MemoryObjectSendStream[str], token: Any) -> None:
        try:
            try:
                for line in self._lines():
                    anyio.from_thread.run(send_stream.send, line.decode(self.encoding, errors="replace"), token=token)
            except OSError as exc:
                logger.warning("Could not read stdin: %s", exc)
            anyio.from_thread.run(send_stream.aclose, token=token)
        except (anyio.BrokenResourceError, anyio.ClosedResourceError, CancelledError, RuntimeError):
            # The consumer went away or the event loop finished.
            logger.debug("stdin reader stopped")


class StdioService:
    """Serves a single MCP session over stdin/stdout."""

    name = "stdio"

    def __init__(self, server: Server[Any, Any], stdin: StdinLines | None = None) -> None:
        self.server = server
        self.stdin = stdin
        self._cancel_scope: anyio.CancelScope | None = None

    async def serve(self) -> None:
        with anyio.CancelScope() as scope:
            self._cancel_scope = scope
            stdin = self.stdin or StdinLines()
            async with stdio_server(stdin=stdin) as (read_stream, write_stream):  # type: ignore[arg-type]
                await self.server.run(read_stream, write_stream, self.server.create_initialization_options())

    def stop(self) -> None:
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()
