"""
SSE server transport with an explicit session registry.

Clients open a long-lived ``GET`` on the SSE endpoint. The first event on that
stream, ``endpoint``, tells the client where to POST its JSON-RPC messages,
including the ``session_id`` query parameter identifying the stream. Each
POST is routed through the :class:`SessionRegistry` to the MCP session bound
to that stream; responses travel back over the stream as ``message`` events.

Example usage:
```
    registry = SessionRegistry()
    app = create_sse_app(server, registry)

    # or wire the pieces yourself
    transport = SseTransport("/messages/", registry)
    routes = [
        Route("/sse", endpoint=SseEndpoint(server, transport)),
        Mount("/messages/", app=transport.handle_post_message),
    ]
```
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import quote

import anyio
import mcp.types as types
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from mcp.server.lowlevel import Server
from mcp.shared.message import ServerMessageMetadata, SessionMessage
from pydantic import ValidationError
from sse_starlette import EventSourceResponse
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route
from starlette.types import Receive, Scope, Send

from github_commit_mcp.exceptions import RoutingError
from github_commit_mcp.sessions import SessionRegistry

logger = logging.getLogger(__name__)

Streams = tuple[
    MemoryObjectReceiveStream[SessionMessage | Exception],
    MemoryObjectSendStream[SessionMessage],
]


class SseTransport:
    """
    SSE transport that routes POSTed messages through a :class:`SessionRegistry`.
    """

    def __init__(self, endpoint: str, registry: SessionRegistry) -> None:
        """
        Args:
            endpoint: the path clients POST messages to, relative to the
                application root, e.g. ``"/messages/"``
            registry: the process-wide session registry
        """
        self.endpoint = endpoint
        self.registry = registry

    @asynccontextmanager
    async def connect_sse(self, scope: Scope, receive: Receive, send: Send) -> AsyncIterator[Streams]:
        if scope["type"] != "http":
            raise ValueError("connect_sse can only handle HTTP requests")

        read_stream_writer, read_stream = anyio.create_memory_object_stream[SessionMessage | Exception](0)
        write_stream, write_stream_reader = anyio.create_memory_object_stream[SessionMessage](0)

        session = await self.registry.open(read_stream_writer)
        logger.info("SSE session %s opened", session.id)

        root_path = scope.get("root_path", "")
        client_post_uri = f"{quote(root_path.rstrip('/') + self.endpoint)}?session_id={session.id}"

        sse_stream_writer, sse_stream_reader = anyio.create_memory_object_stream[dict[str, Any]](0)

        async def sse_writer() -> None:
            async with sse_stream_writer, write_stream_reader:
                await sse_stream_writer.send({"event": "endpoint", "data": client_post_uri})
                async for session_message in write_stream_reader:
                    await sse_stream_writer.send(
                        {
                            "event": "message",
                            "data": session_message.message.model_dump_json(by_alias=True, exclude_none=True),
                        }
                    )

        async def response_wrapper(scope: Scope, receive: Receive, send: Send) -> None:
            await EventSourceResponse(content=sse_stream_reader, data_sender_callable=sse_writer)(scope, receive, send)
            # The client went away, or the session was closed from our side.
            await self.registry.close(session.id)
            await write_stream_reader.aclose()

        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(response_wrapper, scope, receive, send)
                yield (read_stream, write_stream)
        finally:
            await self.registry.close(session.id)
            logger.info("SSE session %s closed", session.id)

    async def handle_post_message(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)

        session_id = request.query_params.get("session_id")
        if session_id is None:
            response = Response("session_id is required", status_code=400)
            return await response(scope, receive, send)

        try:
            await self.registry.get(session_id)
        except RoutingError as exc:
            logger.warning("Rejected message: %s", exc)
            response = Response(str(exc), status_code=404)
            return await response(scope, receive, send)

        body = await request.body()
        try:
            message = types.JSONRPCMessage.model_validate_json(body)
        except ValidationError:
            logger.warning("Could not parse message for session %s", session_id)
            response = Response("Could not parse message", status_code=400)
            return await response(scope, receive, send)

        metadata = ServerMessageMetadata(request_context=request)
        try:
            await self.registry.route(session_id, SessionMessage(message, metadata=metadata))
        except RoutingError as exc:
            logger.warning("Rejected message: %s", exc)
            response = Response(str(exc), status_code=404)
            return await response(scope, receive, send)

        response = Response("Accepted", status_code=202)
        await response(scope, receive, send)


class SseEndpoint:
    """ASGI app serving the event stream and running ``server`` on it."""

    def __init__(self, server: Server[Any, Any], transport: SseTransport) -> None:
        self.server = server
        self.transport = transport

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        async with self.transport.connect_sse(scope, receive, send) as (read_stream, write_stream):
            await self.server.run(read_stream, write_stream, self.server.create_initialization_options())


def create_sse_app(
    server: Server[Any, Any],
    registry: SessionRegistry,
    sse_path: str = "/sse",
    message_path: str = "/messages/",
    debug: bool = False,
) -> Starlette:
    """Return a Starlette app serving ``server`` over SSE."""
    transport = SseTransport(message_path, registry)

    async def health(request: Request) -> Response:
        return JSONResponse({"status": "ok", "sessions": len(registry)})

    return Starlette(
        debug=debug,
        routes=[
            Route(sse_path, endpoint=SseEndpoint(server, transport), methods=["GET"]),
            Mount(message_path, app=transport.handle_post_message),
            Route("/health", endpoint=health, methods=["GET"]),
        ],
    )
