"""Session registry for the SSE transport.

Maps an opaque session id to the open event-stream connection it belongs to,
so that messages POSTed out of band can be delivered to the right MCP
session. A single :class:`SessionRegistry` is created at process start and
handed to the transport; every mutation and lookup takes the same lock.

Lifecycle of a session::

    CREATED --(first routed message)--> ACTIVE --(disconnect/shutdown)--> CLOSED

A closed session is removed from the registry. Its id is never issued again
while the registry lives, so late messages for it fail with
:class:`~github_commit_mcp.exceptions.RoutingError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

import anyio
from anyio.streams.memory import MemoryObjectSendStream
from mcp.shared.message import SessionMessage

from github_commit_mcp.exceptions import RoutingError

logger = logging.getLogger(__name__)

Connection = MemoryObjectSendStream[SessionMessage | Exception]


class SessionState(str, Enum):
    CREATED = "created"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(eq=False)
class Session:
    id: str
    connection: Connection
    opened_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    state: SessionState = SessionState.CREATED


class SessionRegistry:
    def __init__(self) -> None:
        self._lock = anyio.Lock()
        self._sessions: dict[str, Session] = {}
        self._issued: set[str] = set()
        self._accepting = True

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @property
    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def _new_id(self) -> str:
        session_id = uuid4().hex
        while session_id in self._issued:
            session_id = uuid4().hex
        self._issued.add(session_id)
        return session_id

    async def open(self, connection: Connection) -> Session:
        """Store ``connection`` under a freshly issued session id."""
        async with self._lock:
            if not self._accepting:
                raise RuntimeError("Session registry is shut down")
            session = Session(id=self._new_id(), connection=connection)
            self._sessions[session.id] = session
        logger.debug("Opened session %s", session.id)
        return session

    async def get(self, session_id: str) -> Session:
        async with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise RoutingError(session_id)
        return session

    async def route(self, session_id: str, message: SessionMessage | Exception) -> None:
        """Deliver ``message`` to the session's connection.

        Messages for one session are delivered in the order they arrive:
        senders waiting on a zero-buffer memory stream are served FIFO.

        Raises:
            RoutingError: if the session does not exist or closed meanwhile.
        """
        session = await self.get(session_id)
        try:
            await session.connection.send(message)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            logger.debug("Session %s closed while routing a message", session_id)
            await self.close(session_id)
            raise RoutingError(session_id) from None
        if session.state is SessionState.CREATED:
            session.state = SessionState.ACTIVE

    async def close(self, session_id: str) -> bool:
        """Remove the session and close its connection.

        Returns False if the session was already gone.
        """
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.state = SessionState.CLOSED
        await session.connection.aclose()
        logger.debug("Closed session %s", session_id)
        return True

    async def close_all(self) -> int:
        """Close every session and stop accepting new ones."""
        async with self._lock:
            self._accepting = False
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.state = SessionState.CLOSED
            await session.connection.aclose()
        if sessions:
            logger.info("Closed %d open session(s)", len(sessions))
        return len(sessions)
