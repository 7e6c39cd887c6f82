"""Session table for the protocol server.

Tracks live client sessions across both transports:
- Session creation with server-generated or client-supplied ids
- Per-session outbound queue feeding the session's open stream
- Close callbacks fired exactly once when a session ends
- Concurrency-safe create/get/remove behind one asyncio.Lock
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .protocol.errors import ClientError
from .protocol.types import ServerMessage

logger = logging.getLogger(__name__)

CloseCallback = Callable[["Session"], Coroutine[Any, Any, None]]


class TransportKind(str, Enum):
    """Which transport owns a session."""

    STREAMABLE_HTTP = "streamable_http"
    SSE = "sse"


def generate_session_id() -> str:
    """Generate a fresh, globally unique session id."""
    return str(uuid.uuid4())


@dataclass
class Session:
    """A client's continuity context across protocol exchanges.

    Messages pushed to a session land in its outbox; the transport's open
    stream (if any) drains it. ``None`` in the outbox marks the end.
    """

    session_id: str
    kind: TransportKind
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    alive: bool = True
    initialized: bool = False
    streaming: bool = False
    outbox: asyncio.Queue[ServerMessage | None] = field(default_factory=asyncio.Queue)
    _close_callbacks: list[CloseCallback] = field(default_factory=list, repr=False)

    async def push(self, message: ServerMessage) -> bool:
        """Queue a message for delivery on this session's stream."""
        if not self.alive:
            logger.debug(f"Dropping message for closed session {self.session_id}")
            return False
        await self.outbox.put(message)
        return True

    def on_close(self, callback: CloseCallback) -> None:
        """Register a callback to run once when the session closes."""
        if not self.alive:
            raise RuntimeError(f"Session {self.session_id} is already closed")
        self._close_callbacks.append(callback)

    async def close(self) -> None:
        """Mark the session dead, wake its stream, run close callbacks."""
        if not self.alive:
            return
        self.alive = False
        await self.outbox.put(None)

        callbacks, self._close_callbacks = self._close_callbacks, []
        for callback in callbacks:
            try:
                await callback(self)
            except Exception as e:
                logger.warning(f"Error in close callback for session {self.session_id}: {e}")


class SessionTable:
    """Concurrent mapping from session id to live Session.

    The table is the sole owner of sessions. Creating a session for an id
    already present reuses it; it never replaces a live session.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    async def get_or_create(
        self,
        kind: TransportKind,
        session_id: str | None = None,
    ) -> tuple[Session, bool]:
        """Get the session for an id, creating it when absent.

        Args:
            kind: Transport the caller is serving
            session_id: Optional id (generated if not provided)

        Returns:
            Tuple of (session, created)

        Raises:
            ClientError: If the id belongs to a session of another transport
        """
        async with self._lock:
            if session_id is not None:
                existing = self._sessions.get(session_id)
                if existing is not None:
                    if existing.kind != kind:
                        raise ClientError(
                            f"Session {session_id} is bound to the {existing.kind.value} transport"
                        )
                    return existing, False
            else:
                session_id = generate_session_id()
                while session_id in self._sessions:
                    session_id = generate_session_id()

            session = Session(session_id=session_id, kind=kind)
            self._sessions[session_id] = session

        logger.info(f"Created {kind.value} session {session_id}")
        return session, True

    async def get(self, session_id: str) -> Session | None:
        """Get a live session by id."""
        async with self._lock:
            return self._sessions.get(session_id)

    async def remove(self, session_id: str) -> bool:
        """Remove and close a session. Idempotent.

        Returns:
            True if a session was removed, False if it was not present
        """
        async with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            return False

        await session.close()
        logger.info(f"Removed session {session_id}")
        return True

    async def close_all(self) -> int:
        """Close every session (server shutdown).

        Returns:
            Number of sessions closed
        """
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        for session in sessions:
            await session.close()
        if sessions:
            logger.info(f"Closed {len(sessions)} sessions")
        return len(sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
