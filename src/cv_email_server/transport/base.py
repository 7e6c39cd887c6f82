"""Transport abstraction base classes.

Both HTTP transports implement SessionTransport, so the Dispatcher is
written once and never learns which transport a frame came from:

- bind(request)             resolve or create the session for a request
- send(session, message)    deliver a frame on the session's open stream
- on_close(session, cb)     run cb when the session ends

Server-to-client frames travel as Server-Sent Events drained from the
session's outbox.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any, ClassVar

import anyio
from starlette.requests import Request
from starlette.responses import StreamingResponse

from ..protocol.dispatcher import Dispatcher
from ..protocol.errors import ClientError, ParseError
from ..protocol.types import JsonRpcResponse, ServerMessage
from ..session import CloseCallback, Session, SessionTable, TransportKind

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}

# Upper bound on how long a stream waits before re-checking for disconnect
DISCONNECT_POLL_SECONDS = 1.0


class PayloadTooLarge(ClientError):
    http_status = 413


async def read_json_body(request: Request, max_bytes: int) -> Any:
    """Read and decode a JSON request body.

    Raises:
        PayloadTooLarge: If the body exceeds max_bytes
        ParseError: If the body is not valid JSON
    """
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > max_bytes:
        raise PayloadTooLarge(f"Request body exceeds {max_bytes} bytes")

    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > max_bytes:
            raise PayloadTooLarge(f"Request body exceeds {max_bytes} bytes")
        chunks.append(chunk)

    try:
        return json.loads(b"".join(chunks).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseError(f"Parse error: {e}") from e


def encode_message(message: ServerMessage) -> str:
    """Serialize an outbound frame."""
    if isinstance(message, JsonRpcResponse):
        return json.dumps(message.to_wire())
    return message.model_dump_json(exclude_none=True)


def format_sse(data: str, event: str | None = None) -> str:
    """Format one Server-Sent Event."""
    lines = []
    if event:
        lines.append(f"event: {event}")
    lines.extend(f"data: {line}" for line in data.splitlines() or [""])
    return "\n".join(lines) + "\n\n"


class SessionTransport(ABC):
    """Abstract base class for session-scoped transports."""

    kind: ClassVar[TransportKind]

    def __init__(
        self,
        sessions: SessionTable,
        dispatcher: Dispatcher,
        *,
        keepalive_seconds: float = 15.0,
        max_body_bytes: int = 2 * 1024 * 1024,
    ) -> None:
        self._sessions = sessions
        self._dispatcher = dispatcher
        self._keepalive_seconds = keepalive_seconds
        self._max_body_bytes = max_body_bytes

    @property
    def sessions(self) -> SessionTable:
        return self._sessions

    @abstractmethod
    async def bind(self, request: Request) -> Session:
        """Resolve the session an inbound request belongs to."""

    async def send(self, session: Session, message: ServerMessage) -> None:
        """Deliver a frame on the session's stream."""
        if not await session.push(message):
            logger.warning(f"Session {session.session_id} closed, message dropped")

    def on_close(self, session: Session, callback: CloseCallback) -> None:
        """Register a callback for when the session ends."""
        session.on_close(callback)

    async def receive(self, session: Session, payload: Any) -> list[JsonRpcResponse]:
        """Hand a decoded inbound payload to the dispatcher."""
        return await self._dispatcher.dispatch_payload(session, payload)

    def event_stream(
        self,
        request: Request,
        session: Session,
        *,
        preamble: list[str] | None = None,
        on_end: Callable[[], Coroutine[Any, Any, None]] | None = None,
    ) -> StreamingResponse:
        """Stream the session's outbox to the client as SSE.

        Args:
            request: The incoming request (for disconnect detection)
            session: Session whose outbox is drained
            preamble: Events written before any queued message
            on_end: Cleanup run when the stream ends for any reason
        """
        return StreamingResponse(
            self._pump(request, session, preamble or [], on_end),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    async def _pump(
        self,
        request: Request,
        session: Session,
        preamble: list[str],
        on_end: Callable[[], Coroutine[Any, Any, None]] | None,
    ) -> AsyncIterator[str]:
        poll = min(DISCONNECT_POLL_SECONDS, self._keepalive_seconds)
        idle = 0.0
        try:
            for chunk in preamble:
                yield chunk

            while True:
                # Check for client disconnect
                if await request.is_disconnected():
                    logger.info(f"Client of session {session.session_id} disconnected")
                    break

                try:
                    message = await asyncio.wait_for(session.outbox.get(), timeout=poll)
                except TimeoutError:
                    idle += poll
                    if idle >= self._keepalive_seconds:
                        idle = 0.0
                        yield ": keepalive\n\n"
                    continue

                if message is None:
                    break  # Session closed
                idle = 0.0
                yield format_sse(encode_message(message), event="message")
        finally:
            if on_end is not None:
                # Cleanup must finish even when the response task is cancelled
                with anyio.CancelScope(shield=True):
                    await on_end()
