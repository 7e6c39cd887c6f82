"""Server-Sent Events transport (GET stream + POST messages).

- GET  /sse                       opens the session's outbound stream; the
                                  first event names the POST endpoint
- POST /messages?sessionId=<id>   delivers one client frame (or a batch);
                                  answers 202 and replies on the stream

The session lives exactly as long as its stream: when the client goes
away the session is removed from the table.
"""

from __future__ import annotations

import logging
from typing import Any

from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from ..protocol.errors import ClientError, UnknownSession
from ..session import Session, TransportKind
from .base import SessionTransport, format_sse, read_json_body

logger = logging.getLogger(__name__)


class SseTransport(SessionTransport):
    """Push/pull-stream transport correlated by a sessionId query parameter."""

    kind = TransportKind.SSE

    def __init__(self, *args: Any, messages_path: str = "/messages", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._messages_path = messages_path

    async def bind(self, request: Request) -> Session:
        """Create a fresh session for a stream handshake."""
        session, _ = await self._sessions.get_or_create(self.kind)
        return session

    async def lookup(self, request: Request) -> Session:
        """Find the live session a message POST refers to.

        Raises:
            UnknownSession: If the id is missing, unknown or not an SSE session
        """
        session_id = request.query_params.get("sessionId")
        if not session_id:
            raise UnknownSession("Missing sessionId query parameter")
        session = await self._sessions.get(session_id)
        if session is None or session.kind != self.kind or not session.alive:
            raise UnknownSession("No transport for session")
        return session

    async def handle_stream(self, request: Request) -> Response:
        """GET handler: open the outbound stream."""
        session = await self.bind(request)
        session.streaming = True
        endpoint = f"{self._messages_path}?sessionId={session.session_id}"

        async def end_stream() -> None:
            session.streaming = False
            await self._sessions.remove(session.session_id)

        self.on_close(session, _log_closed)
        return self.event_stream(
            request,
            session,
            preamble=[format_sse(endpoint, event="endpoint")],
            on_end=end_stream,
        )

    async def handle_post(self, request: Request) -> Response:
        """POST handler: accept one inbound frame for a live session."""
        try:
            session = await self.lookup(request)
            payload = await read_json_body(request, self._max_body_bytes)
        except ClientError as e:
            logger.info(f"Rejected SSE message: {e.message}")
            return PlainTextResponse(e.message, status_code=e.http_status)

        return PlainTextResponse(
            "Accepted",
            status_code=202,
            background=BackgroundTask(self._dispatch, session, payload),
        )

    async def _dispatch(self, session: Session, payload: Any) -> None:
        responses = await self.receive(session, payload)
        for response in responses:
            await self.send(session, response)


async def _log_closed(session: Session) -> None:
    logger.debug(f"SSE session {session.session_id} closed")

