"""Streamable HTTP transport (single endpoint, header-carried session).

One path serves every method:

- POST    one client frame (or a batch); requests are answered in the body
- GET     optional server-to-client event stream for the session
- DELETE  explicitly end the session

The session id travels in the ``Mcp-Session-Id`` header. A request without
one gets a fresh session; the id is echoed on every response so the client
can reuse it.
"""

from __future__ import annotations

import logging
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from ..protocol.errors import ClientError, create_error_response
from ..session import Session, TransportKind
from .base import SessionTransport, read_json_body

logger = logging.getLogger(__name__)

SESSION_HEADER = "Mcp-Session-Id"
ALLOWED_METHODS = "GET, POST, DELETE"


class StreamableHttpTransport(SessionTransport):
    """Streaming-request transport keyed by the Mcp-Session-Id header."""

    kind = TransportKind.STREAMABLE_HTTP

    async def bind(self, request: Request) -> Session:
        """Resolve the header's session, establishing it on first contact.

        Raises:
            ClientError: If the id belongs to a session of the other transport
        """
        session_id = request.headers.get(SESSION_HEADER) or None
        session, created = await self._sessions.get_or_create(self.kind, session_id)
        if created:
            self.on_close(session, _log_closed)
        return session

    async def handle(self, request: Request) -> Response:
        """Route a request to the per-method handler."""
        match request.method:
            case "POST":
                return await self._handle_post(request)
            case "GET":
                return await self._handle_get(request)
            case "DELETE":
                return await self._handle_delete(request)
            case _:
                return PlainTextResponse(
                    "Method not allowed",
                    status_code=405,
                    headers={"Allow": ALLOWED_METHODS},
                )

    async def _handle_post(self, request: Request) -> Response:
        try:
            session = await self.bind(request)
        except ClientError as e:
            return _error_response(e)

        headers = {SESSION_HEADER: session.session_id}
        try:
            payload = await read_json_body(request, self._max_body_bytes)
        except ClientError as e:
            logger.info(f"Rejected frame on session {session.session_id}: {e.message}")
            return _error_response(e, headers)

        responses = await self.receive(session, payload)
        if not responses:
            return Response(status_code=202, headers=headers)

        if isinstance(payload, list):
            content: Any = [r.to_wire() for r in responses]
        else:
            content = responses[0].to_wire()
        return JSONResponse(content, headers=headers)

    async def _handle_get(self, request: Request) -> Response:
        try:
            session = await self.bind(request)
        except ClientError as e:
            return _error_response(e)

        headers = {SESSION_HEADER: session.session_id}
        if session.streaming:
            return PlainTextResponse(
                "Stream already open for session", status_code=409, headers=headers
            )
        session.streaming = True

        async def end_stream() -> None:
            # The session outlives its optional stream
            session.streaming = False

        response = self.event_stream(request, session, on_end=end_stream)
        response.headers[SESSION_HEADER] = session.session_id
        return response

    async def _handle_delete(self, request: Request) -> Response:
        session_id = request.headers.get(SESSION_HEADER)
        if not session_id:
            return PlainTextResponse(f"Missing {SESSION_HEADER} header", status_code=400)

        session = await self._sessions.get(session_id)
        if session is None:
            return PlainTextResponse("Session not found", status_code=404)
        if session.kind != self.kind:
            return PlainTextResponse("Session belongs to another transport", status_code=400)

        await self._sessions.remove(session_id)
        return Response(status_code=204)


def _error_response(error: ClientError, headers: dict[str, str] | None = None) -> Response:
    """Transport-level rejection, shaped as a JSON-RPC error body."""
    return JSONResponse(
        create_error_response(None, error).to_wire(),
        status_code=error.http_status,
        headers=headers,
    )


async def _log_closed(session: Session) -> None:
    logger.debug(f"Streamable HTTP session {session.session_id} closed")
