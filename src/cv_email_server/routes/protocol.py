"""Protocol endpoints for both transports.

- /mcp       Streamable HTTP (every method; GET/POST/DELETE are served)
- /sse       SSE stream handshake
- /messages  SSE inbound frames (?sessionId=...)
"""

from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route


async def mcp_endpoint(request: Request) -> Response:
    """Streamable HTTP endpoint."""
    return await request.app.state.streamable.handle(request)


async def sse_endpoint(request: Request) -> Response:
    """Open an SSE session stream."""
    return await request.app.state.sse.handle_stream(request)


async def messages_endpoint(request: Request) -> Response:
    """Deliver a client frame to an SSE session."""
    return await request.app.state.sse.handle_post(request)


protocol_routes = [
    # methods=None: the transport itself answers 405 for what it does not serve
    Route("/mcp", mcp_endpoint, methods=None),
    Route("/sse", sse_endpoint, methods=["GET"]),
    Route("/messages", messages_endpoint, methods=["POST"]),
]
