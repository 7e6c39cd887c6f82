"""CV Email Server Application.

Creates the Starlette ASGI application with all routes.

Route organization:
- /health              - Health check
- /mcp                 - Protocol over Streamable HTTP
- /sse, /messages      - Protocol over SSE
- /api/send-email      - REST: send an email
- /api/upload-resume   - REST: replace the resume
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Route

from . import __version__
from .config import ServerConfig
from .handlers import build_registry
from .mailer import Mailer, SmtpMailer
from .protocol.dispatcher import Dispatcher
from .resume_store import ResumeStore
from .routes import api_routes, health_routes, protocol_routes
from .session import SessionTable
from .transport import SESSION_HEADER, SseTransport, StreamableHttpTransport

logger = logging.getLogger(__name__)


def create_app(
    config: ServerConfig | None = None,
    *,
    store: ResumeStore | None = None,
    mailer: Mailer | None = None,
) -> Starlette:
    """Create the CV email server application.

    Args:
        config: Server configuration (read from the environment if omitted)
        store: Resume store to serve; created and loaded from
               config.resume_path if omitted
        mailer: Email capability; SMTP-backed if omitted

    Returns:
        Configured Starlette application
    """
    config = config or ServerConfig.from_env()

    if store is None:
        store = ResumeStore(config.resume_path)
        store.load()
    mailer = mailer or SmtpMailer(config.smtp)

    registry = build_registry(store, mailer)
    dispatcher = Dispatcher(registry, server_version=__version__)
    sessions = SessionTable()
    transport_options = {
        "keepalive_seconds": config.keepalive_seconds,
        "max_body_bytes": config.max_body_bytes,
    }
    streamable = StreamableHttpTransport(sessions, dispatcher, **transport_options)
    sse = SseTransport(sessions, dispatcher, **transport_options)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info(f"CV email server {__version__} ready")
        yield
        await sessions.close_all()

    routes: list[Route] = []
    routes.extend(health_routes)
    routes.extend(protocol_routes)
    routes.extend(api_routes)

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=config.allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=[SESSION_HEADER],
        ),
    ]

    app = Starlette(routes=routes, middleware=middleware, lifespan=lifespan)
    app.state.config = config
    app.state.store = store
    app.state.mailer = mailer
    app.state.sessions = sessions
    app.state.dispatcher = dispatcher
    app.state.streamable = streamable
    app.state.sse = sse
    return app
