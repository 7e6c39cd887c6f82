"""HTTP API routes."""

from .api import api_routes
from .health import health_routes
from .protocol import protocol_routes

__all__ = [
    "api_routes",
    "health_routes",
    "protocol_routes",
]
