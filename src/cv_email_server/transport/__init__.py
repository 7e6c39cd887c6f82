"""Transport layer.

Two HTTP transports share one capability contract (SessionTransport):
- Streamable HTTP - single endpoint, session id in the Mcp-Session-Id header
- SSE             - long-lived GET stream paired with a POST message channel
"""

from .base import (
    PayloadTooLarge,
    SessionTransport,
    encode_message,
    format_sse,
    read_json_body,
)
from .sse import SseTransport
from .streamable_http import SESSION_HEADER, StreamableHttpTransport

__all__ = [
    # Base abstractions
    "SessionTransport",
    "PayloadTooLarge",
    "read_json_body",
    "encode_message",
    "format_sse",
    # Implementations
    "SseTransport",
    "StreamableHttpTransport",
    "SESSION_HEADER",
]
