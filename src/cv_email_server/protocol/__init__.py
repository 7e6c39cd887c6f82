"""Protocol layer: frames, error taxonomy, registry and dispatcher.

JSON-RPC 2.0 requests are routed to named resources and tools. Nothing in
this package knows which transport a frame arrived on.
"""

from .dispatcher import Dispatcher, RequestState
from .errors import (
    ClientError,
    HandlerFault,
    InvalidParams,
    InvalidRequest,
    MethodNotFound,
    ParseError,
    ProtocolError,
    ResourceNotFound,
    UnknownSession,
    create_error_response,
)
from .registry import (
    Registry,
    ResourceDefinition,
    ResourceTemplateDefinition,
    ToolContext,
    ToolDefinition,
)
from .types import (
    PROTOCOL_VERSION,
    CallToolResult,
    JsonRpcErrorCode,
    JsonRpcNotification,
    JsonRpcResponse,
    Method,
    ReadResourceResult,
    ResourceContents,
    ServerMessage,
    TextContent,
)

__all__ = [
    # Dispatch
    "Dispatcher",
    "RequestState",
    # Registry
    "Registry",
    "ResourceDefinition",
    "ResourceTemplateDefinition",
    "ToolContext",
    "ToolDefinition",
    # Errors
    "ProtocolError",
    "ClientError",
    "ParseError",
    "InvalidRequest",
    "InvalidParams",
    "MethodNotFound",
    "ResourceNotFound",
    "UnknownSession",
    "HandlerFault",
    "create_error_response",
    # Types
    "PROTOCOL_VERSION",
    "JsonRpcErrorCode",
    "JsonRpcResponse",
    "JsonRpcNotification",
    "ServerMessage",
    "Method",
    "TextContent",
    "CallToolResult",
    "ResourceContents",
    "ReadResourceResult",
]
