"""Protocol type definitions.

JSON-RPC 2.0 frames plus the content and listing shapes used by the
resource/tool protocol.

Note: Field names use camelCase to match the wire format.
This is required for client compatibility - do not change to snake_case.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# The single protocol version this server speaks
PROTOCOL_VERSION = "2025-03-26"

SERVER_NAME = "cv-email-server"


# =============================================================================
# JSON-RPC 2.0 Base Types
# =============================================================================


class JsonRpcNotification(BaseModel):
    """JSON-RPC 2.0 notification (no response expected)."""

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    params: dict[str, Any] | None = None


class JsonRpcError(BaseModel):
    """JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any | None = None


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 response."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: str | int | None
    result: Any | None = None
    error: JsonRpcError | None = None

    def to_wire(self) -> dict[str, Any]:
        """Serialize with exactly one of result/error present."""
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            data["error"] = self.error.model_dump(exclude_none=True)
        else:
            data["result"] = self.result if self.result is not None else {}
        return data


# Anything the server may push to a client
ServerMessage = JsonRpcResponse | JsonRpcNotification


class JsonRpcErrorCode:
    """Standard JSON-RPC 2.0 error codes."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Protocol-specific error codes
    RESOURCE_NOT_FOUND = -32002


class Method(str, Enum):
    """Supported protocol methods."""

    INITIALIZE = "initialize"
    INITIALIZED = "notifications/initialized"
    PING = "ping"
    RESOURCES_LIST = "resources/list"
    RESOURCES_TEMPLATES_LIST = "resources/templates/list"
    RESOURCES_READ = "resources/read"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"


# =============================================================================
# Content Types
# =============================================================================


class TextContent(BaseModel):
    """Text content block."""

    type: Literal["text"] = "text"
    text: str


class ResourceContents(BaseModel):
    """Contents of one resource read."""

    uri: str
    mimeType: str | None = None
    text: str


class ReadResourceParams(BaseModel):
    """Parameters of resources/read."""

    model_config = ConfigDict(extra="ignore")

    uri: str


class ReadResourceResult(BaseModel):
    """Result of resources/read."""

    contents: list[ResourceContents]


class CallToolParams(BaseModel):
    """Parameters of tools/call."""

    model_config = ConfigDict(extra="ignore")

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class CallToolResult(BaseModel):
    """Result of tools/call."""

    content: list[TextContent]
    isError: bool = False


# =============================================================================
# Initialize
# =============================================================================


class ServerInfo(BaseModel):
    """Information about the server."""

    name: str
    version: str


class ServerCapabilities(BaseModel):
    """Capabilities advertised during initialize."""

    resources: dict[str, Any] = Field(default_factory=lambda: {"listChanged": False})
    tools: dict[str, Any] = Field(default_factory=lambda: {"listChanged": False})


class InitializeResult(BaseModel):
    """Result of initialize."""

    protocolVersion: str = PROTOCOL_VERSION
    serverInfo: ServerInfo
    capabilities: ServerCapabilities = Field(default_factory=ServerCapabilities)
