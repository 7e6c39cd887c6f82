"""Error taxonomy for the protocol server.

ClientError  - the caller sent something we refuse to act on (4xx class).
HandlerFault - something failed on our side while executing (5xx class).

Transport faults (a peer dropping mid-stream) are not exceptions here: they
trigger session cleanup and there is nobody left to answer.
"""

from __future__ import annotations

from typing import Any

from .types import JsonRpcError, JsonRpcErrorCode, JsonRpcResponse


class ProtocolError(Exception):
    """Base exception carrying a JSON-RPC error code."""

    code: int = JsonRpcErrorCode.INTERNAL_ERROR
    http_status: int = 500

    def __init__(self, message: str, data: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data

    def to_error(self) -> JsonRpcError:
        return JsonRpcError(code=self.code, message=self.message, data=self.data)


class ClientError(ProtocolError):
    """Malformed or unacceptable request from the client."""

    code = JsonRpcErrorCode.INVALID_REQUEST
    http_status = 400


class ParseError(ClientError):
    code = JsonRpcErrorCode.PARSE_ERROR


class InvalidRequest(ClientError):
    code = JsonRpcErrorCode.INVALID_REQUEST


class MethodNotFound(ClientError):
    code = JsonRpcErrorCode.METHOD_NOT_FOUND
    http_status = 404


class InvalidParams(ClientError):
    code = JsonRpcErrorCode.INVALID_PARAMS


class ResourceNotFound(ClientError):
    code = JsonRpcErrorCode.RESOURCE_NOT_FOUND
    http_status = 404


class UnknownSession(ClientError):
    """A frame referenced a session id the table does not hold."""

    http_status = 400


class HandlerFault(ProtocolError):
    """Failure inside a handler; the message sent to clients stays generic."""

    code = JsonRpcErrorCode.INTERNAL_ERROR
    http_status = 500

    def __init__(self, message: str = "Internal error", data: Any | None = None) -> None:
        super().__init__(message, data)


def create_error_response(request_id: str | int | None, error: ProtocolError) -> JsonRpcResponse:
    """Create a JSON-RPC error response from a protocol error."""
    return JsonRpcResponse(id=request_id, error=error.to_error())
