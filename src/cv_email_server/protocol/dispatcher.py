"""Dispatcher - transport-agnostic request handling.

Binds a session's inbound frames to the registry and produces the
response frame. Both transports delegate here, so protocol behavior is
identical no matter how a frame arrived.

Per-request lifecycle:

    received -> validated -> executing -> responded
                    |                        ^
                    +------- (error) --------+

Validation failures never reach a handler. Handler faults are converted
to a generic internal error; their cause is logged, not sent.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from .errors import (
    ClientError,
    HandlerFault,
    InvalidParams,
    InvalidRequest,
    MethodNotFound,
    ProtocolError,
    ResourceNotFound,
    create_error_response,
)
from .registry import Registry, ToolContext
from .types import (
    PROTOCOL_VERSION,
    SERVER_NAME,
    CallToolParams,
    CallToolResult,
    InitializeResult,
    JsonRpcResponse,
    Method,
    ReadResourceParams,
    ReadResourceResult,
    ServerInfo,
)

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)


class RequestState(str, Enum):
    """Lifecycle of one inbound request."""

    RECEIVED = "received"
    VALIDATED = "validated"
    EXECUTING = "executing"
    RESPONDED = "responded"


def _validation_summary(error: ValidationError) -> list[dict[str, Any]]:
    """Compact, client-safe description of a pydantic validation error."""
    return [
        {"field": ".".join(str(p) for p in item["loc"]), "message": item["msg"]}
        for item in error.errors()
    ]


def _safe_id(request_id: Any) -> str | int | None:
    if isinstance(request_id, bool) or not isinstance(request_id, str | int):
        return None
    return request_id


def _parse_params(model: type[BaseModel], params: dict[str, Any] | None) -> Any:
    try:
        return model.model_validate(params or {})
    except ValidationError as e:
        raise InvalidParams("Invalid params", data=_validation_summary(e)) from e


class Dispatcher:
    """Routes protocol requests to registry entries.

    Usage:
        dispatcher = Dispatcher(registry)

        responses = await dispatcher.dispatch_payload(session, payload)
        for response in responses:
            await transport.send(session, response)

    Exactly one response is produced per request and no handler runs more
    than once for it. Notifications produce no response.
    """

    def __init__(self, registry: Registry, server_version: str = "1.0.0") -> None:
        self._registry = registry
        self._server_info = ServerInfo(name=SERVER_NAME, version=server_version)

    @property
    def registry(self) -> Registry:
        return self._registry

    async def dispatch_payload(self, session: Session, payload: Any) -> list[JsonRpcResponse]:
        """Dispatch a decoded body, which may be one message or a batch."""
        if isinstance(payload, list):
            if not payload:
                return [create_error_response(None, InvalidRequest("Empty batch"))]
            responses = []
            for message in payload:
                response = await self.dispatch(session, message)
                if response is not None:
                    responses.append(response)
            return responses

        response = await self.dispatch(session, payload)
        return [response] if response is not None else []

    async def dispatch(self, session: Session, message: Any) -> JsonRpcResponse | None:
        """Process one inbound message.

        Returns a response for requests, None for notifications and for
        client responses to server requests (which this server never sends).
        """
        if not isinstance(message, dict):
            return create_error_response(None, InvalidRequest("Message must be a JSON object"))

        if "method" not in message:
            if "result" in message or "error" in message:
                logger.debug(f"Ignoring client response on session {session.session_id}")
                return None
            return create_error_response(
                message.get("id"), InvalidRequest("Missing 'method' field")
            )

        request_id = message.get("id")
        method = message.get("method")
        params = message.get("params")

        if request_id is None:
            await self._handle_notification(session, method)
            return None

        return await self._handle_request(session, request_id, method, params, message)

    async def _handle_notification(self, session: Session, method: Any) -> None:
        if method == Method.INITIALIZED.value:
            session.initialized = True
            logger.debug(f"Session {session.session_id} initialized")
        else:
            logger.debug(f"Ignoring notification {method!r} on session {session.session_id}")

    async def _handle_request(
        self,
        session: Session,
        request_id: Any,
        method: Any,
        params: Any,
        message: dict[str, Any],
    ) -> JsonRpcResponse:
        state = RequestState.RECEIVED
        log_prefix = f"[{session.session_id}] {method} (id={request_id})"
        logger.debug(f"{log_prefix}: {state.value}")

        try:
            if not isinstance(request_id, str | int) or isinstance(request_id, bool):
                raise InvalidRequest("Request id must be a string or integer")
            if message.get("jsonrpc") != "2.0":
                raise InvalidRequest("Unsupported jsonrpc version")
            if not isinstance(method, str):
                raise InvalidRequest("Method must be a string")
            if params is not None and not isinstance(params, dict):
                raise InvalidParams("Params must be an object")

            try:
                resolved = Method(method)
            except ValueError:
                raise MethodNotFound(f"Method not found: {method}") from None

            result = await self._route(session, request_id, resolved, params, log_prefix)
            response = JsonRpcResponse(id=request_id, result=result)

        except ClientError as e:
            logger.info(f"{log_prefix}: rejected ({e.code}): {e.message}")
            response = create_error_response(_safe_id(request_id), e)
        except ProtocolError as e:
            response = create_error_response(_safe_id(request_id), e)
        except Exception as e:
            logger.exception(f"{log_prefix}: unexpected error: {e}")
            response = create_error_response(_safe_id(request_id), HandlerFault())

        state = RequestState.RESPONDED
        logger.debug(f"{log_prefix}: {state.value}")
        return response

    async def _route(
        self,
        session: Session,
        request_id: str | int,
        method: Method,
        params: dict[str, Any] | None,
        log_prefix: str,
    ) -> Any:
        """Validate params for a method, then execute it."""
        match method:
            case Method.INITIALIZE:
                return InitializeResult(
                    protocolVersion=PROTOCOL_VERSION,
                    serverInfo=self._server_info,
                ).model_dump()

            case Method.PING:
                return {}

            case Method.RESOURCES_LIST:
                return {"resources": [r.describe() for r in self._registry.list_resources()]}

            case Method.RESOURCES_TEMPLATES_LIST:
                return {
                    "resourceTemplates": [
                        t.describe() for t in self._registry.list_resource_templates()
                    ]
                }

            case Method.TOOLS_LIST:
                return {"tools": [t.describe() for t in self._registry.list_tools()]}

            case Method.RESOURCES_READ:
                read = _parse_params(ReadResourceParams, params)
                resolved = self._registry.resolve_resource(read.uri)
                if resolved is None:
                    raise ResourceNotFound(
                        f"Resource not found: {read.uri}", data={"uri": read.uri}
                    )
                definition, slot_values = resolved
                logger.debug(f"{log_prefix}: {RequestState.VALIDATED.value}")

                result = await self._execute(
                    log_prefix, lambda: definition.reader(read.uri, slot_values)
                )
                return ReadResourceResult.model_validate(result).model_dump(exclude_none=True)

            case Method.TOOLS_CALL:
                call = _parse_params(CallToolParams, params)
                tool = self._registry.resolve_tool(call.name)
                if tool is None:
                    raise InvalidParams(f"Unknown tool: {call.name}")
                try:
                    arguments = tool.input_model.model_validate(call.arguments)
                except ValidationError as e:
                    raise InvalidParams(
                        f"Invalid arguments for tool {call.name}",
                        data=_validation_summary(e),
                    ) from e
                logger.debug(f"{log_prefix}: {RequestState.VALIDATED.value}")

                context = ToolContext(session_id=session.session_id, request_id=request_id)
                result = await self._execute(log_prefix, lambda: tool.handler(arguments, context))
                return CallToolResult.model_validate(result).model_dump()

            case _:
                # Notification-only methods sent as requests
                raise MethodNotFound(f"Method not found: {method.value}")

    async def _execute(self, log_prefix: str, call: Any) -> Any:
        """Run a handler once, converting unexpected faults."""
        logger.debug(f"{log_prefix}: {RequestState.EXECUTING.value}")
        try:
            return await call()
        except ProtocolError:
            raise
        except Exception as e:
            logger.exception(f"{log_prefix}: handler fault: {e}")
            raise HandlerFault() from e
