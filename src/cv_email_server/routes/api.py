"""REST endpoints that bypass the protocol.

- POST /api/send-email     {recipient, subject, body}
- POST /api/upload-resume  whole resume object, replaces the stored one

Both call the same capabilities as the protocol tools.
"""

import logging
from typing import Any

from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..mailer import SendEmailRequest, deliver
from ..protocol.errors import ClientError
from ..resume_store import ResumePersistError
from ..transport.base import read_json_body

logger = logging.getLogger(__name__)

EMAIL_FIELDS_REQUIRED = "recipient, subject, body required"


async def _read_body(request: Request) -> Any:
    return await read_json_body(request, request.app.state.config.max_body_bytes)


async def send_email(request: Request) -> JSONResponse:
    """Send an email through the configured mailer."""
    try:
        payload = await _read_body(request)
    except ClientError as e:
        return JSONResponse({"error": e.message}, status_code=e.http_status)

    if not isinstance(payload, dict):
        return JSONResponse({"error": EMAIL_FIELDS_REQUIRED}, status_code=400)

    try:
        req = SendEmailRequest.model_validate(payload)
    except ValidationError as e:
        details = [
            {"field": ".".join(str(p) for p in item["loc"]), "message": item["msg"]}
            for item in e.errors()
        ]
        return JSONResponse({"error": EMAIL_FIELDS_REQUIRED, "details": details}, status_code=400)

    try:
        result = await deliver(request.app.state.mailer, req)
    except Exception as e:
        logger.exception(f"Email delivery failed: {e}")
        return JSONResponse({"ok": False, "error": "send failed"}, status_code=500)

    return JSONResponse({"ok": True, "result": result})


async def upload_resume(request: Request) -> JSONResponse:
    """Replace the stored resume."""
    try:
        payload = await _read_body(request)
    except ClientError as e:
        return JSONResponse({"error": e.message}, status_code=e.http_status)

    if not isinstance(payload, dict):
        return JSONResponse({"error": "Expecting JSON resume"}, status_code=400)

    try:
        await request.app.state.store.replace(payload)
    except ResumePersistError as e:
        logger.exception(f"Resume upload failed: {e}")
        return JSONResponse({"ok": False, "error": "persist failed"}, status_code=500)

    return JSONResponse({"ok": True})


api_routes = [
    Route("/api/send-email", send_email, methods=["POST"]),
    Route("/api/upload-resume", upload_resume, methods=["POST"]),
]
