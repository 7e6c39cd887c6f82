"""Resume resources and tools.

Registers on a Registry:
- resume-json  (resume://profile)       full resume as JSON
- resume-work  (resume://work/{index})  one work entry, or "Not found"
- cv_query     ask the CV a question
- send_email   send an email through the configured mailer
"""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel

from .cv_query import answer_question
from .mailer import Mailer, SendEmailRequest, deliver
from .protocol.registry import Registry, ToolContext
from .protocol.types import CallToolResult, ReadResourceResult, ResourceContents, TextContent
from .resume_store import ResumeStore

logger = logging.getLogger(__name__)

PROFILE_URI = "resume://profile"
WORK_URI_TEMPLATE = "resume://work/{index}"
NOT_FOUND_TEXT = "Not found"


class CvQueryInput(BaseModel):
    """Arguments of cv_query."""

    question: str


def _json_text(value: object) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _text_result(text: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(text=text)])


def build_registry(store: ResumeStore, mailer: Mailer) -> Registry:
    """Create the registry serving the resume and the mailer."""
    registry = Registry()

    async def read_profile(uri: str, params: dict[str, str]) -> ReadResourceResult:
        text = _json_text(store.get())
        return ReadResourceResult(
            contents=[ResourceContents(uri=uri, mimeType="application/json", text=text)]
        )

    async def read_work_entry(uri: str, params: dict[str, str]) -> ReadResourceResult:
        work = store.get().get("work")
        entries = work if isinstance(work, list) else []
        # Plain ASCII digits only
        raw = params.get("index", "")
        index = int(raw) if raw.isascii() and raw.isdigit() else -1

        if 0 <= index < len(entries) and entries[index] is not None:
            return ReadResourceResult(
                contents=[
                    ResourceContents(
                        uri=uri, mimeType="application/json", text=_json_text(entries[index])
                    )
                ]
            )
        return ReadResourceResult(
            contents=[ResourceContents(uri=uri, mimeType="text/plain", text=NOT_FOUND_TEXT)]
        )

    async def cv_query(args: CvQueryInput, context: ToolContext) -> CallToolResult:
        return _text_result(answer_question(args.question, store.get()))

    async def send_email(args: SendEmailRequest, context: ToolContext) -> CallToolResult:
        result = await deliver(mailer, args)
        return _text_result(f"Sent: {json.dumps(result, separators=(',', ':'))}")

    registry.register_resource(
        "resume-json",
        PROFILE_URI,
        read_profile,
        title="Resume JSON",
        description="Full resume in JSON",
        mime_type="application/json",
    )
    registry.register_resource_template(
        "resume-work",
        WORK_URI_TEMPLATE,
        read_work_entry,
        title="Work Entry",
        description="A single work experience entry",
        mime_type="application/json",
    )
    registry.register_tool(
        "cv_query",
        CvQueryInput,
        cv_query,
        title="Ask the CV",
        description="Answer simple questions about the resume using keyword search",
    )
    registry.register_tool(
        "send_email",
        SendEmailRequest,
        send_email,
        title="Send Email",
        description="Send an email using configured SMTP credentials",
    )
    return registry
