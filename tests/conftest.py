"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.requests import Request

from cv_email_server.config import ServerConfig
from cv_email_server.resume_store import ResumeStore


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def sample_resume() -> dict[str, Any]:
    return {
        "basics": {
            "name": "Jane Doe",
            "label": "Software Engineer",
            "email": "jane@example.com",
            "location": "Berlin",
        },
        "work": [
            {
                "position": "Engineer",
                "name": "Initech",
                "startDate": "2018-05",
                "endDate": "2021-12",
            },
            {
                "position": "Staff Engineer",
                "name": "Acme Corp",
                "startDate": "2022-01",
            },
        ],
        "projects": [{"name": "Ledger", "description": "Double-entry bookkeeping app"}],
        "skills": [{"name": "Python"}, {"name": "PostgreSQL"}],
    }


@pytest.fixture
def resume_path(tmp_path: Path, sample_resume: dict[str, Any]) -> Path:
    path = tmp_path / "data" / "resume.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(sample_resume), encoding="utf-8")
    return path


@pytest.fixture
def store(resume_path: Path) -> ResumeStore:
    store = ResumeStore(resume_path)
    store.load()
    return store


@pytest.fixture
def mailer() -> MagicMock:
    """Mailer double recording every send."""
    mock = MagicMock()
    mock.send = AsyncMock(return_value="<test-message@example.com>")
    return mock


@pytest.fixture
def config(resume_path: Path) -> ServerConfig:
    return ServerConfig(resume_path=resume_path, keepalive_seconds=0.05)


def _make_request(
    method: str = "POST",
    path: str = "/",
    *,
    body: bytes = b"",
    query: str = "",
    headers: dict[str, str] | None = None,
) -> Request:
    """Build a Starlette request with a fixed body, for calling transports directly."""
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    delivered = False

    async def receive() -> dict[str, Any]:
        nonlocal delivered
        if delivered:
            return {"type": "http.disconnect"}
        delivered = True
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query.encode(),
        "headers": raw_headers,
    }
    return Request(scope, receive)


def _rpc(method: str, params: dict[str, Any] | None = None, request_id: Any = 1) -> dict[str, Any]:
    """Build a JSON-RPC request frame."""
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


@pytest.fixture
def request_factory():
    return _make_request


@pytest.fixture
def rpc():
    return _rpc
