"""Tests for the session table."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from cv_email_server.protocol.errors import ClientError
from cv_email_server.protocol.types import JsonRpcResponse
from cv_email_server.session import Session, SessionTable, TransportKind, generate_session_id


class TestSessionIds:
    def test_ids_are_unique(self):
        ids = {generate_session_id() for _ in range(200)}
        assert len(ids) == 200


class TestGetOrCreate:
    """Test session creation and reuse."""

    @pytest.mark.asyncio
    async def test_creates_session_with_generated_id(self):
        table = SessionTable()

        session, created = await table.get_or_create(TransportKind.STREAMABLE_HTTP)

        assert created is True
        assert session.session_id
        assert session.kind == TransportKind.STREAMABLE_HTTP
        assert session.session_id in table
        assert len(table) == 1

    @pytest.mark.asyncio
    async def test_same_id_reuses_session(self):
        """A second create for a live id returns the same session."""
        table = SessionTable()
        first, _ = await table.get_or_create(TransportKind.STREAMABLE_HTTP)

        second, created = await table.get_or_create(
            TransportKind.STREAMABLE_HTTP, first.session_id
        )

        assert created is False
        assert second is first
        assert len(table) == 1

    @pytest.mark.asyncio
    async def test_client_supplied_id_is_adopted(self):
        table = SessionTable()

        session, created = await table.get_or_create(TransportKind.STREAMABLE_HTTP, "abc")

        assert created is True
        assert session.session_id == "abc"

    @pytest.mark.asyncio
    async def test_id_of_other_transport_is_rejected(self):
        table = SessionTable()
        sse_session, _ = await table.get_or_create(TransportKind.SSE)

        with pytest.raises(ClientError):
            await table.get_or_create(TransportKind.STREAMABLE_HTTP, sse_session.session_id)

    @pytest.mark.asyncio
    async def test_concurrent_creates_for_one_id_yield_one_session(self):
        table = SessionTable()

        results = await asyncio.gather(
            *(table.get_or_create(TransportKind.STREAMABLE_HTTP, "shared") for _ in range(10))
        )

        sessions = {id(session) for session, _ in results}
        assert len(sessions) == 1
        assert sum(created for _, created in results) == 1


class TestRemove:
    """Test session removal and close semantics."""

    @pytest.mark.asyncio
    async def test_remove_closes_and_forgets(self):
        table = SessionTable()
        session, _ = await table.get_or_create(TransportKind.SSE)

        removed = await table.remove(session.session_id)

        assert removed is True
        assert session.alive is False
        assert await table.get(session.session_id) is None

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self):
        table = SessionTable()
        session, _ = await table.get_or_create(TransportKind.SSE)
        callback = AsyncMock()
        session.on_close(callback)

        assert await table.remove(session.session_id) is True
        assert await table.remove(session.session_id) is False
        callback.assert_awaited_once_with(session)

    @pytest.mark.asyncio
    async def test_close_wakes_stream_with_end_marker(self):
        table = SessionTable()
        session, _ = await table.get_or_create(TransportKind.SSE)

        await table.remove(session.session_id)

        assert session.outbox.get_nowait() is None

    @pytest.mark.asyncio
    async def test_failing_close_callback_does_not_block_others(self):
        session = Session(session_id="s1", kind=TransportKind.SSE)
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        other = AsyncMock()
        session.on_close(failing)
        session.on_close(other)

        await session.close()

        other.assert_awaited_once_with(session)

    @pytest.mark.asyncio
    async def test_on_close_after_close_raises(self):
        session = Session(session_id="s1", kind=TransportKind.SSE)
        await session.close()

        with pytest.raises(RuntimeError):
            session.on_close(AsyncMock())

    @pytest.mark.asyncio
    async def test_close_all(self):
        table = SessionTable()
        for _ in range(3):
            await table.get_or_create(TransportKind.STREAMABLE_HTTP)

        assert await table.close_all() == 3
        assert len(table) == 0


class TestPush:
    @pytest.mark.asyncio
    async def test_push_to_closed_session_is_dropped(self):
        session = Session(session_id="s1", kind=TransportKind.SSE)
        await session.close()
        session.outbox.get_nowait()

        delivered = await session.push(JsonRpcResponse(id=1, result={}))

        assert delivered is False
        assert session.outbox.empty()
