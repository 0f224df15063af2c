"""
BranchDesk Backend — Response Formatter & Error Path Tests
===========================================================

What:  Tests for responses.py, the exception handler wiring and startup.
How:   Calls the formatter directly; overrides the connection dependency to
       simulate an unreachable store; drives the lifespan with a failing ping.
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from branchdesk.database import get_db_connection
from branchdesk.exceptions import NotFoundError, PersistenceError, StorageConnectionError
from branchdesk.responses import (
    error_envelope,
    send_error,
    send_json,
    send_success,
    success_envelope,
)
from branchdesk.schemas.branch import BranchResponse


class TestFormatter:
    """Tests for the envelope writers."""

    def test_success_envelope_body_and_status(self):
        response = send_success(success_envelope("Branch Updated Successfully"), 200)

        assert response.status_code == 200
        assert response.media_type == "application/json"
        assert response.body == b'{"status":"200","title":"Success","detail":"Branch Updated Successfully"}'

    def test_status_code_not_serialized(self):
        envelope = success_envelope("Branches Successfully Created", 201)

        response = send_success(envelope, 201)

        assert envelope.status_code == 201
        assert b"status_code" not in response.body

    def test_error_envelope_from_exception(self):
        exc = NotFoundError(detail="Branch Not Found", resource_id=3)

        envelope = error_envelope(exc)
        response = send_error(envelope, exc.status_code)

        assert response.status_code == 404
        assert envelope.model_dump() == {"status": "404", "title": "Not Found", "detail": "Branch Not Found"}

    def test_driver_context_not_in_envelope(self):
        exc = PersistenceError(detail="Failed To Update Branch", context={"error": "deadlock on branches"})

        response = send_error(error_envelope(exc), exc.status_code)

        assert b"deadlock" not in response.body

    def test_entities_serialized_unwrapped(self):
        response = send_json([BranchResponse(id=1, name="Downtown", location="5th Ave")])

        assert response.body == b'[{"id":1,"name":"Downtown","location":"5th Ave"}]'

    def test_encoding_failure_falls_back_to_plain_text(self):
        response = send_json({"value": float("nan")}, 200)

        assert response.status_code == 500
        assert response.media_type == "text/plain"
        assert response.body == b"Failed to encode JSON response"


class TestUnreachableStore:
    """A connector failure on a request answers with a 500 envelope."""

    @pytest.mark.asyncio
    async def test_connection_failure_is_500_envelope(self):
        from branchdesk.main import app

        async def failing_connection():
            raise StorageConnectionError(context={"error": "connection refused"})
            yield  # pragma: no cover

        app.dependency_overrides[get_db_connection] = failing_connection
        try:
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/branches/abc")
        finally:
            app.dependency_overrides.clear()

        # Connection is acquired before the id is parsed
        assert response.status_code == 500
        assert response.json() == {
            "status": "500",
            "title": "Internal Server Error",
            "detail": "Failed to connect to the database",
        }


class TestUnexpectedError:
    """Unhandled exceptions answer with the generic 500 envelope."""

    @pytest.mark.asyncio
    async def test_request_id_logged_for_unexpected_error(self, caplog):
        from branchdesk.main import app

        async def broken_connection():
            raise RuntimeError("driver state corrupted")
            yield  # pragma: no cover

        app.dependency_overrides[get_db_connection] = broken_connection
        try:
            # The catch-all handler re-raises after responding
            transport = ASGITransport(app=app, raise_app_exceptions=False)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/branches", headers={"X-Request-ID": "trace-500"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json() == {
            "status": "500",
            "title": "Internal Server Error",
            "detail": "An unexpected error occurred",
        }
        assert "[trace-500] Unexpected error: driver state corrupted" in caplog.text


class TestStartup:
    """Startup aborts when the store cannot be reached."""

    @pytest.mark.asyncio
    async def test_failed_ping_aborts_lifespan(self):
        from branchdesk import main

        with patch.object(main, "ping", AsyncMock(side_effect=StorageConnectionError())), \
             patch.object(main, "dispose_engine", AsyncMock()) as mock_dispose, \
             patch.object(main, "setup_logging"):
            with pytest.raises(StorageConnectionError):
                async with main.lifespan(main.app):
                    pass  # pragma: no cover

        mock_dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_successful_ping_creates_tables_when_enabled(self):
        from branchdesk import main

        with patch.object(main, "ping", AsyncMock()), \
             patch.object(main, "create_tables", AsyncMock()) as mock_create, \
             patch.object(main, "dispose_engine", AsyncMock()) as mock_dispose, \
             patch.object(main, "setup_logging"), \
             patch.object(main.settings, "db_create_tables", True):
            async with main.lifespan(main.app):
                mock_create.assert_awaited_once()

        mock_dispose.assert_awaited_once()
