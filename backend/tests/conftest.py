"""
BranchDesk Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_connection: AsyncMock standing in for an AsyncConnection
    ├── database: branches table created in a temporary SQLite file, dropped after
    └── test_client: HTTPX AsyncClient talking to the app over ASGITransport
"""

import os
import tempfile

# Settings are read at import time, so the environment is set before any
# branchdesk module is imported.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="branchdesk_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/test.db"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests
os.environ["UNIFY_INVALID_ID_STATUS"] = "false"

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402


class _Mappings(list):
    """Stand-in for RowMapping results: iterable, with first()."""

    def first(self):
        return self[0] if self else None


def _make_result(rows=None, mappings=None, rowcount=1, inserted_primary_key=None):
    """
    Build a MagicMock shaped like a buffered SQLAlchemy CursorResult.

    rows:       returned by result.first() (first item or None)
    mappings:   list of dicts iterated by result.mappings() and returned by .first()
    """
    result = MagicMock()
    rows = rows or []
    result.first.return_value = rows[0] if rows else None

    result.mappings.return_value = _Mappings(mappings or [])

    result.rowcount = rowcount
    result.inserted_primary_key = inserted_primary_key
    return result


@pytest.fixture
def make_result():
    """Factory fixture for mocked CursorResult objects (see _make_result)."""
    return _make_result


@pytest.fixture
def mock_connection():
    """
    Provides a mock async database connection.

    Usage:
        async def test_get(mock_connection):
            mock_connection.execute.return_value = make_result(mappings=[{...}])
            branch = await service.get_branch(mock_connection, "1")
    """
    conn = AsyncMock()
    conn.execute = AsyncMock()
    conn.commit = AsyncMock()
    conn.close = AsyncMock()
    return conn


@pytest_asyncio.fixture
async def database():
    """
    Provides an empty branches table in the temporary SQLite database.

    The engine is disposed afterwards so no pooled connection outlives the
    test's event loop.
    """
    from branchdesk.database import Base, create_tables, dispose_engine, engine

    await create_tables()
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await dispose_engine()


@pytest_asyncio.fixture
async def test_client(database):
    """
    Provides an async HTTP test client for endpoint testing.

    ASGITransport does not run the lifespan, so the startup ping is not
    exercised here; the `database` fixture creates the schema instead.
    """
    from branchdesk.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
