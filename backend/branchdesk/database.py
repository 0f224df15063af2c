"""
BranchDesk Backend — Storage Connector
=======================================

What:  Async SQLAlchemy engine, declarative base, and the per-request
       connection dependency.
How:   One engine (and its connection pool) lives for the whole process.
       Every request checks out its own connection, pings it, owns it for the
       duration of the request and returns it to the pool on every exit path.
Who:   Used by route handlers via FastAPI's dependency injection system, by the
       startup sequence and by the health probe.
When:  Engine is created at module import; connections are acquired per-request.

Connection Pooling Strategy:
    pool_size / max_overflow:  configured through settings
    pool_pre_ping:             validates pooled connections on checkout
    pool_recycle=3600:         recycles connections every hour

    On top of pre-ping, acquire() issues an explicit `SELECT 1` so a handler
    is never given a connection that has not completed a round-trip.

Statements are committed one at a time by the caller (see BranchService);
no request wraps several writes in one transaction.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from branchdesk.config import settings
from branchdesk.exceptions import StorageConnectionError

logger = logging.getLogger(__name__)


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=3600,
    # Echo SQL only when debugging
    echo=settings.log_level == "DEBUG",
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


# ── Scoped Acquisition ────────────────────────────────────────────────────
@asynccontextmanager
async def acquire() -> AsyncIterator[AsyncConnection]:
    """
    Check out a live connection for exactly one unit of work.

    How it works:
        1. Checks a connection out of the engine's pool
        2. Sends `SELECT 1` to prove the store answers
        3. Yields the connection to the caller
        4. Always: closes it (rolls back anything uncommitted, returns it to the pool)

    Raises:
        StorageConnectionError: checkout or ping failed. The underlying driver
        error is kept in the exception context for logging.
    """
    try:
        conn = await engine.connect()
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Failed to connect to the database: %s", exc)
        raise StorageConnectionError(context={"error": str(exc)}) from exc

    try:
        try:
            await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Database ping failed: %s", exc)
            raise StorageConnectionError(context={"error": str(exc)}) from exc
        yield conn
    finally:
        await conn.close()


async def get_db_connection() -> AsyncGenerator[AsyncConnection, None]:
    """
    FastAPI dependency that provides a database connection per request.

    Example usage in a route:
        @router.get("/branches")
        async def list_branches(conn: AsyncConnection = Depends(get_db_connection)):
            ...

    Raises:
        StorageConnectionError: mapped to a 500 envelope by the exception handler.
    """
    async with acquire() as conn:
        yield conn


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def ping() -> None:
    """
    Verify the store is reachable, then release the connection.

    Used by the startup sequence (failure aborts the process) and by GET /health.
    """
    async with acquire():
        pass


async def create_tables() -> None:
    """
    Create every table registered on Base.metadata that does not exist yet.

    When:  At startup if settings.db_create_tables is set, and in the test suite.
    """
    # Registers the branches table on Base.metadata
    from branchdesk.models import branch  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close all pooled connections. Called during application shutdown."""
    await engine.dispose()
