"""
BranchDesk Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance;
       run() starts uvicorn on the configured host and port.
Who:   Called by uvicorn (uvicorn branchdesk.main:app) or the `branchdesk`
       console script.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐                   │
    │  │ Req ID   │→│  Access logging │                   │
    │  └──────────┘ └─────────────────┘                   │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────────────────┐ ┌─────────────┐   │
    │  │ GET/POST /branches           │ │ GET /health │   │
    │  │ GET/PUT/DELETE /branches/{id}│ └─────────────┘   │
    │  └──────────────────────────────┘                   │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ BranchDeskError → envelope with its status   │   │
    │  │ Exception → generic 500 envelope             │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Ping the store; on failure log and abort startup (process exits)
    3. Create tables if DB_CREATE_TABLES is set

    Shutdown:
    1. Dispose database engine (close all pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request

from branchdesk import __version__
from branchdesk.config import settings
from branchdesk.database import create_tables, dispose_engine, ping
from branchdesk.exceptions import BranchDeskError, StorageConnectionError
from branchdesk.middleware.logging import RequestLoggingMiddleware
from branchdesk.middleware.request_id import RequestIDMiddleware
from branchdesk.responses import error_envelope, send_error
from branchdesk.routes import branches, health

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, store connectivity check, optional table creation.
    Shutdown: engine disposal.

    A failed connectivity check re-raises StorageConnectionError; uvicorn
    then reports "Application startup failed" and the process exits.
    """
    setup_logging()
    logger.info("BranchDesk %s starting up...", __version__)

    try:
        await ping()
    except StorageConnectionError as e:
        logger.critical("Failed connecting to Database: %s", e.context.get("error", e.detail))
        await dispose_engine()
        raise

    if settings.db_create_tables:
        await create_tables()
        logger.info("Ensured branches table exists")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("BranchDesk shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside RequestIDMiddleware, after the
    # ContextVar is reset; request.state lives in the shared ASGI scope.
    return getattr(request.state, "request_id", "")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions raised by the branch pipelines to error envelopes.

    Handler hierarchy:
        BranchDeskError         → envelope with the exception's status/title/detail
        Exception (fallback)    → 500 generic envelope

    Details are logged server-side only; the envelope carries the generic detail.
    """

    @app.exception_handler(BranchDeskError)
    async def handle_branchdesk_error(request: Request, exc: BranchDeskError):
        rid = _request_id(request)
        if exc.status_code >= 500:
            logger.error("[%s] %s | Context: %s", rid, exc.detail, exc.context)
        else:
            logger.warning("[%s] %s %s: %s", rid, exc.status_code, exc.title, exc.detail)
        return send_error(error_envelope(exc), exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        err = BranchDeskError(detail="An unexpected error occurred")
        return send_error(error_envelope(err), err.status_code)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="BranchDesk API",
        description="CRUD service for branch locations (id, name, location).",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID runs first, then access logging.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(branches.router)
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve `app` with uvicorn on the configured address."""
    import uvicorn

    uvicorn.run(
        "branchdesk.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
