"""
MarkSync Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (uvicorn marksync.main:app) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware Chain:                                   │
    │  CORS → Request ID → Rate Limit → Access Log → GZip  │
    │                                                      │
    │  Routes:                                             │
    │  POST /api/register   POST /api/login                │
    │  POST /api/sync/bookmarks            GET /health     │
    │                                                      │
    │  Exception Handlers:                                 │
    │  Validation→400 │ Store/DB→500 │ Unexpected→500      │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Create the engine / connection pool
    3. Ensure tables exist (retried; failure aborts startup)

    Shutdown:
    1. Dispose the engine (close all pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import make_url

from marksync import __version__
from marksync.config import settings
from marksync.database import create_tables, dispose_engine, init_engine
from marksync.exceptions import DatabaseError, MarkSyncError, ValidationError
from marksync.middleware.logging import RequestLoggingMiddleware
from marksync.middleware.rate_limit import RateLimitMiddleware
from marksync.middleware.request_id import RequestIDMiddleware, request_id_var
from marksync.routes import auth, health, sync

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure root logging once at startup.

    Format: 2024-01-15T12:00:00 [INFO] marksync.services.sync_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, connection pool, table bootstrap.
    Shutdown: dispose the pool.

    A bootstrap failure propagates out of the lifespan and uvicorn exits;
    serving requests without the tables would only produce 500s.
    """
    setup_logging()
    logger.info("MarkSync Backend %s starting up...", __version__)

    engine = init_engine()
    if settings.db_auto_create_tables:
        try:
            await create_tables(engine)
        except Exception as e:
            logger.error("Error creating tables: %s", str(e))
            await dispose_engine()
            raise

    logger.info(
        "Server ready at http://%s:%d (database: %s)",
        settings.backend_host,
        settings.backend_port,
        make_url(settings.database_url).render_as_string(hide_password=True),
    )

    yield

    logger.info("MarkSync Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(error: str, message: str, details=None) -> dict:
    body = {
        "success": False,
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the shared error envelope.

        ValidationError (and subclasses) → 400
        RequestValidationError           → 400 (FastAPI would answer 422)
        DatabaseError (and subclasses)   → 500, generic message
        MarkSyncError (base)             → 500
        Exception (fallback)             → 500, stack trace logged only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        """Client sent invalid input; nothing was changed."""
        logger.warning("[%s] %s: %s", request_id_var.get(""), exc.error_code, exc.message)
        details = {"field": exc.field} if exc.field else None
        return JSONResponse(
            status_code=400,
            content=error_body(exc.error_code, exc.message, details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Body failed schema validation (missing fields, bad email, bad JSON)."""
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": str(err.get("msg", "")).removeprefix("Value error, "),
            }
            for err in exc.errors()
        ]
        message = errors[0]["message"] if len(errors) == 1 else "Invalid request payload"
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), errors)
        return JSONResponse(
            status_code=400,
            content=error_body("validation_error", message, {"errors": errors}),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        """Database failure: generic message to the client, context to the log."""
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=error_body("server_error", "Database error"),
        )

    @app.exception_handler(MarkSyncError)
    async def handle_app_error(request: Request, exc: MarkSyncError):
        logger.error("[%s] Application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=error_body("server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: never leak stack traces to the client."""
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content=error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again later.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Middleware executes in REVERSE order of addition (last added = outermost).
    """
    app = FastAPI(
        title="MarkSync API",
        description=(
            "Account and bookmark sync backend for the MarkSync browser extension. "
            "Register, log in, and replace your stored bookmark list in one atomic call."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)
    # Outermost, so 429s and 500s still carry CORS headers for the extension
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(sync.router)
    app.include_router(health.router)

    return app


app = create_app()
