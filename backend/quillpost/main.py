"""
Quillpost Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn quillpost.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐        │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │        │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘        │
    │                                                     │
    │  Routes:                                            │
    │  ┌────────────┐ ┌────────────┐ ┌─────────────┐      │
    │  │ /api/blogs │ │ /api/posts │ │ GET /health │      │
    │  └────────────┘ └────────────┘ └─────────────┘      │
    │                                                     │
    │  Exception Handlers (problem+json):                 │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ NotFound→404 │ Search→503   │   │
    │  │ Database→500   │ Unexpected→500              │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Create missing search indexes (failures logged, startup continues)
    3. Start the index outbox worker (outbox mode only)

    Shutdown:
    1. Drain and stop the outbox worker
    2. Close the search client
    3. Dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quillpost import __version__
from quillpost.config import settings
from quillpost.database import dispose_engine
from quillpost.exceptions import (
    BadRequestAlertError,
    DatabaseError,
    NotFoundError,
    QuillpostError,
    SearchIndexError,
    ValidationError,
)
from quillpost.middleware.logging import RequestLoggingMiddleware
from quillpost.middleware.request_id import RequestIDMiddleware, request_id_var
from quillpost.routes import blogs, health, posts
from quillpost.search.elasticsearch_backend import search_backend
from quillpost.search.repositories import BlogSearchRepository, PostSearchRepository
from quillpost.services.index_sync import index_synchronizer

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: 2024-01-15T12:00:00 [INFO] quillpost.services.entity_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("elastic_transport").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Quillpost Backend %s starting up (search sync: %s)", __version__, settings.search_sync_mode)

    for repository in (BlogSearchRepository(search_backend), PostSearchRepository(search_backend)):
        try:
            await repository.ensure_index()
        except SearchIndexError as e:
            # The API still serves the primary store; _search answers 503 until fixed
            logger.error("Could not prepare search index %s: %s", repository.index, e.message)

    index_synchronizer.start()
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Quillpost Backend shutting down...")
    await index_synchronizer.stop()
    await search_backend.close()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def problem_response(
    status: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Uniform error body: {error, message, status, details, request_id}."""
    return JSONResponse(
        status_code=status,
        content={
            "error": error,
            "message": message,
            "status": status,
            "details": details,
            "request_id": request_id_var.get(""),
        },
        headers=headers,
        media_type=PROBLEM_JSON,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Handler hierarchy:
        BadRequestAlertError   → 400 (+ X-Quillpost-Error / X-Quillpost-Params)
        ValidationError        → 400
        RequestValidationError → 400 (malformed body, query or path)
        NotFoundError          → 404
        SearchIndexError       → 503
        DatabaseError          → 500 (generic message)
        QuillpostError (base)  → 500
        HTTPException          → its own status (405, unknown routes)
        Exception (fallback)   → 500
    """

    @app.exception_handler(BadRequestAlertError)
    async def handle_bad_request_alert(request: Request, exc: BadRequestAlertError):
        logger.warning("[%s] Rejected %s request: %s", request_id_var.get(""), exc.entity_name, exc.error_key)
        return problem_response(
            400,
            "validation_error",
            exc.message,
            details=exc.context,
            headers={
                "X-Quillpost-Error": f"error.{exc.error_key}",
                "X-Quillpost-Params": exc.entity_name,
            },
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return problem_response(400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Invalid request: %s", request_id_var.get(""), errors)
        return problem_response(
            400,
            "validation_error",
            "Request validation failed",
            details={"fields": errors},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return problem_response(404, "not_found", exc.message, details=exc.context)

    @app.exception_handler(SearchIndexError)
    async def handle_search_index_error(request: Request, exc: SearchIndexError):
        logger.error("[%s] Search index error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return problem_response(503, "search_index_error", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return problem_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(QuillpostError)
    async def handle_quillpost_error(request: Request, exc: QuillpostError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return problem_response(500, "server_error", exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return problem_response(
            exc.status_code,
            "http_error",
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return problem_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers."""
    app = FastAPI(
        title="Quillpost API",
        description=(
            "Blog and post management with a relational primary store and a "
            "full-text search index kept in step on every write."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
            "Link",
            "Location",
            "X-Quillpost-Alert",
            "X-Quillpost-Error",
            "X-Quillpost-Params",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(blogs.router)
    app.include_router(posts.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
