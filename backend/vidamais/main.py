"""
Vida Mais Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers, routes and the
       lifespan that owns the single storage adapter.
Who:   uvicorn (`uvicorn vidamais.main:app`) or the `vidamais` console script.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────┐ ┌──────────┐ ┌─────────┐  │
    │  │  Req ID  │→│ Logging │→│ Security │→│  CORS   │  │
    │  └──────────┘ └─────────┘ └──────────┘ └─────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  /api/patients  /api/support  /health  /            │
    │                                                     │
    │  Exception Handlers (Result Envelope bodies):       │
    │  Validation→400 │ NotFound→404 │ Storage→500 │ *→500 │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  setup logging → Database.connect() → bootstrap_schema()
              → app.state.database
    Shutdown: Database.disconnect()
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidamais import __version__
from vidamais.config import settings
from vidamais.database import Database
from vidamais.exceptions import (
    ClinicError,
    DuplicateEmailError,
    DuplicatePhoneError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from vidamais.middleware.logging import RequestLoggingMiddleware
from vidamais.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from vidamais.middleware.security_headers import SecurityHeadersMiddleware
from vidamais.routes import health, patients, support
from vidamais.routes.health import ENDPOINTS

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once for the whole application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.db_echo else logging.WARNING
    )
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Own the storage adapter for the lifetime of the process.

    A connection or table-creation failure propagates and aborts startup;
    the server never accepts requests without a usable store.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Vida Mais Backend %s starting up...", __version__)

    database: Optional[Database] = getattr(app.state, "database", None)
    if database is None:
        database = Database(settings.database_url, echo=settings.db_echo)

    await database.connect()
    try:
        await database.bootstrap_schema()
    except StorageError:
        await database.disconnect()
        raise
    app.state.database = database

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Vida Mais Backend shutting down...")
    await database.disconnect()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def _envelope(status_code: int, message: str, errors, data=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "errors": list(errors), "data": data},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions that escape the routes onto Result Envelope responses.

    Handler hierarchy:
        RequestValidationError  → 400 (malformed JSON / body shape)
        HTTPException 404/405   → 404/405 with the list of endpoints
        ValidationError         → 400
        NotFoundError           → 404
        Duplicate*Error         → 400
        StorageError            → 500, generic message, details logged
        ClinicError (base)      → 500
        Exception (fallback)    → 500, stack trace logged

    Internal details never reach the response body.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = _request_id(request)
        errors = exc.errors()
        logger.warning("[%s] Malformed request: %s", rid, errors)
        if any(err.get("type") == "json_invalid" for err in errors):
            return _envelope(400, "Malformed JSON", ["Check the JSON syntax of the request body"])
        messages = [
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
            for err in errors
        ]
        return _envelope(400, "Invalid request", messages or ["Invalid request"])

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _envelope(
                404,
                "Endpoint not found",
                [f"No endpoint for {request.method} {request.url.path}"],
                data={
                    "path": request.url.path,
                    "method": request.method,
                    "available_endpoints": ENDPOINTS,
                },
            )
        return _envelope(
            exc.status_code, str(exc.detail), [str(exc.detail)], headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.message)
        return _envelope(400, exc.message, exc.errors)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _envelope(404, exc.message, [exc.message])

    @app.exception_handler(DuplicateEmailError)
    @app.exception_handler(DuplicatePhoneError)
    async def handle_duplicate(request: Request, exc: ClinicError):
        return _envelope(400, exc.message, [exc.message])

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error(
            "[%s] Storage error: %s | Context: %s", _request_id(request), exc.message, exc.context
        )
        return _envelope(500, GENERIC_ERROR_MESSAGE, ["An unexpected error occurred"])

    @app.exception_handler(ClinicError)
    async def handle_clinic_error(request: Request, exc: ClinicError):
        logger.error(
            "[%s] Application error: %s | Context: %s", _request_id(request), exc.message, exc.context
        )
        return _envelope(500, GENERIC_ERROR_MESSAGE, ["An unexpected error occurred"])

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return _envelope(
            500,
            GENERIC_ERROR_MESSAGE,
            ["An unexpected error occurred"],
            headers={REQUEST_ID_HEADER: rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: adapter to use instead of one built from settings. The
            lifespan still connects it and bootstraps the schema.
    """
    app = FastAPI(
        title="Vida Mais Patient API",
        description=(
            "Patient registration service for the Vida Mais clinic: register, "
            "look up, list and search patients."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database

    # Middleware executes in REVERSE order of addition (last added = outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, "X-Total-Count"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(patients.router)
    app.include_router(support.router)
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn using configured host/port."""
    uvicorn.run(
        "vidamais.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
