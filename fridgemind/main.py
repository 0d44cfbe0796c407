"""
FridgeMind API — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers;
       uvicorn serves the module-level `app` (uvicorn fridgemind.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Logging → GZip → CORS         │
    │                                                          │
    │  Routes:                                                 │
    │   /api/scan   /api/eating-out   /api/receipts            │
    │   /api/fatsecret/*   /api/shopping-list/*                │
    │   /storage/meal-photos/*   /health                       │
    │                                                          │
    │  Exception Handlers:                                     │
    │   400 validation   401 auth   404 not found              │
    │   503 not configured / circuit open   500 everything else│
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config validation (logged, not fatal) → storage dir
    Shutdown: close the FatSecret and auth HTTP clients → dispose the engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from fridgemind import __version__
from fridgemind.config import settings
from fridgemind.database import dispose_engine
from fridgemind.exceptions import (
    AuthenticationError,
    CircuitBreakerOpenError,
    DatabaseError,
    FridgeMindError,
    NotFoundError,
    ServiceNotConfiguredError,
    UpstreamServiceError,
    ValidationError,
)
from fridgemind.middleware.logging import RequestLoggingMiddleware
from fridgemind.middleware.request_id import RequestIDMiddleware, request_id_var
from fridgemind.routes import (
    eating_out,
    fatsecret,
    health,
    receipts,
    scan,
    shopping_list,
    storage,
)
from fridgemind.services.auth_service import auth_service
from fridgemind.services.fatsecret_client import fatsecret_client

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, at startup.

    Format: 2024-01-15T12:00:00 [INFO] fridgemind.services.receipt_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every connection and statement at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("FridgeMind API %s starting up...", __version__)

    # Missing keys are reported but do not stop the server; /health and the
    # 401/503 responses make the problem visible to operators
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    if not settings.fatsecret_configured:
        logger.warning("FatSecret credentials missing; /api/fatsecret/* will return 503")

    storage_root = Path(settings.storage_root)
    storage_root.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage_root.resolve())
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("FridgeMind API shutting down...")
    await fatsecret_client.aclose()
    await auth_service.aclose()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request_id_var.get("")


def error_response(
    request: Request,
    status_code: int,
    message: str,
    code: str,
    details: Optional[dict] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build the `{"error", "code", "details"?, "request_id"}` body used by every error."""
    content = {"error": message, "code": code, "request_id": _request_id(request)}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP responses.

        ValidationError, RequestValidationError → 400
        AuthenticationError                     → 401 "Unauthorized"
        NotFoundError                           → 404
        ServiceNotConfiguredError               → 503
        CircuitBreakerOpenError                 → 503 + Retry-After
        UpstreamServiceError (AI, FatSecret)    → 500
        DatabaseError                           → 500
        anything else                           → 500 "Internal server error"

    Context (SQL errors, upstream bodies, raw model output) is logged and
    never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.message)
        return error_response(request, 400, exc.message, exc.code, details=exc.context or None)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        logger.warning("[%s] Malformed request: %s", _request_id(request), errors)
        return error_response(
            request, 400, "Invalid request", "validation_error", details={"errors": errors}
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        logger.info("[%s] Unauthorized: %s", _request_id(request), exc.context.get("reason"))
        return error_response(request, 401, exc.message, exc.code)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(request, 404, exc.message, exc.code)

    @app.exception_handler(ServiceNotConfiguredError)
    async def handle_not_configured(request: Request, exc: ServiceNotConfiguredError):
        logger.error("[%s] %s", _request_id(request), exc.message)
        return error_response(request, 503, exc.message, exc.code)

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", _request_id(request), exc.message)
        return error_response(
            request,
            503,
            exc.message,
            exc.code,
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(UpstreamServiceError)
    async def handle_upstream_error(request: Request, exc: UpstreamServiceError):
        logger.error(
            "[%s] %s (%s) | Context: %s",
            _request_id(request),
            exc.message,
            type(exc).__name__,
            exc.context,
        )
        return error_response(request, 500, exc.message, exc.code)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", _request_id(request), exc.message, exc.context)
        return error_response(request, 500, exc.message, exc.code)

    @app.exception_handler(FridgeMindError)
    async def handle_app_error(request: Request, exc: FridgeMindError):
        logger.error("[%s] %s | Context: %s", _request_id(request), exc.message, exc.context)
        return error_response(request, 500, exc.message, exc.code)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", _request_id(request), str(exc), exc_info=True)
        return error_response(request, 500, "Internal server error", "internal_server_error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="FridgeMind API",
        description=(
            "Food tracking backend: fridge scans, eating-out logs, receipt parsing, "
            "nutrition lookup and shopping lists."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(scan.router)
    app.include_router(eating_out.router)
    app.include_router(receipts.router)
    app.include_router(fatsecret.router)
    app.include_router(shopping_list.router)
    app.include_router(storage.router)
    app.include_router(health.router)

    return app


app = create_app()
