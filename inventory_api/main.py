"""Inventory Manager API - Main Application."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from inventory_api.api.categories import router as categories_router
from inventory_api.api.roles import router as roles_router
from inventory_api.api.users import router as users_router
from inventory_api.domain.interfaces import (
    ConflictError,
    InactiveRoleError,
    NotFoundError,
    StoreUnavailableError,
)
from inventory_api.domain.rbac.patterns import ActionPatternError
from inventory_api.errors import (
    CONFLICT,
    INTERNAL_ERROR,
    NOT_FOUND,
    STORE_UNAVAILABLE,
    VALIDATION_FAILED,
    error_body,
)
from inventory_api.logging_config import LoggingConfig, configure_logging, reset_logging
from inventory_api.observability.tracing import setup_tracing
from inventory_api.routers import health
from inventory_api.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings: Settings = app.state.settings
    logging_handle = configure_logging(LoggingConfig.from_settings(settings))

    if settings.CREATE_SCHEMA_ON_STARTUP:
        from inventory_api.adapters.postgres.models import Base
        from inventory_api.adapters.postgres.session import get_engine
        logger.info("Creating database schema...")
        Base.metadata.create_all(get_engine())

    yield
    # Shutdown
    logger.info("Shutdown complete.")
    reset_logging(logging_handle)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        # Errors raised through raise_api_error already carry a top-level 'error' key
        if isinstance(exc.detail, dict) and "error" in exc.detail:
            content = exc.detail
        else:
            content = {"detail": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(e.get("loc", [])), "msg": e.get("msg")}
            for e in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=error_body(VALIDATION_FAILED, "Request validation failed", {"errors": errors}),
        )

    @app.exception_handler(ActionPatternError)
    async def pattern_exception_handler(request: Request, exc: ActionPatternError):
        return JSONResponse(
            status_code=400,
            content=error_body(VALIDATION_FAILED, str(exc), {"pattern": exc.pattern}),
        )

    @app.exception_handler(InactiveRoleError)
    async def inactive_role_handler(request: Request, exc: InactiveRoleError):
        return JSONResponse(status_code=400, content=error_body(VALIDATION_FAILED, str(exc)))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=error_body(NOT_FOUND, str(exc)))

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return JSONResponse(status_code=409, content=error_body(CONFLICT, str(exc)))

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        logger.error(f"Store unavailable for {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content=error_body(STORE_UNAVAILABLE, "Backing store unavailable"))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error for {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content=error_body(INTERNAL_ERROR, "Internal server error"))


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="Inventory Manager API",
        description="Inventory administration with action-based authorization",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(roles_router.router)
    app.include_router(users_router.router)
    app.include_router(categories_router.router)

    setup_tracing(app, settings)
    return app


app = create_app()
