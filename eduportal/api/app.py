# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the application factory for the EduPortal API and
the exception handlers that render every failure in the portal envelope
``{"success": false, "error": message}``.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from eduportal import __version__
from eduportal.api.dependencies import close_db, init_db
from eduportal.api.middleware.auth import AuthMiddleware
from eduportal.api.middleware.rate_limit import build_limiter, rate_limit_exceeded_handler
from eduportal.api.routes import health
from eduportal.api.v1 import router as v1_router
from eduportal.core.config import get_settings
from eduportal.core.errors import PortalError
from eduportal.domains.notification import RecipientLockRegistry
from eduportal.infrastructure.database.connection import DatabaseError
from eduportal.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens the database connection pool on startup and closes it on
    shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    logger.info(
        "Starting EduPortal API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    await init_db()
    logger.info("Database connection initialized")

    yield

    try:
        await close_db()
        logger.info("Database connection closed")
    except DatabaseError as e:
        logger.warning("Error closing database connection: %s", str(e))

    logger.info("Shutting down EduPortal API")


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    """Map the portal error taxonomy to status codes."""
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc.original_error,
        )
        return _error_response(exc.status_code, "Internal server error")

    logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)
    return _error_response(exc.status_code, exc.message)


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Answer storage failures raised outside the entity store with 500."""
    logger.error("%s %s database failure: %s", request.method, request.url.path, exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Render malformed requests as 400 in the portal envelope."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return _error_response(status.HTTP_400_BAD_REQUEST, "; ".join(problems) or "Invalid request")


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Render framework HTTP errors (unknown route, wrong method) in the envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="EduPortal API",
        description="Student and parent portal views over the school domain",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.limiter = build_limiter(settings)
    app.state.notification_locks = RecipientLockRegistry()

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================
    app.add_middleware(SlowAPIMiddleware)

    # Auth runs before rate limiting so limits are keyed per caller
    app.add_middleware(AuthMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
