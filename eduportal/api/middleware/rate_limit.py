# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Limits are applied per caller: the authenticated person id when a valid
token was presented, the client IP address otherwise.

Example:
    app.state.limiter = build_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from eduportal.core.config.settings import Settings

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """Get a unique identifier for the client.

    Args:
        request: HTTP request.

    Returns:
        ``user:<id>`` for authenticated callers, ``ip:<address>`` otherwise.
    """
    user = getattr(request.state, "user", None)
    if user:
        return f"user:{user.id}"
    return f"ip:{get_remote_address(request)}"


def build_limiter(settings: Settings) -> Limiter:
    """Create the limiter applied to every route by default.

    Args:
        settings: Application settings.

    Returns:
        Configured slowapi Limiter.
    """
    return Limiter(
        key_func=get_client_identifier,
        default_limits=[f"{settings.rate_limit.requests_per_minute}/minute"],
        storage_uri=settings.rate_limit.storage_uri,
        enabled=settings.rate_limit.enabled,
    )


async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded,
) -> JSONResponse:
    """Answer 429 in the portal response envelope.

    Args:
        request: HTTP request.
        exc: Rate limit exceeded exception.

    Returns:
        JSON response with error details.
    """
    logger.warning(
        "Rate limit exceeded: %s for %s",
        exc.detail,
        get_client_identifier(request),
    )
    return JSONResponse(
        status_code=429,
        content={"success": False, "error": "Too many requests. Please try again later."},
        headers={"Retry-After": "60"},
    )
