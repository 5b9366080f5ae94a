# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides middleware for request processing:
- AuthMiddleware: JWT authentication of the caller.
- Rate limiting per caller with slowapi.
"""

from eduportal.api.middleware.auth import AuthMiddleware, CurrentUser, get_current_user
from eduportal.api.middleware.rate_limit import build_limiter, rate_limit_exceeded_handler

__all__ = [
    "AuthMiddleware",
    "CurrentUser",
    "build_limiter",
    "get_current_user",
    "rate_limit_exceeded_handler",
]
