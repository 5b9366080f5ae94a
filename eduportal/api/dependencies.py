# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get a database session per request
- Turn the authenticated user into an explicit CallerContext
- Build the domain services for a request

Example:
    @router.get("/stats")
    async def get_stats(
        caller: CallerContext = Depends(require_parent),
        db: AsyncSession = Depends(get_db),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from eduportal.api.middleware.auth import CurrentUser, get_current_user
from eduportal.core.config import PortalSettings, get_settings
from eduportal.core.errors import UnauthorizedError
from eduportal.domains.attendance import AttendanceAggregator
from eduportal.domains.notification import NotificationStateManager, RecipientLockRegistry
from eduportal.domains.portal import PortalService
from eduportal.domains.relationship import CallerContext, RelationshipResolver
from eduportal.domains.schedule import ScheduleExpander
from eduportal.domains.stats import StatsAggregator
from eduportal.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)
from eduportal.models.common import Role

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Initialize the database connection pool."""
    await init_database(get_settings())


async def close_db() -> None:
    """Close the database connection pool."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the request.

    The session commits when the endpoint returns and rolls back when it
    raises.

    Yields:
        AsyncSession for the entity store.
    """
    async with get_session() as session:
        yield session


def get_portal_settings() -> PortalSettings:
    """Get the portal section of the application settings."""
    return get_settings().portal


def get_lock_registry(request: Request) -> RecipientLockRegistry:
    """Get the application-wide notification lock registry."""
    return request.app.state.notification_locks


# =========================================================================
# Caller Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require an authenticated user.

    Args:
        request: HTTP request.

    Returns:
        CurrentUser.

    Raises:
        UnauthorizedError: If no valid token was presented.
    """
    user = get_current_user(request)
    if not user:
        raise UnauthorizedError("Not authenticated")
    return user


class RequireCaller:
    """Dependency turning the authenticated user into a CallerContext.

    Example:
        @router.get("/children")
        async def children(caller: CallerContext = Depends(RequireCaller(Role.PARENT))):
            ...
    """

    def __init__(self, role: Role) -> None:
        """Initialize caller requirement.

        Args:
            role: Role the endpoint serves.
        """
        self.role = role

    def __call__(self, request: Request) -> CallerContext:
        """Check the role claim and build the caller context.

        Args:
            request: HTTP request.

        Returns:
            CallerContext for the endpoint.

        Raises:
            UnauthorizedError: If unauthenticated or the role does not match.
        """
        user = require_auth(request)
        caller = CallerContext.of(user.id, user.role)
        if caller.role != self.role:
            logger.warning(
                "Caller %s with role %s rejected on %s endpoint",
                caller.caller_id,
                caller.role.value,
                self.role.value,
            )
            raise UnauthorizedError(f"This endpoint is for {self.role.value}s only")
        return caller


require_student = RequireCaller(Role.STUDENT)
require_parent = RequireCaller(Role.PARENT)


# =========================================================================
# Service Dependencies
# =========================================================================


def get_resolver(db: AsyncSession = Depends(get_db)) -> RelationshipResolver:
    return RelationshipResolver(db)


def get_portal_service(db: AsyncSession = Depends(get_db)) -> PortalService:
    return PortalService(db)


def get_attendance_aggregator(db: AsyncSession = Depends(get_db)) -> AttendanceAggregator:
    return AttendanceAggregator(db)


def get_schedule_expander(
    db: AsyncSession = Depends(get_db),
    settings: PortalSettings = Depends(get_portal_settings),
) -> ScheduleExpander:
    return ScheduleExpander(db, settings=settings)


def get_notification_manager(
    db: AsyncSession = Depends(get_db),
    locks: RecipientLockRegistry = Depends(get_lock_registry),
) -> NotificationStateManager:
    return NotificationStateManager(db, locks=locks)


def get_stats_aggregator(
    db: AsyncSession = Depends(get_db),
    settings: PortalSettings = Depends(get_portal_settings),
) -> StatsAggregator:
    return StatsAggregator(db, settings=settings)
