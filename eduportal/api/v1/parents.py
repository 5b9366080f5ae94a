# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Parent portal endpoints.

This module provides endpoints for parents to:
- View and edit their profile and list their children
- View attendance, courses, payments and upcoming sessions of all
  children, or drill down into one child
- Read and acknowledge notifications addressed to them or their children
- Get their dashboard counters

A child outside the parent's scope is answered with 404, the same as a
child that does not exist.

Example:
    GET /api/v1/parents/children
    GET /api/v1/parents/children/{child_id}/attendance/summary
    PATCH /api/v1/parents/notifications/read-all
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query

from eduportal.api.dependencies import (
    get_attendance_aggregator,
    get_notification_manager,
    get_portal_service,
    get_portal_settings,
    get_resolver,
    get_schedule_expander,
    get_stats_aggregator,
    require_parent,
)
from eduportal.core.config import PortalSettings
from eduportal.domains.attendance import AttendanceAggregator, DateRange
from eduportal.domains.notification import NotificationStateManager
from eduportal.domains.portal import PortalService
from eduportal.domains.relationship import CallerContext, RelationshipResolver
from eduportal.domains.schedule import ScheduleExpander
from eduportal.domains.stats import StatsAggregator
from eduportal.models.attendance import AttendanceSummary, AttendanceView
from eduportal.models.common import ApiResponse, RelatedEntityType
from eduportal.models.course import CourseView
from eduportal.models.notification import MarkReadResult, NotificationView
from eduportal.models.payment import PaymentView
from eduportal.models.person import ChildSummary, PersonProfile, UpdateProfileRequest
from eduportal.models.schedule import UpcomingSessionView
from eduportal.models.stats import StatsView
from eduportal.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Profile and children
# =============================================================================


@router.get("/profile", response_model=ApiResponse[PersonProfile])
async def get_profile(
    caller: CallerContext = Depends(require_parent),
    service: PortalService = Depends(get_portal_service),
):
    """Get the parent's profile with their linked children."""
    return ApiResponse(data=await service.get_profile(caller))


@router.patch("/profile", response_model=ApiResponse[PersonProfile])
async def update_profile(
    request: UpdateProfileRequest,
    caller: CallerContext = Depends(require_parent),
    service: PortalService = Depends(get_portal_service),
):
    """Update the parent's contact fields."""
    profile = await service.update_profile(caller, request)
    return ApiResponse(data=profile, message="Profile updated")


@router.get("/children", response_model=ApiResponse[list[ChildSummary]])
async def get_children(
    caller: CallerContext = Depends(require_parent),
    service: PortalService = Depends(get_portal_service),
):
    """List the students linked to the parent."""
    return ApiResponse(data=await service.list_children(caller))


# =============================================================================
# Per-child drill-down
# =============================================================================


@router.get(
    "/children/{child_id}/attendance",
    response_model=ApiResponse[list[AttendanceView]],
)
async def get_child_attendance(
    child_id: str,
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    caller: CallerContext = Depends(require_parent),
    resolver: RelationshipResolver = Depends(get_resolver),
    aggregator: AttendanceAggregator = Depends(get_attendance_aggregator),
):
    """Get one child's attendance history, newest first."""
    scope = await resolver.require_subject(caller, child_id)
    date_range = DateRange(start=start_date, end=end_date)
    return ApiResponse(data=await aggregator.attendance_for(scope.subject_ids, date_range))


@router.get(
    "/children/{child_id}/attendance/summary",
    response_model=ApiResponse[AttendanceSummary],
)
async def get_child_attendance_summary(
    child_id: str,
    caller: CallerContext = Depends(require_parent),
    resolver: RelationshipResolver = Depends(get_resolver),
    aggregator: AttendanceAggregator = Depends(get_attendance_aggregator),
):
    """Get present/absent/late counts of one child."""
    await resolver.require_subject(caller, child_id)
    return ApiResponse(data=await aggregator.summary_for(child_id))


@router.get(
    "/children/{child_id}/upcoming-sessions",
    response_model=ApiResponse[list[UpcomingSessionView]],
)
async def get_child_upcoming_sessions(
    child_id: str,
    days: int | None = Query(None, description="Look-ahead in days"),
    caller: CallerContext = Depends(require_parent),
    resolver: RelationshipResolver = Depends(get_resolver),
    expander: ScheduleExpander = Depends(get_schedule_expander),
):
    """Get one child's upcoming sessions, soonest first."""
    scope = await resolver.require_subject(caller, child_id)
    sessions = await expander.upcoming_for_students(scope.subject_ids, utc_now(), days)
    return ApiResponse(data=[session.to_view() for session in sessions])


# =============================================================================
# All children
# =============================================================================


@router.get("/attendance", response_model=ApiResponse[list[AttendanceView]])
async def get_attendance(
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    caller: CallerContext = Depends(require_parent),
    resolver: RelationshipResolver = Depends(get_resolver),
    aggregator: AttendanceAggregator = Depends(get_attendance_aggregator),
):
    """Get the attendance history of every child, newest first."""
    scope = await resolver.scope_for(caller)
    date_range = DateRange(start=start_date, end=end_date)
    return ApiResponse(data=await aggregator.attendance_for(scope.subject_ids, date_range))


@router.get("/courses", response_model=ApiResponse[list[CourseView]])
async def get_courses(
    caller: CallerContext = Depends(require_parent),
    service: PortalService = Depends(get_portal_service),
):
    """List the active courses of every child."""
    return ApiResponse(data=await service.courses_for(caller))


@router.get("/payments", response_model=ApiResponse[list[PaymentView]])
async def get_payments(
    student_id: str | None = Query(None, alias="studentId"),
    caller: CallerContext = Depends(require_parent),
    service: PortalService = Depends(get_portal_service),
):
    """List payments of every child, or of one child, newest first."""
    return ApiResponse(data=await service.payments_for(caller, student_id))


@router.get("/upcoming-sessions", response_model=ApiResponse[list[UpcomingSessionView]])
async def get_upcoming_sessions(
    days: int | None = Query(None, description="Look-ahead in days"),
    caller: CallerContext = Depends(require_parent),
    resolver: RelationshipResolver = Depends(get_resolver),
    expander: ScheduleExpander = Depends(get_schedule_expander),
):
    """Get the upcoming sessions of every child, soonest first."""
    scope = await resolver.scope_for(caller)
    sessions = await expander.upcoming_for_students(scope.subject_ids, utc_now(), days)
    return ApiResponse(data=[session.to_view() for session in sessions])


# =============================================================================
# Notifications and stats
# =============================================================================


@router.get("/notifications", response_model=ApiResponse[list[NotificationView]])
async def get_notifications(
    related_type: RelatedEntityType | None = Query(None, alias="type"),
    unread_only: bool = Query(False, alias="unreadOnly"),
    caller: CallerContext = Depends(require_parent),
    resolver: RelationshipResolver = Depends(get_resolver),
    manager: NotificationStateManager = Depends(get_notification_manager),
    settings: PortalSettings = Depends(get_portal_settings),
):
    """List notifications addressed to the parent or their children."""
    scope = await resolver.scope_for(caller)
    notifications = await manager.list_for(
        scope,
        related_type=related_type.value if related_type else None,
        unread_only=unread_only,
        limit=settings.notification_page_size,
    )
    return ApiResponse(data=notifications)


@router.patch(
    "/notifications/{notification_id}/read",
    response_model=ApiResponse[MarkReadResult],
)
async def mark_notification_read(
    notification_id: str,
    caller: CallerContext = Depends(require_parent),
    resolver: RelationshipResolver = Depends(get_resolver),
    manager: NotificationStateManager = Depends(get_notification_manager),
):
    """Mark one notification as read for the parent and their children."""
    scope = await resolver.scope_for(caller)
    result = await manager.mark_read(scope, notification_id)
    return ApiResponse(data=result, message="Notification marked as read")


@router.patch("/notifications/read-all", response_model=ApiResponse[MarkReadResult])
async def mark_all_notifications_read(
    caller: CallerContext = Depends(require_parent),
    resolver: RelationshipResolver = Depends(get_resolver),
    manager: NotificationStateManager = Depends(get_notification_manager),
):
    """Mark every notification in the parent's scope as read."""
    scope = await resolver.scope_for(caller)
    result = await manager.mark_all_read(scope)
    return ApiResponse(data=result, message="All notifications marked as read")


@router.get("/stats", response_model=ApiResponse[StatsView])
async def get_stats(
    caller: CallerContext = Depends(require_parent),
    aggregator: StatsAggregator = Depends(get_stats_aggregator),
):
    """Get the parent's dashboard counters summed over their children."""
    return ApiResponse(data=await aggregator.stats_for(caller))
