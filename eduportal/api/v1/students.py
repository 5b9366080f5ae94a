# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student portal endpoints.

This module provides endpoints for students to:
- View and edit their profile
- List their current courses and upcoming sessions
- View their attendance history and summary
- Read and acknowledge notifications
- Get their dashboard counters

Example:
    GET /api/v1/students/stats
    GET /api/v1/students/attendance?startDate=2025-01-01
    PATCH /api/v1/students/notifications/{notification_id}/read
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
    require_student,
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
from eduportal.models.person import PersonProfile, UpdateProfileRequest
from eduportal.models.schedule import UpcomingSessionView
from eduportal.models.stats import StatsView
from eduportal.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile", response_model=ApiResponse[PersonProfile])
async def get_profile(
    caller: CallerContext = Depends(require_student),
    service: PortalService = Depends(get_portal_service),
):
    """Get the student's own profile."""
    return ApiResponse(data=await service.get_profile(caller))


@router.patch("/profile", response_model=ApiResponse[PersonProfile])
async def update_profile(
    request: UpdateProfileRequest,
    caller: CallerContext = Depends(require_student),
    service: PortalService = Depends(get_portal_service),
):
    """Update the student's contact fields."""
    profile = await service.update_profile(caller, request)
    return ApiResponse(data=profile, message="Profile updated")


@router.get("/courses", response_model=ApiResponse[list[CourseView]])
async def get_courses(
    caller: CallerContext = Depends(require_student),
    service: PortalService = Depends(get_portal_service),
):
    """List the student's active courses with timetable and teacher."""
    return ApiResponse(data=await service.courses_for(caller))


@router.get("/attendance", response_model=ApiResponse[list[AttendanceView]])
async def get_attendance(
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    caller: CallerContext = Depends(require_student),
    resolver: RelationshipResolver = Depends(get_resolver),
    aggregator: AttendanceAggregator = Depends(get_attendance_aggregator),
):
    """Get the student's attendance history, newest first.

    Args:
        start_date: Optional first date (inclusive).
        end_date: Optional last date (inclusive).
    """
    scope = await resolver.scope_for(caller)
    date_range = DateRange(start=start_date, end=end_date)
    return ApiResponse(data=await aggregator.attendance_for(scope.subject_ids, date_range))


@router.get("/attendance/summary", response_model=ApiResponse[AttendanceSummary])
async def get_attendance_summary(
    caller: CallerContext = Depends(require_student),
    resolver: RelationshipResolver = Depends(get_resolver),
    aggregator: AttendanceAggregator = Depends(get_attendance_aggregator),
):
    """Get present/absent/late counts of the student."""
    scope = await resolver.scope_for(caller)
    return ApiResponse(data=await aggregator.summary_for(scope.caller.caller_id))


@router.get("/upcoming-sessions", response_model=ApiResponse[list[UpcomingSessionView]])
async def get_upcoming_sessions(
    days: int | None = Query(None, description="Look-ahead in days"),
    caller: CallerContext = Depends(require_student),
    resolver: RelationshipResolver = Depends(get_resolver),
    expander: ScheduleExpander = Depends(get_schedule_expander),
):
    """Get the student's upcoming sessions, soonest first."""
    scope = await resolver.scope_for(caller)
    sessions = await expander.upcoming_for_students(scope.subject_ids, utc_now(), days)
    return ApiResponse(data=[session.to_view() for session in sessions])


@router.get("/notifications", response_model=ApiResponse[list[NotificationView]])
async def get_notifications(
    related_type: RelatedEntityType | None = Query(None, alias="type"),
    unread_only: bool = Query(False, alias="unreadOnly"),
    caller: CallerContext = Depends(require_student),
    resolver: RelationshipResolver = Depends(get_resolver),
    manager: NotificationStateManager = Depends(get_notification_manager),
    settings: PortalSettings = Depends(get_portal_settings),
):
    """List the student's notifications, newest first."""
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
    caller: CallerContext = Depends(require_student),
    resolver: RelationshipResolver = Depends(get_resolver),
    manager: NotificationStateManager = Depends(get_notification_manager),
):
    """Mark one notification as read."""
    scope = await resolver.scope_for(caller)
    result = await manager.mark_read(scope, notification_id)
    return ApiResponse(data=result, message="Notification marked as read")


@router.patch("/notifications/read-all", response_model=ApiResponse[MarkReadResult])
async def mark_all_notifications_read(
    caller: CallerContext = Depends(require_student),
    resolver: RelationshipResolver = Depends(get_resolver),
    manager: NotificationStateManager = Depends(get_notification_manager),
):
    """Mark every notification of the student as read."""
    scope = await resolver.scope_for(caller)
    result = await manager.mark_all_read(scope)
    return ApiResponse(data=result, message="All notifications marked as read")


@router.get("/stats", response_model=ApiResponse[StatsView])
async def get_stats(
    caller: CallerContext = Depends(require_student),
    aggregator: StatsAggregator = Depends(get_stats_aggregator),
):
    """Get the student's dashboard counters."""
    return ApiResponse(data=await aggregator.stats_for(caller))
