# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Stats aggregator for the portal dashboards.

Courses, attendance and upcoming sessions are summed per subject: a
group shared by two siblings counts twice. Unread notifications are
counted over the union of the caller and their subjects, so a
notification addressed to two siblings counts once.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from eduportal.core.config import PortalSettings, get_settings
from eduportal.domains.attendance.service import AttendanceAggregator
from eduportal.domains.notification.service import NotificationStateManager
from eduportal.domains.relationship.service import CallerContext, RelationshipResolver
from eduportal.domains.schedule.service import ScheduleExpander
from eduportal.infrastructure.database.store import EntityStore
from eduportal.models.stats import StatsView
from eduportal.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class StatsAggregator:
    """Computes dashboard counters for a student or a parent.

    Attributes:
        store: Entity store shared by the underlying aggregators.
        resolver: Relationship resolver for the caller's scope.
        schedule: Schedule expander for upcoming occurrences.
        attendance: Attendance aggregator for record counts.
        notifications: Notification manager for the unread count.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: PortalSettings | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            db: Async database session.
            settings: Portal settings, defaults to the application settings.
        """
        self.store = EntityStore(db)
        self.settings = settings or get_settings().portal
        self.resolver = RelationshipResolver(db, store=self.store)
        self.schedule = ScheduleExpander(db, store=self.store, settings=self.settings)
        self.attendance = AttendanceAggregator(db, store=self.store)
        self.notifications = NotificationStateManager(db, store=self.store)

    async def stats_for(
        self,
        caller: CallerContext | None,
        now: datetime | None = None,
    ) -> StatsView:
        """Compute the dashboard counters of a caller.

        Args:
            caller: Caller handed over by the authentication boundary.
            now: Reference instant for upcoming sessions, defaults to now.

        Returns:
            Counters for the caller's scope.

        Raises:
            UnauthorizedError: If the caller cannot be resolved.
        """
        scope = await self.resolver.scope_for(caller)
        subject_ids = list(scope.subject_ids)

        enrollments = await self.store.enrollments_for_students(subject_ids)
        attendance_counts = await self.attendance.total_for(subject_ids)
        occurrences = await self.schedule.upcoming_for_enrollments(
            enrollments,
            now or utc_now(),
            self.settings.upcoming_horizon_days,
        )
        unread = await self.notifications.unread_count(scope)

        stats = StatsView(
            total_courses=len(enrollments),
            total_attendance=sum(attendance_counts.values()),
            upcoming_sessions=sum(len(occurrence.student_ids) for occurrence in occurrences),
            unread_notifications=unread,
        )
        logger.debug(
            "Stats for %s %s over %d subject(s): %s",
            scope.caller.role.value,
            scope.caller.caller_id,
            len(subject_ids),
            stats.model_dump(),
        )
        return stats
