# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance aggregator.

This module provides the AttendanceAggregator class for:
- Attendance history enriched with group and session metadata
- Per-student present/absent/late summaries

History is always newest first. Records of archived groups are kept and
flagged through the group status.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from eduportal.core.errors import ValidationError
from eduportal.infrastructure.database.models import AttendanceRecord
from eduportal.infrastructure.database.store import EntityStore
from eduportal.models.attendance import (
    AttendanceGroupInfo,
    AttendanceSessionInfo,
    AttendanceSummary,
    AttendanceView,
)
from eduportal.models.common import AttendanceStatus
from eduportal.utils.datetime import format_clock_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateRange:
    """Inclusive date window; either end may be open.

    Raises:
        ValidationError: If ``start`` is after ``end``.
    """

    start: date | None = None
    end: date | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValidationError(
                f"Invalid date range: start {self.start} is after end {self.end}"
            )

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


def _to_view(record: AttendanceRecord) -> AttendanceView:
    session = record.session
    group = session.group
    return AttendanceView(
        id=record.id,
        student_id=record.student_id,
        student_name=record.student.full_name,
        date=record.date,
        status=record.status,
        group=AttendanceGroupInfo(
            id=group.id,
            name=group.name,
            subject=group.subject,
            status=group.status,
        ),
        session=AttendanceSessionInfo(
            id=session.id,
            date=session.session_date,
            start_time=format_clock_time(session.start_time),
            end_time=format_clock_time(session.end_time),
            room=session.effective_room,
        ),
    )


class AttendanceAggregator:
    """Builds attendance views over a set of subjects.

    Attributes:
        store: Entity store used for attendance lookups.
    """

    def __init__(self, db: AsyncSession, store: EntityStore | None = None) -> None:
        """Initialize the aggregator.

        Args:
            db: Async database session.
            store: Optional pre-built entity store sharing the session.
        """
        self.store = store or EntityStore(db)

    async def attendance_for(
        self,
        subject_ids: Collection[str],
        date_range: DateRange | None = None,
    ) -> list[AttendanceView]:
        """Get the enriched attendance history of several students.

        Args:
            subject_ids: Students whose records are returned.
            date_range: Optional inclusive window on the record date.

        Returns:
            Records ordered by date descending, then session start
            descending.
        """
        date_range = date_range or DateRange()
        records = await self.store.attendance_for_students(
            subject_ids,
            start=date_range.start,
            end=date_range.end,
        )
        records = sorted(
            records,
            key=lambda record: (record.date, record.session.start_time),
            reverse=True,
        )
        return [_to_view(record) for record in records]

    async def summary_for(self, subject_id: str) -> AttendanceSummary:
        """Count present, absent and late records of one student.

        Args:
            subject_id: Student to summarise.

        Returns:
            Unweighted per-status counts.
        """
        counts = {status: 0 for status in AttendanceStatus}
        for raw_status in await self.store.attendance_statuses(subject_id):
            try:
                counts[AttendanceStatus(raw_status)] += 1
            except ValueError:
                logger.warning(
                    "Ignoring unknown attendance status %r for student %s",
                    raw_status,
                    subject_id,
                )
        return AttendanceSummary(
            student_id=str(subject_id),
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
        )

    async def total_for(self, subject_ids: Collection[str]) -> dict[str, int]:
        """Count every attendance record per student, whatever its status."""
        counts = await self.store.attendance_counts(subject_ids)
        return {str(subject_id): counts.get(str(subject_id), 0) for subject_id in subject_ids}
