# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Entity store: typed, batched queries over the portal tables.

Every read that fans out over several subjects takes the full id
collection and issues one ``IN`` query, so the number of round trips does
not grow with the number of linked students.

SQLAlchemy failures are wrapped in ``InternalError`` so callers see the
portal error taxonomy only.

Example:
    store = EntityStore(db)
    students = await store.students_of_parent(parent_id)
    records = await store.attendance_for_students([s.id for s in students])
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from datetime import date, datetime
from typing import Any

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from eduportal.core.errors import InternalError
from eduportal.infrastructure.database.models import (
    AttendanceRecord,
    Group,
    GroupStudent,
    Notification,
    NotificationRecipient,
    ParentStudentRelation,
    Payment,
    Person,
    Session,
)
from eduportal.models.common import GroupStatus

logger = logging.getLogger(__name__)


class EntityStore:
    """Read/transform access to people, courses, attendance and notifications.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the entity store.

        Args:
            db: Async database session.
        """
        self.db = db

    async def _scalars(self, query: Select) -> list[Any]:
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Entity store query failed: %s", e)
            raise InternalError("Entity store query failed", original_error=e) from e
        return list(result.scalars().all())

    async def _execute(self, statement: Any) -> Any:
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as e:
            logger.error("Entity store statement failed: %s", e)
            raise InternalError("Entity store statement failed", original_error=e) from e

    async def commit(self) -> None:
        """Commit the current transaction."""
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise InternalError("Failed to commit changes", original_error=e) from e

    # =========================================================================
    # People
    # =========================================================================

    async def get_person(self, person_id: str) -> Person | None:
        """Get a person by id."""
        rows = await self._scalars(select(Person).where(Person.id == str(person_id)))
        return rows[0] if rows else None

    async def get_people(self, person_ids: Collection[str]) -> dict[str, Person]:
        """Get several people keyed by id."""
        if not person_ids:
            return {}
        rows = await self._scalars(select(Person).where(Person.id.in_(list(person_ids))))
        return {person.id: person for person in rows}

    async def students_of_parent(self, parent_id: str) -> list[Person]:
        """Get every student linked to a parent, ordered by name."""
        query = (
            select(Person)
            .join(ParentStudentRelation, ParentStudentRelation.student_id == Person.id)
            .where(ParentStudentRelation.parent_id == str(parent_id))
            .order_by(Person.name, Person.surname, Person.id)
        )
        return await self._scalars(query)

    async def update_person(self, person: Person, changes: dict[str, Any]) -> Person:
        """Apply field changes to a person and flush them."""
        for field, value in changes.items():
            setattr(person, field, value)
        try:
            await self.db.flush()
            await self.db.refresh(person)
        except SQLAlchemyError as e:
            raise InternalError("Failed to update person", original_error=e) from e
        return person

    # =========================================================================
    # Courses and sessions
    # =========================================================================

    async def enrollments_for_students(
        self,
        student_ids: Collection[str],
        include_archived: bool = False,
    ) -> list[GroupStudent]:
        """Get enrollments (with group and teacher loaded) for many students."""
        if not student_ids:
            return []
        query = (
            select(GroupStudent)
            .join(Group, Group.id == GroupStudent.group_id)
            .options(
                selectinload(GroupStudent.group).selectinload(Group.teacher),
                selectinload(GroupStudent.student),
            )
            .where(GroupStudent.student_id.in_(list(student_ids)))
            .order_by(Group.name, Group.id, GroupStudent.student_id)
        )
        if not include_archived:
            query = query.where(Group.status == GroupStatus.ACTIVE.value)
        return await self._scalars(query)

    async def get_groups(self, group_ids: Collection[str]) -> list[Group]:
        """Get groups by id."""
        if not group_ids:
            return []
        query = select(Group).where(Group.id.in_(list(group_ids))).order_by(Group.id)
        return await self._scalars(query)

    async def session_overrides_for_groups(
        self,
        group_ids: Collection[str],
        start: date,
        end: date,
    ) -> list[Session]:
        """Get persisted sessions of several groups within an inclusive date window."""
        if not group_ids:
            return []
        query = select(Session).where(
            Session.group_id.in_(list(group_ids)),
            Session.session_date >= start,
            Session.session_date <= end,
        )
        return await self._scalars(query)

    async def session_overrides_for_group(
        self,
        group_id: str,
        start: date,
        end: date,
    ) -> list[Session]:
        """Get persisted sessions of one group within an inclusive date window."""
        return await self.session_overrides_for_groups([group_id], start, end)

    # =========================================================================
    # Attendance
    # =========================================================================

    async def attendance_for_students(
        self,
        student_ids: Collection[str],
        start: date | None = None,
        end: date | None = None,
    ) -> list[AttendanceRecord]:
        """Get attendance rows for many students, newest first.

        Session, group and student are eagerly loaded so the rows can be
        enriched without further queries.
        """
        if not student_ids:
            return []
        query = (
            select(AttendanceRecord)
            .join(Session, Session.id == AttendanceRecord.session_id)
            .options(
                selectinload(AttendanceRecord.session).selectinload(Session.group),
                selectinload(AttendanceRecord.student),
            )
            .where(AttendanceRecord.student_id.in_(list(student_ids)))
            .order_by(
                AttendanceRecord.date.desc(),
                Session.start_time.desc(),
                AttendanceRecord.id,
            )
        )
        if start is not None:
            query = query.where(AttendanceRecord.date >= start)
        if end is not None:
            query = query.where(AttendanceRecord.date <= end)
        return await self._scalars(query)

    async def attendance_statuses(self, student_id: str) -> list[str]:
        """Get the raw status of every attendance row of one student."""
        query = select(AttendanceRecord.status).where(AttendanceRecord.student_id == str(student_id))
        return await self._scalars(query)

    async def attendance_counts(self, student_ids: Collection[str]) -> dict[str, int]:
        """Count attendance rows per student in a single grouped query."""
        if not student_ids:
            return {}
        query = (
            select(AttendanceRecord.student_id, func.count(AttendanceRecord.id))
            .where(AttendanceRecord.student_id.in_(list(student_ids)))
            .group_by(AttendanceRecord.student_id)
        )
        result = await self._execute(query)
        return {student_id: count for student_id, count in result.all()}

    # =========================================================================
    # Payments
    # =========================================================================

    async def payments_for_students(self, student_ids: Collection[str]) -> list[Payment]:
        """Get payments of many students, newest first."""
        if not student_ids:
            return []
        query = (
            select(Payment)
            .options(selectinload(Payment.student))
            .where(Payment.student_id.in_(list(student_ids)))
            .order_by(Payment.date.desc(), Payment.created_at.desc(), Payment.id)
        )
        return await self._scalars(query)

    # =========================================================================
    # Notifications
    # =========================================================================

    async def notification_rows(
        self,
        recipient_ids: Collection[str],
        related_type: str | None = None,
    ) -> list[NotificationRecipient]:
        """Get recipient rows (with their notification) addressed to any id in scope."""
        if not recipient_ids:
            return []
        query = (
            select(NotificationRecipient)
            .join(Notification, Notification.id == NotificationRecipient.notification_id)
            .options(selectinload(NotificationRecipient.notification))
            .where(NotificationRecipient.recipient_id.in_(list(recipient_ids)))
            .execution_options(populate_existing=True)
        )
        if related_type is not None:
            query = query.where(Notification.related_type == related_type)
        return await self._scalars(query)

    async def notification_in_scope(
        self,
        notification_id: str,
        recipient_ids: Collection[str],
    ) -> bool:
        """Check that a notification is addressed to at least one id in scope."""
        if not recipient_ids:
            return False
        query = select(func.count(NotificationRecipient.id)).where(
            NotificationRecipient.notification_id == str(notification_id),
            NotificationRecipient.recipient_id.in_(list(recipient_ids)),
        )
        result = await self._execute(query)
        return (result.scalar() or 0) > 0

    async def unread_notification_ids(self, recipient_ids: Collection[str]) -> list[str]:
        """Get the distinct ids of notifications with an unread row in scope."""
        if not recipient_ids:
            return []
        query = (
            select(NotificationRecipient.notification_id)
            .where(
                NotificationRecipient.recipient_id.in_(list(recipient_ids)),
                NotificationRecipient.is_read.is_(False),
            )
            .distinct()
        )
        return await self._scalars(query)

    async def count_unread_notifications(self, recipient_ids: Collection[str]) -> int:
        """Count distinct notifications with an unread row in scope."""
        if not recipient_ids:
            return 0
        query = select(
            func.count(func.distinct(NotificationRecipient.notification_id))
        ).where(
            NotificationRecipient.recipient_id.in_(list(recipient_ids)),
            NotificationRecipient.is_read.is_(False),
        )
        result = await self._execute(query)
        return result.scalar() or 0

    async def mark_recipients_read(
        self,
        notification_ids: Sequence[str],
        recipient_ids: Collection[str],
        read_at: datetime,
    ) -> int:
        """Flip unread recipient rows to read with a conditional update.

        Only rows still unread are touched (compare-and-set on
        ``is_read``), so repeating the call is a no-op.

        Returns:
            Number of rows that transitioned.
        """
        if not notification_ids or not recipient_ids:
            return 0
        statement = (
            update(NotificationRecipient)
            .where(
                NotificationRecipient.notification_id.in_(list(notification_ids)),
                NotificationRecipient.recipient_id.in_(list(recipient_ids)),
                NotificationRecipient.is_read.is_(False),
            )
            .values(is_read=True, read_at=read_at, updated_at=read_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._execute(statement)
        transitioned = result.rowcount or 0

        if transitioned:
            await self._execute(
                update(Notification)
                .where(Notification.id.in_(list(notification_ids)))
                .values(updated_at=read_at)
                .execution_options(synchronize_session=False)
            )

        return transitioned
