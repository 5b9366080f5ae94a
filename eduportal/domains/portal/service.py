# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Portal service for the student and parent views.

This module provides the PortalService class for:
- Reading and editing the caller's own profile
- Listing a parent's children
- Listing current courses with their timetable and teacher
- Listing payments, optionally narrowed to one child
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from eduportal.core.errors import UnauthorizedError, ValidationError
from eduportal.domains.relationship.service import (
    CallerContext,
    RelationshipResolver,
    SubjectScope,
)
from eduportal.domains.schedule.service import parse_time_slots
from eduportal.infrastructure.database.models import GroupStudent, Payment, Person
from eduportal.infrastructure.database.store import EntityStore
from eduportal.models.common import Role
from eduportal.models.course import CourseView, TeacherInfo
from eduportal.models.payment import PaymentView
from eduportal.models.person import ChildSummary, PersonProfile, UpdateProfileRequest

logger = logging.getLogger(__name__)

REQUIRED_PROFILE_FIELDS = frozenset({"name", "surname"})


def _child_summary(student: Person) -> ChildSummary:
    return ChildSummary(
        id=student.id,
        name=student.name,
        surname=student.surname,
        school_level=student.school_level,
        status=student.status,
    )


def _course_view(enrollment: GroupStudent) -> CourseView:
    group = enrollment.group
    teacher = group.teacher
    return CourseView(
        id=group.id,
        student_id=enrollment.student_id,
        student_name=enrollment.student.full_name,
        group_name=group.name,
        subject=group.subject,
        level=group.level,
        room=group.room,
        time_slots=[slot.to_view() for slot in parse_time_slots(group)],
        teacher=TeacherInfo(name=teacher.full_name, email=teacher.email) if teacher else None,
        status=group.status,
    )


def _payment_view(payment: Payment) -> PaymentView:
    return PaymentView(
        id=payment.id,
        student_id=payment.student_id,
        student_name=payment.student.full_name,
        amount=payment.amount,
        method=payment.method,
        date=payment.date,
        status=payment.status,
        note=payment.note,
    )


class PortalService:
    """Profile, children, course and payment views for portal callers.

    Attributes:
        store: Entity store shared with the resolver.
        resolver: Relationship resolver for the caller's scope.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize portal service.

        Args:
            db: Async database session.
        """
        self.store = EntityStore(db)
        self.resolver = RelationshipResolver(db, store=self.store)

    async def _profile(self, person: Person) -> PersonProfile:
        profile = PersonProfile.model_validate(person)
        if person.is_parent:
            children = await self.store.students_of_parent(person.id)
            profile.children = [_child_summary(child) for child in children]
        return profile

    async def get_profile(self, caller: CallerContext | None) -> PersonProfile:
        """Get the caller's profile; a parent's embeds their children.

        Raises:
            UnauthorizedError: If the caller cannot be resolved.
        """
        person = await self.resolver.resolve_caller(caller)
        return await self._profile(person)

    async def update_profile(
        self,
        caller: CallerContext | None,
        request: UpdateProfileRequest,
    ) -> PersonProfile:
        """Update the caller's own contact fields.

        Args:
            caller: Caller handed over by the authentication boundary.
            request: Fields to change; unset fields are left as they are.

        Returns:
            The updated profile.

        Raises:
            UnauthorizedError: If the caller cannot be resolved.
            ValidationError: If nothing is changed or a required field is
                cleared.
        """
        person = await self.resolver.resolve_caller(caller)

        changes = request.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No profile fields to update")
        cleared = sorted(
            field
            for field in REQUIRED_PROFILE_FIELDS
            if field in changes and changes[field] is None
        )
        if cleared:
            raise ValidationError(f"Fields cannot be empty: {', '.join(cleared)}")

        person = await self.store.update_person(person, changes)
        logger.info("Updated profile of %s: %s", person.id, sorted(changes))
        return await self._profile(person)

    async def list_children(self, caller: CallerContext | None) -> list[ChildSummary]:
        """List the students linked to a parent.

        Raises:
            UnauthorizedError: If the caller is not a resolvable parent.
        """
        person = await self.resolver.resolve_caller(caller)
        match caller.role:
            case Role.PARENT:
                children = await self.store.students_of_parent(person.id)
                return [_child_summary(child) for child in children]
            case _:
                raise UnauthorizedError("Only parents have linked children")

    async def courses_for(self, caller: CallerContext | None) -> list[CourseView]:
        """List the active courses of every subject, one row per enrollment.

        Raises:
            UnauthorizedError: If the caller cannot be resolved.
        """
        scope = await self.resolver.scope_for(caller)
        enrollments = await self.store.enrollments_for_students(scope.subject_ids)
        return [_course_view(enrollment) for enrollment in enrollments]

    async def payments_for(
        self,
        caller: CallerContext | None,
        student_id: str | None = None,
    ) -> list[PaymentView]:
        """List payments of the caller's subjects, newest first.

        Args:
            caller: Caller handed over by the authentication boundary.
            student_id: Optional student to narrow the list to.

        Raises:
            UnauthorizedError: If the caller cannot be resolved.
            NotFoundError: If ``student_id`` is outside the caller's scope.
        """
        scope: SubjectScope
        if student_id is None:
            scope = await self.resolver.scope_for(caller)
        else:
            scope = await self.resolver.require_subject(caller, student_id)
        payments = await self.store.payments_for_students(scope.subject_ids)
        return [_payment_view(payment) for payment in payments]
