# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Relationship resolver: who may see whose data.

This module provides the RelationshipResolver class for:
- Resolving the caller identity handed over by the authentication boundary
- Computing the subject set of a caller (self, or linked students)
- Authorizing access to one target student

Every portal operation starts here. The caller check runs before any
other data is fetched, so an unresolvable caller never triggers an
aggregation query.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from eduportal.core.errors import NotFoundError, UnauthorizedError
from eduportal.infrastructure.database.models import Person
from eduportal.infrastructure.database.store import EntityStore
from eduportal.models.common import Role

logger = logging.getLogger(__name__)

PORTAL_ROLES = frozenset({Role.STUDENT, Role.PARENT})


@dataclass(frozen=True)
class CallerContext:
    """Identity of the caller, passed explicitly into every aggregator.

    Attributes:
        caller_id: Person id of the caller.
        role: Role the caller authenticated with.
    """

    caller_id: str
    role: Role

    @classmethod
    def of(cls, caller_id: str | None, role: str | Role | None) -> CallerContext:
        """Build a context from raw boundary values.

        Raises:
            UnauthorizedError: If either value is missing or the role is
                not a portal role.
        """
        if not caller_id or not role:
            raise UnauthorizedError("No authenticated caller")
        try:
            parsed = Role(role)
        except ValueError as e:
            raise UnauthorizedError(f"Unsupported role: {role}") from e
        if parsed not in PORTAL_ROLES:
            raise UnauthorizedError(f"Role not allowed on the portal: {parsed.value}")
        return cls(caller_id=str(caller_id), role=parsed)


@dataclass(frozen=True)
class SubjectScope:
    """The caller together with the students they may see.

    Attributes:
        caller: The resolved caller.
        subject_ids: Student ids whose data is aggregated, in a stable order.
    """

    caller: CallerContext
    subject_ids: tuple[str, ...]

    @property
    def recipient_ids(self) -> frozenset[str]:
        """Identities whose notifications are visible to the caller."""
        return frozenset({self.caller.caller_id, *self.subject_ids})

    def __contains__(self, student_id: object) -> bool:
        return student_id in self.subject_ids


class RelationshipResolver:
    """Resolves callers to their subject scope.

    Attributes:
        store: Entity store used for person and link lookups.
    """

    def __init__(self, db: AsyncSession, store: EntityStore | None = None) -> None:
        """Initialize the resolver.

        Args:
            db: Async database session.
            store: Optional pre-built entity store sharing the session.
        """
        self.store = store or EntityStore(db)

    async def resolve_caller(self, caller: CallerContext | None) -> Person:
        """Check that the caller maps to an active person with the claimed role.

        Args:
            caller: Caller handed over by the authentication boundary.

        Returns:
            The caller's person record.

        Raises:
            UnauthorizedError: If the caller is missing, unknown, inactive,
                or registered with a different role.
        """
        if caller is None:
            raise UnauthorizedError("No authenticated caller")
        if caller.role not in PORTAL_ROLES:
            raise UnauthorizedError(f"Role not allowed on the portal: {caller.role.value}")

        person = await self.store.get_person(caller.caller_id)
        if person is None:
            logger.warning("Unknown caller: %s", caller.caller_id)
            raise UnauthorizedError("Unknown caller")
        if person.role != caller.role.value:
            logger.warning(
                "Role mismatch for caller %s: token=%s, stored=%s",
                caller.caller_id,
                caller.role.value,
                person.role,
            )
            raise UnauthorizedError("Caller role mismatch")
        if not person.is_active:
            logger.warning("Inactive caller rejected: %s", caller.caller_id)
            raise UnauthorizedError("Caller is inactive")
        return person

    async def subjects_for(self, caller: CallerContext) -> list[str]:
        """Get the student ids a caller aggregates over.

        A student sees only themself. A parent sees their linked
        students, possibly none.

        Args:
            caller: Resolved caller.

        Returns:
            Ordered list of student ids.
        """
        match caller.role:
            case Role.STUDENT:
                return [caller.caller_id]
            case Role.PARENT:
                students = await self.store.students_of_parent(caller.caller_id)
                return [student.id for student in students]
            case _:
                raise UnauthorizedError(f"Role not allowed on the portal: {caller.role.value}")

    async def scope_for(self, caller: CallerContext | None) -> SubjectScope:
        """Resolve the caller and compute their subject scope in one step."""
        if caller is None:
            raise UnauthorizedError("No authenticated caller")
        await self.resolve_caller(caller)
        subject_ids = await self.subjects_for(caller)
        return SubjectScope(caller=caller, subject_ids=tuple(subject_ids))

    async def authorize(self, caller: CallerContext, target_student_id: str) -> bool:
        """Check whether the caller may see one student's data.

        Args:
            caller: Resolved caller.
            target_student_id: Student being requested.

        Returns:
            True if the target is the caller or in the caller's subjects.
        """
        if caller.caller_id == str(target_student_id):
            return True
        return str(target_student_id) in await self.subjects_for(caller)

    async def require_subject(
        self,
        caller: CallerContext | None,
        target_student_id: str,
    ) -> SubjectScope:
        """Resolve the caller and narrow their scope to one student.

        An out-of-scope student is reported as not found, so callers
        cannot probe for students of other families.

        Args:
            caller: Caller handed over by the authentication boundary.
            target_student_id: Student being requested.

        Returns:
            Scope containing only the target student.

        Raises:
            UnauthorizedError: If the caller cannot be resolved.
            NotFoundError: If the student is outside the caller's scope.
        """
        scope = await self.scope_for(caller)
        target = str(target_student_id)
        if target not in scope:
            logger.warning(
                "Caller %s denied access to student %s",
                scope.caller.caller_id,
                target,
            )
            raise NotFoundError("student", target)
        return SubjectScope(caller=scope.caller, subject_ids=(target,))
