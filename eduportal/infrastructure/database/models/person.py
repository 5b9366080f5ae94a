# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""People and the parent-student relationship."""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eduportal.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from eduportal.models.common import PersonStatus, Role

if TYPE_CHECKING:
    from eduportal.infrastructure.database.models.school import GroupStudent


class Person(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A parent, student or teacher.

    All three roles share one table; ``role`` discriminates them and
    ``school_level`` is only meaningful for students.
    """

    __tablename__ = "people"

    role: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    school_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=PersonStatus.ACTIVE.value,
        nullable=False,
    )

    enrollments: Mapped[list["GroupStudent"]] = relationship(
        back_populates="student",
        foreign_keys="GroupStudent.student_id",
    )

    __table_args__ = (Index("ix_people_role", "role"),)

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == PersonStatus.ACTIVE.value

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT.value

    @property
    def is_parent(self) -> bool:
        return self.role == Role.PARENT.value


class ParentStudentRelation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Link from a parent to one of their students.

    A student belongs to exactly one parent context, hence the unique
    constraint on ``student_id``.
    """

    __tablename__ = "parent_student_relations"

    parent_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    relationship_type: Mapped[str] = mapped_column(String(30), default="parent", nullable=False)

    parent: Mapped[Person] = relationship(foreign_keys=[parent_id])
    student: Mapped[Person] = relationship(foreign_keys=[student_id])
