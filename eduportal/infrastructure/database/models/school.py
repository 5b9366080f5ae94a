# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Groups (courses), enrollments, sessions and attendance."""

import datetime as dt
from typing import Any

from sqlalchemy import (
    JSON,
    Date,
    ForeignKey,
    Index,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eduportal.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from eduportal.infrastructure.database.models.person import Person
from eduportal.models.common import GroupStatus


class Group(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A recurring course offering.

    ``time_slots`` holds the weekly timetable as a JSON list of
    ``{"day": "monday", "startTime": "10:00", "endTime": "11:00"}``.
    """

    __tablename__ = "groups"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    room: Mapped[str | None] = mapped_column(String(50), nullable=True)
    time_slots: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    teacher_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("people.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=GroupStatus.ACTIVE.value,
        nullable=False,
    )

    teacher: Mapped[Person | None] = relationship(foreign_keys=[teacher_id])

    @property
    def is_archived(self) -> bool:
        return self.status == GroupStatus.ARCHIVED.value


class GroupStudent(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Enrollment of a student in a group."""

    __tablename__ = "group_students"

    group_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
    )

    group: Mapped[Group] = relationship()
    student: Mapped[Person] = relationship(back_populates="enrollments", foreign_keys=[student_id])

    __table_args__ = (
        UniqueConstraint("group_id", "student_id", name="uq_group_students_group_student"),
        Index("ix_group_students_student_id", "student_id"),
    )


class Session(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A concrete, persisted occurrence of a group's weekly slot.

    A row exists once attendance is taken or when the occurrence deviates
    from the timetable (different room or end time). ``slot_start_time``
    names the timetable slot the row materialises.
    """

    __tablename__ = "sessions"

    group_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    session_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    slot_start_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    start_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    room: Mapped[str | None] = mapped_column(String(50), nullable=True)

    group: Mapped[Group] = relationship()

    __table_args__ = (
        UniqueConstraint(
            "group_id",
            "session_date",
            "slot_start_time",
            name="uq_sessions_group_date_slot",
        ),
        Index("ix_sessions_group_date", "group_id", "session_date"),
    )

    @property
    def effective_room(self) -> str | None:
        """Room of this occurrence, falling back to the group's room."""
        return self.room if self.room is not None else self.group.room


class AttendanceRecord(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Attendance of one student at one session."""

    __tablename__ = "attendance_records"

    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
    )
    session_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    session: Mapped[Session] = relationship()
    student: Mapped[Person] = relationship(foreign_keys=[student_id])

    __table_args__ = (
        UniqueConstraint("student_id", "session_id", name="uq_attendance_student_session"),
        Index("ix_attendance_student_date", "student_id", "date"),
    )
