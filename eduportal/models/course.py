# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course (group) schemas."""

from eduportal.models.common import CamelModel


class TimeSlotView(CamelModel):
    """Weekly slot as shown in the timetable."""

    day: str
    start_time: str
    end_time: str


class TeacherInfo(CamelModel):
    name: str
    email: str | None = None


class CourseView(CamelModel):
    """One enrollment of one subject in one group."""

    id: str
    student_id: str
    student_name: str
    group_name: str
    subject: str
    level: str | None = None
    room: str | None = None
    time_slots: list[TimeSlotView]
    teacher: TeacherInfo | None = None
    status: str
