# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance history schemas."""

import datetime as dt

from eduportal.models.common import CamelModel


class AttendanceGroupInfo(CamelModel):
    """Group the attended session belongs to.

    ``status`` is ``archived`` for groups that no longer run; their
    history is still reported.
    """

    id: str
    name: str
    subject: str
    status: str


class AttendanceSessionInfo(CamelModel):
    id: str
    date: dt.date
    start_time: str
    end_time: str
    room: str | None = None


class AttendanceView(CamelModel):
    """Attendance record enriched with group and session metadata."""

    id: str
    student_id: str
    student_name: str
    date: dt.date
    status: str
    group: AttendanceGroupInfo
    session: AttendanceSessionInfo


class AttendanceSummary(CamelModel):
    """Per-status counts for one student."""

    student_id: str
    present: int = 0
    absent: int = 0
    late: int = 0

    @property
    def total(self) -> int:
        return self.present + self.absent + self.late
