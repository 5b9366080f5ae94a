# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Upcoming session schemas."""

import datetime as dt

from eduportal.models.common import CamelModel


class UpcomingSessionView(CamelModel):
    """One dated occurrence of a group's weekly slot.

    ``session_id`` is set only when the occurrence is backed by a
    persisted session row.
    """

    session_id: str | None = None
    group_id: str
    group_name: str
    subject: str
    date: dt.date
    start_time: str
    end_time: str
    room: str | None = None
    student_ids: list[str] = []
