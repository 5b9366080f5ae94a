# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dashboard counters."""

from eduportal.models.common import CamelModel


class StatsView(CamelModel):
    """Dashboard counters for a student or a parent.

    For a parent, the first three are sums of the per-student values;
    ``unread_notifications`` counts distinct notifications.
    """

    total_courses: int = 0
    total_attendance: int = 0
    upcoming_sessions: int = 0
    unread_notifications: int = 0
