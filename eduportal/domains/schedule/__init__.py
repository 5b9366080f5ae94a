# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schedule domain package.

This package turns weekly group timetables into dated occurrences.
"""

from eduportal.domains.schedule.service import (
    ScheduledSession,
    ScheduleExpander,
    TimeSlot,
    expand_group,
    parse_time_slots,
)

__all__ = [
    "ScheduledSession",
    "ScheduleExpander",
    "TimeSlot",
    "expand_group",
    "parse_time_slots",
]
