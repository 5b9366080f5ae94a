# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for EduPortal.

Each domain takes the caller identity as an explicit argument and works
through the entity store; none of them reads request state.

Domains:
    auth: Access token validation.
    relationship: Caller resolution and subject scope.
    schedule: Weekly timetable expansion.
    attendance: Attendance history and summaries.
    notification: Notification read state.
    stats: Dashboard counters.
    portal: Profile, children, course and payment views.
"""
