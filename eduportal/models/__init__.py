# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic schemas for portal views and request payloads.

Modules:
    common: Shared enums, camelCase base model and response envelopes.
    person: Profiles and children.
    course: Enrolled groups with their weekly timetable.
    schedule: Upcoming session occurrences.
    attendance: Enriched attendance history and summaries.
    notification: Notifications with per-caller read state.
    payment: Payment history.
    stats: Dashboard counters.
"""
