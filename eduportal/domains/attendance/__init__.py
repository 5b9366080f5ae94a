# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance domain package."""

from eduportal.domains.attendance.service import AttendanceAggregator, DateRange

__all__ = ["AttendanceAggregator", "DateRange"]
