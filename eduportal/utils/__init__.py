# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for EduPortal.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime and timetable helpers
"""

from eduportal.utils.datetime import (
    ensure_utc,
    format_clock_time,
    format_iso,
    next_weekday_on_or_after,
    parse_clock_time,
    parse_weekday,
    utc_now,
)
from eduportal.utils.logging import bind_context, clear_context, get_logger, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "format_iso",
    "parse_weekday",
    "parse_clock_time",
    "format_clock_time",
    "next_weekday_on_or_after",
]
