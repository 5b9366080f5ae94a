# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for EduPortal.

Design Decisions:
-----------------
1. All timestamps are stored in UTC (PostgreSQL TIMESTAMPTZ)
2. All Python datetimes are timezone-aware (with timezone.utc)
3. Wall-clock lesson times (a group's "10:00-11:00") are naive ``time``
   values; they describe the school's local timetable, not an instant.

Usage:
------
    from eduportal.utils.datetime import utc_now

    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import date, datetime, time, timedelta, timezone

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

CLOCK_TIME_FORMATS = ("%H:%M", "%H:%M:%S")


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as ISO 8601 string.

    Args:
        dt: Datetime to format.

    Returns:
        ISO 8601 formatted string or None.
    """
    if dt is None:
        return None

    return ensure_utc(dt).isoformat()


def parse_weekday(value: str | int) -> int:
    """Parse a weekday into its ISO index (0=Monday .. 6=Sunday).

    Accepts full English names, three-letter abbreviations (both
    case-insensitive) and integers 0-6.

    Args:
        value: Weekday name or index.

    Returns:
        Weekday index.

    Raises:
        ValueError: If the value is not a recognised weekday.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid weekday: {value!r}")

    if isinstance(value, int):
        if 0 <= value <= 6:
            return value
        raise ValueError(f"Weekday index out of range: {value}")

    name = str(value).strip().lower()
    for index, full_name in enumerate(WEEKDAY_NAMES):
        if name == full_name or name == full_name[:3]:
            return index
    if name.isdigit():
        return parse_weekday(int(name))

    raise ValueError(f"Invalid weekday: {value!r}")


def parse_clock_time(value: str | time) -> time:
    """Parse an ``HH:MM`` or ``HH:MM:SS`` wall-clock time.

    Args:
        value: Time string or time instance.

    Returns:
        Naive time value.

    Raises:
        ValueError: If the value is not a naive ``HH:MM`` or ``HH:MM:SS``
            clock time.
    """
    if isinstance(value, time):
        if value.tzinfo is not None:
            raise ValueError(f"Clock time must not carry an offset: {value!r}")
        return value

    text = str(value).strip()
    for fmt in CLOCK_TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid clock time: {value!r}")


def format_clock_time(value: time | None) -> str | None:
    """Format a wall-clock time as ``HH:MM``."""
    if value is None:
        return None
    return value.strftime("%H:%M")


def next_weekday_on_or_after(start: date, weekday: int) -> date:
    """Get the first date on or after ``start`` falling on ``weekday``.

    Args:
        start: Reference date.
        weekday: Target weekday index (0=Monday).

    Returns:
        The matching date, ``start`` itself when it already matches.
    """
    return start + timedelta(days=(weekday - start.weekday()) % 7)
