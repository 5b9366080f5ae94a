# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schedule expander: weekly time slots to dated session occurrences.

This module provides:
- TimeSlot: one parsed weekly slot of a group
- ScheduledSession: one dated occurrence of a slot
- parse_time_slots / expand_group: pure expansion of a single group
- ScheduleExpander: batched expansion over many groups or students

Expansion is per slot. A slot that cannot be parsed, has no duration or
overlaps a sibling slot on the same day is logged and skipped; the
other slots of the group are still expanded.

Example:
    expander = ScheduleExpander(db)
    sessions = await expander.upcoming_sessions(group_ids, utc_now(), 14)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from eduportal.core.config import PortalSettings, get_settings
from eduportal.core.errors import ValidationError
from eduportal.infrastructure.database.models import Group, GroupStudent, Session
from eduportal.infrastructure.database.store import EntityStore
from eduportal.models.course import TimeSlotView
from eduportal.models.schedule import UpcomingSessionView
from eduportal.utils.datetime import (
    WEEKDAY_NAMES,
    ensure_utc,
    format_clock_time,
    next_weekday_on_or_after,
    parse_clock_time,
    parse_weekday,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeSlot:
    """A weekly slot: weekday (0=Monday) with wall-clock start and end."""

    day: int
    start_time: time
    end_time: time

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> TimeSlot:
        """Parse a stored ``{day, startTime, endTime}`` entry.

        Snake-case keys are accepted as well.

        Raises:
            ValueError: If a field is missing or malformed.
        """
        if not isinstance(raw, Mapping):
            raise ValueError(f"Time slot must be an object, got {type(raw).__name__}")
        try:
            day = raw["day"]
            start = raw.get("startTime", raw.get("start_time"))
            end = raw.get("endTime", raw.get("end_time"))
        except KeyError as e:
            raise ValueError(f"Time slot is missing {e.args[0]!r}") from e
        if start is None or end is None:
            raise ValueError("Time slot is missing startTime or endTime")
        return cls(
            day=parse_weekday(day),
            start_time=parse_clock_time(start),
            end_time=parse_clock_time(end),
        )

    @property
    def day_name(self) -> str:
        return WEEKDAY_NAMES[self.day]

    def overlaps(self, other: TimeSlot) -> bool:
        """Whether two slots share any time on the same weekday."""
        return (
            self.day == other.day
            and self.start_time < other.end_time
            and other.start_time < self.end_time
        )

    def to_view(self) -> TimeSlotView:
        return TimeSlotView(
            day=self.day_name,
            start_time=format_clock_time(self.start_time),
            end_time=format_clock_time(self.end_time),
        )


@dataclass(frozen=True)
class ScheduledSession:
    """A concrete occurrence of a group's slot on one date.

    Attributes:
        group_id: Group the occurrence belongs to.
        group_name: Display name of the group.
        subject: Course subject.
        date: Calendar date of the occurrence.
        start_time: Wall-clock start.
        end_time: Wall-clock end, possibly overridden.
        room: Room, inherited from the group unless overridden.
        session_id: Id of the persisted session row, if any.
        student_ids: Subjects attending, filled by student-level expansion.
    """

    group_id: str
    group_name: str
    subject: str
    date: date
    start_time: time
    end_time: time
    room: str | None = None
    session_id: str | None = None
    student_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def sort_key(self) -> tuple[date, time, str]:
        return (self.date, self.start_time, self.group_id)

    def to_view(self) -> UpcomingSessionView:
        return UpcomingSessionView(
            session_id=self.session_id,
            group_id=self.group_id,
            group_name=self.group_name,
            subject=self.subject,
            date=self.date,
            start_time=format_clock_time(self.start_time),
            end_time=format_clock_time(self.end_time),
            room=self.room,
            student_ids=list(self.student_ids),
        )


def parse_time_slots(group: Group) -> list[TimeSlot]:
    """Parse a group's stored timetable, dropping unusable slots.

    A slot is dropped when it cannot be parsed, when it does not end
    after it starts, or when it overlaps another slot of the same group
    on the same weekday (both overlapping slots are dropped).

    Args:
        group: Group whose ``time_slots`` are parsed.

    Returns:
        Valid slots, in stored order.
    """
    parsed: list[TimeSlot] = []
    for index, raw in enumerate(group.time_slots or []):
        try:
            slot = TimeSlot.from_dict(raw)
        except (TypeError, ValueError) as e:
            logger.warning(
                "Skipping unparseable time slot %d of group %s: %s",
                index,
                group.id,
                e,
            )
            continue
        if slot.start_time >= slot.end_time:
            logger.warning(
                "Skipping zero-length time slot %d of group %s (%s-%s)",
                index,
                group.id,
                slot.start_time,
                slot.end_time,
            )
            continue
        parsed.append(slot)

    overlapping: set[int] = set()
    for i, slot in enumerate(parsed):
        for j in range(i + 1, len(parsed)):
            if slot.overlaps(parsed[j]):
                overlapping.update((i, j))

    for i in sorted(overlapping):
        slot = parsed[i]
        logger.warning(
            "Skipping overlapping time slot of group %s on %s (%s-%s)",
            group.id,
            slot.day_name,
            slot.start_time,
            slot.end_time,
        )

    return [slot for i, slot in enumerate(parsed) if i not in overlapping]


def expand_group(
    group: Group,
    from_date: date,
    horizon_days: int,
    overrides: Mapping[tuple[date, time], Session] | None = None,
) -> list[ScheduledSession]:
    """Expand one group's weekly slots within ``[from_date, from_date + horizon_days]``.

    Args:
        group: Group to expand.
        from_date: First date of the window.
        horizon_days: Window length in days; the end date is inclusive.
        overrides: Persisted sessions keyed by ``(date, slot start time)``.

    Returns:
        Occurrences ordered by (date, start time).

    Raises:
        ValidationError: If ``horizon_days`` is negative.
    """
    if horizon_days < 0:
        raise ValidationError(f"Horizon must not be negative: {horizon_days}")

    overrides = overrides or {}
    last_date = from_date + timedelta(days=horizon_days)
    occurrences: list[ScheduledSession] = []

    for slot in parse_time_slots(group):
        current = next_weekday_on_or_after(from_date, slot.day)
        while current <= last_date:
            override = overrides.get((current, slot.start_time))
            if override is not None:
                occurrences.append(
                    ScheduledSession(
                        group_id=group.id,
                        group_name=group.name,
                        subject=group.subject,
                        date=current,
                        start_time=slot.start_time,
                        end_time=override.end_time,
                        room=override.room if override.room is not None else group.room,
                        session_id=override.id,
                    )
                )
            else:
                occurrences.append(
                    ScheduledSession(
                        group_id=group.id,
                        group_name=group.name,
                        subject=group.subject,
                        date=current,
                        start_time=slot.start_time,
                        end_time=slot.end_time,
                        room=group.room,
                    )
                )
            current += timedelta(days=7)

    occurrences.sort(key=lambda occurrence: occurrence.sort_key)
    return occurrences


def _window_start(from_instant: datetime | date) -> date:
    if isinstance(from_instant, datetime):
        return ensure_utc(from_instant).date()
    return from_instant


def _index_overrides(sessions: Iterable[Session]) -> dict[str, dict[tuple[date, time], Session]]:
    indexed: dict[str, dict[tuple[date, time], Session]] = defaultdict(dict)
    for session in sessions:
        indexed[session.group_id][(session.session_date, session.slot_start_time)] = session
    return indexed


class ScheduleExpander:
    """Expands active groups into upcoming occurrences.

    Groups and their overrides are fetched with one query each, however
    many groups or students are requested.

    Attributes:
        store: Entity store used for group and override lookups.
        settings: Portal settings (default and maximum horizon).
    """

    def __init__(
        self,
        db: AsyncSession,
        store: EntityStore | None = None,
        settings: PortalSettings | None = None,
    ) -> None:
        """Initialize the expander.

        Args:
            db: Async database session.
            store: Optional pre-built entity store sharing the session.
            settings: Portal settings, defaults to the application settings.
        """
        self.store = store or EntityStore(db)
        self.settings = settings or get_settings().portal

    def _check_horizon(self, horizon_days: int | None) -> int:
        if horizon_days is None:
            return self.settings.upcoming_horizon_days
        if horizon_days < 0:
            raise ValidationError(f"Horizon must not be negative: {horizon_days}")
        if horizon_days > self.settings.max_horizon_days:
            raise ValidationError(
                f"Horizon exceeds maximum of {self.settings.max_horizon_days} days: {horizon_days}"
            )
        return horizon_days

    async def _expand(
        self,
        groups: Collection[Group],
        from_date: date,
        horizon_days: int,
    ) -> list[ScheduledSession]:
        active = [group for group in groups if not group.is_archived]
        if not active:
            return []

        last_date = from_date + timedelta(days=horizon_days)
        overrides = _index_overrides(
            await self.store.session_overrides_for_groups(
                [group.id for group in active],
                from_date,
                last_date,
            )
        )

        occurrences: list[ScheduledSession] = []
        for group in active:
            occurrences.extend(
                expand_group(group, from_date, horizon_days, overrides.get(group.id))
            )
        occurrences.sort(key=lambda occurrence: occurrence.sort_key)
        return occurrences

    async def upcoming_sessions(
        self,
        group_ids: Collection[str],
        from_instant: datetime | date,
        horizon_days: int | None = None,
    ) -> list[ScheduledSession]:
        """Get occurrences of several groups within the horizon.

        Archived groups produce no occurrences.

        Args:
            group_ids: Groups to expand.
            from_instant: Start of the window; only its date matters.
            horizon_days: Window length in days, defaults to the configured
                horizon.

        Returns:
            Occurrences ordered by (date, start time).

        Raises:
            ValidationError: If the horizon is negative or above the maximum.
        """
        horizon = self._check_horizon(horizon_days)
        groups = await self.store.get_groups(set(group_ids))
        return await self._expand(groups, _window_start(from_instant), horizon)

    async def upcoming_for_students(
        self,
        student_ids: Collection[str],
        from_instant: datetime | date,
        horizon_days: int | None = None,
    ) -> list[ScheduledSession]:
        """Get occurrences of every active group the students attend.

        An occurrence shared by several students is returned once, with
        all of them listed in ``student_ids``.

        Args:
            student_ids: Subjects whose groups are expanded.
            from_instant: Start of the window; only its date matters.
            horizon_days: Window length in days, defaults to the configured
                horizon.

        Returns:
            Occurrences ordered by (date, start time).
        """
        horizon = self._check_horizon(horizon_days)
        enrollments = await self.store.enrollments_for_students(student_ids)
        return await self.upcoming_for_enrollments(enrollments, from_instant, horizon)

    async def upcoming_for_enrollments(
        self,
        enrollments: Iterable[GroupStudent],
        from_instant: datetime | date,
        horizon_days: int | None = None,
    ) -> list[ScheduledSession]:
        """Expand enrollments that were already loaded with their group.

        Only the session overrides are fetched.

        Args:
            enrollments: Enrollment rows with ``group`` loaded.
            from_instant: Start of the window; only its date matters.
            horizon_days: Window length in days, defaults to the configured
                horizon.

        Returns:
            Occurrences ordered by (date, start time).
        """
        horizon = self._check_horizon(horizon_days)

        groups: dict[str, Group] = {}
        attendees: dict[str, list[str]] = defaultdict(list)
        for enrollment in enrollments:
            groups[enrollment.group_id] = enrollment.group
            attendees[enrollment.group_id].append(enrollment.student_id)

        occurrences = await self._expand(
            list(groups.values()),
            _window_start(from_instant),
            horizon,
        )
        return [
            replace(occurrence, student_ids=tuple(attendees[occurrence.group_id]))
            for occurrence in occurrences
        ]
