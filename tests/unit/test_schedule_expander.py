# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the schedule expander."""

from datetime import date, datetime, time, timezone

import pytest

from eduportal.core.config import PortalSettings
from eduportal.core.errors import ValidationError
from eduportal.domains.schedule import (
    ScheduleExpander,
    TimeSlot,
    expand_group,
    parse_time_slots,
)
from eduportal.infrastructure.database.models import Group, Session

WEDNESDAY = date(2025, 1, 1)
MONDAY = date(2025, 1, 6)


def make_group(time_slots, group_id="g-1", room="R1", status="active"):
    """Build a transient group."""
    return Group(
        id=group_id,
        name="Math A",
        subject="Mathematics",
        time_slots=time_slots,
        room=room,
        status=status,
    )


def monday_slot(start="10:00", end="11:00"):
    return {"day": "monday", "startTime": start, "endTime": end}


@pytest.fixture
def portal_settings():
    """Portal settings with a one-week default horizon."""
    return PortalSettings(upcoming_horizon_days=7, max_horizon_days=30)


class TestTimeSlot:
    """Tests for TimeSlot parsing and overlap."""

    def test_from_dict_camel_and_snake(self):
        """Test that both key styles are accepted."""
        camel = TimeSlot.from_dict({"day": "Tue", "startTime": "09:00", "endTime": "10:30"})
        snake = TimeSlot.from_dict({"day": 1, "start_time": "09:00", "end_time": "10:30"})

        assert camel == snake == TimeSlot(1, time(9, 0), time(10, 30))
        assert camel.day_name == "tuesday"

    @pytest.mark.parametrize(
        "raw",
        [
            {"startTime": "09:00", "endTime": "10:00"},
            {"day": "monday", "endTime": "10:00"},
            {"day": "someday", "startTime": "09:00", "endTime": "10:00"},
            {"day": "monday", "startTime": "9h", "endTime": "10:00"},
            "monday 9-10",
        ],
    )
    def test_from_dict_rejects(self, raw):
        """Test that malformed slots raise ValueError."""
        with pytest.raises(ValueError):
            TimeSlot.from_dict(raw)

    def test_overlap_rules(self):
        """Test that touching slots do not overlap but intersecting ones do."""
        first = TimeSlot(0, time(10, 0), time(11, 0))

        assert first.overlaps(TimeSlot(0, time(10, 30), time(11, 30)))
        assert not first.overlaps(TimeSlot(0, time(11, 0), time(12, 0)))
        assert not first.overlaps(TimeSlot(1, time(10, 0), time(11, 0)))

    def test_to_view(self):
        """Test that the view uses the weekday name and HH:MM."""
        view = TimeSlot(4, time(8, 5), time(9, 0)).to_view()

        assert view.model_dump(by_alias=True) == {
            "day": "friday",
            "startTime": "08:05",
            "endTime": "09:00",
        }


class TestParseTimeSlots:
    """Tests for parse_time_slots."""

    def test_skips_unusable_slots(self):
        """Test that unparseable and zero-length slots are dropped."""
        group = make_group([
            {"day": "funday", "startTime": "10:00", "endTime": "11:00"},
            monday_slot("12:00", "12:00"),
            monday_slot("14:00", "13:00"),
            {"day": "thursday", "startTime": "16:00", "endTime": "17:00"},
        ])

        slots = parse_time_slots(group)

        assert slots == [TimeSlot(3, time(16, 0), time(17, 0))]

    def test_drops_both_overlapping_slots(self):
        """Test that overlapping slots on one day are both dropped."""
        group = make_group([
            monday_slot("10:00", "11:00"),
            monday_slot("10:30", "11:30"),
            monday_slot("11:30", "12:30"),
            {"day": "tuesday", "startTime": "10:00", "endTime": "11:00"},
        ])

        slots = parse_time_slots(group)

        assert [(slot.day, slot.start_time) for slot in slots] == [
            (0, time(11, 30)),
            (1, time(10, 0)),
        ]

    def test_empty_timetable(self):
        """Test that a group without slots yields nothing."""
        assert parse_time_slots(make_group([])) == []

    @pytest.mark.parametrize(
        "offset_slot",
        [
            monday_slot("10:00Z", "11:00Z"),
            monday_slot("10:00Z", "11:00"),
            monday_slot("10:00+02:00", "11:00+02:00"),
        ],
    )
    def test_skips_slot_with_utc_offset(self, offset_slot):
        """Test that a slot carrying an offset is dropped, not compared."""
        group = make_group([offset_slot, monday_slot("12:00", "13:00")])

        assert parse_time_slots(group) == [TimeSlot(0, time(12, 0), time(13, 0))]

    def test_offset_slot_does_not_stop_expansion(self):
        """Test that the valid slot next to an offset slot still expands."""
        group = make_group([monday_slot("10:00Z", "11:00Z"), monday_slot("12:00", "13:00")])

        occurrences = expand_group(group, WEDNESDAY, 14)

        assert [(o.date, o.start_time) for o in occurrences] == [
            (date(2025, 1, 6), time(12, 0)),
            (date(2025, 1, 13), time(12, 0)),
        ]


class TestExpandGroup:
    """Tests for expand_group."""

    def test_two_mondays_from_wednesday(self):
        """Test that two weeks from a Wednesday yield the next two Mondays."""
        occurrences = expand_group(make_group([monday_slot()]), WEDNESDAY, 14)

        assert [o.date for o in occurrences] == [date(2025, 1, 6), date(2025, 1, 13)]
        assert all(o.start_time == time(10, 0) for o in occurrences)
        assert all(o.end_time == time(11, 0) for o in occurrences)
        assert all(o.room == "R1" for o in occurrences)
        assert all(o.session_id is None for o in occurrences)

    def test_window_bounds_inclusive(self):
        """Test that both the first and the last day of the window count."""
        occurrences = expand_group(make_group([monday_slot()]), MONDAY, 7)

        assert [o.date for o in occurrences] == [date(2025, 1, 6), date(2025, 1, 13)]

    def test_zero_horizon(self):
        """Test that a zero horizon covers only the start date."""
        group = make_group([monday_slot()])

        assert len(expand_group(group, MONDAY, 0)) == 1
        assert expand_group(group, date(2025, 1, 7), 0) == []

    def test_ordered_by_date_then_start(self):
        """Test ordering across several slots."""
        group = make_group([
            {"day": "wednesday", "startTime": "08:00", "endTime": "09:00"},
            monday_slot("14:00", "15:00"),
            monday_slot("09:00", "10:00"),
        ])

        occurrences = expand_group(group, MONDAY, 6)

        assert [(o.date, o.start_time) for o in occurrences] == [
            (date(2025, 1, 6), time(9, 0)),
            (date(2025, 1, 6), time(14, 0)),
            (date(2025, 1, 8), time(8, 0)),
        ]

    def test_override_applied(self):
        """Test that a persisted session changes end time and room."""
        group = make_group([monday_slot()])
        override = Session(
            id="sess-1",
            group_id="g-1",
            session_date=date(2025, 1, 13),
            slot_start_time=time(10, 0),
            start_time=time(10, 0),
            end_time=time(11, 30),
            room="Lab",
        )

        occurrences = expand_group(
            group,
            MONDAY,
            7,
            {(date(2025, 1, 13), time(10, 0)): override},
        )

        first, second = occurrences
        assert (first.end_time, first.room, first.session_id) == (time(11, 0), "R1", None)
        assert (second.end_time, second.room, second.session_id) == (time(11, 30), "Lab", "sess-1")

    def test_override_without_room_keeps_group_room(self):
        """Test that an override with no room inherits the group room."""
        group = make_group([monday_slot()])
        override = Session(
            id="sess-2",
            group_id="g-1",
            session_date=MONDAY,
            slot_start_time=time(10, 0),
            start_time=time(10, 0),
            end_time=time(10, 45),
            room=None,
        )

        (occurrence,) = expand_group(group, MONDAY, 0, {(MONDAY, time(10, 0)): override})

        assert occurrence.room == "R1"
        assert occurrence.end_time == time(10, 45)

    def test_negative_horizon(self):
        """Test that a negative horizon is a validation error."""
        with pytest.raises(ValidationError):
            expand_group(make_group([monday_slot()]), MONDAY, -1)

    def test_view_serialization(self):
        """Test the camelCase view of an occurrence."""
        (occurrence,) = expand_group(make_group([monday_slot()]), MONDAY, 0)

        view = occurrence.to_view().model_dump(by_alias=True, mode="json")

        assert view["groupId"] == "g-1"
        assert view["date"] == "2025-01-06"
        assert view["startTime"] == "10:00"
        assert view["studentIds"] == []


class TestScheduleExpander:
    """Tests for ScheduleExpander over the entity store."""

    @pytest.mark.asyncio
    async def test_upcoming_sessions_skips_archived(self, db, seed, portal_settings):
        """Test that archived groups produce no occurrences."""
        active = await seed.group("Math A")
        archived = await seed.group("Old Math", status="archived")
        expander = ScheduleExpander(db, settings=portal_settings)

        occurrences = await expander.upcoming_sessions([active.id, archived.id], WEDNESDAY, 14)

        assert {o.group_id for o in occurrences} == {active.id}
        assert len(occurrences) == 2

    @pytest.mark.asyncio
    async def test_default_horizon(self, db, seed, portal_settings):
        """Test that the configured horizon is used when none is given."""
        group = await seed.group()
        expander = ScheduleExpander(db, settings=portal_settings)

        occurrences = await expander.upcoming_sessions(
            [group.id],
            datetime(2025, 1, 1, 18, 0, tzinfo=timezone.utc),
        )

        assert [o.date for o in occurrences] == [date(2025, 1, 6)]

    @pytest.mark.asyncio
    async def test_horizon_limits(self, db, portal_settings):
        """Test that negative and oversized horizons are rejected."""
        expander = ScheduleExpander(db, settings=portal_settings)

        with pytest.raises(ValidationError):
            await expander.upcoming_sessions(["g-1"], WEDNESDAY, -1)
        with pytest.raises(ValidationError, match="maximum"):
            await expander.upcoming_sessions(["g-1"], WEDNESDAY, 31)

    @pytest.mark.asyncio
    async def test_stored_override(self, db, seed, portal_settings):
        """Test that persisted sessions in the window override the timetable."""
        group = await seed.group()
        stored = await seed.session(group, date(2025, 1, 6), end="12:00", room="Hall")
        expander = ScheduleExpander(db, settings=portal_settings)

        occurrences = await expander.upcoming_sessions([group.id], WEDNESDAY, 14)

        assert occurrences[0].session_id == stored.id
        assert occurrences[0].end_time == time(12, 0)
        assert occurrences[0].room == "Hall"
        assert occurrences[1].session_id is None

    @pytest.mark.asyncio
    async def test_shared_group_listed_once(self, db, seed, portal_settings):
        """Test that siblings in one group share one occurrence."""
        first = await seed.student("Ann")
        second = await seed.student("Ben")
        shared = await seed.group("Math A")
        solo = await seed.group(
            "Art",
            subject="Art",
            time_slots=[{"day": "tuesday", "startTime": "15:00", "endTime": "16:00"}],
        )
        await seed.enroll(shared, first, second)
        await seed.enroll(solo, second)
        expander = ScheduleExpander(db, settings=portal_settings)

        occurrences = await expander.upcoming_for_students([first.id, second.id], WEDNESDAY, 7)

        assert [(o.group_id, o.date) for o in occurrences] == [
            (shared.id, date(2025, 1, 6)),
            (solo.id, date(2025, 1, 7)),
        ]
        assert set(occurrences[0].student_ids) == {first.id, second.id}
        assert occurrences[1].student_ids == (second.id,)

    @pytest.mark.asyncio
    async def test_no_students(self, db, portal_settings):
        """Test that an empty subject set yields nothing."""
        expander = ScheduleExpander(db, settings=portal_settings)

        assert await expander.upcoming_for_students([], WEDNESDAY, 7) == []

    @pytest.mark.asyncio
    async def test_preloaded_enrollments(self, db, seed, portal_settings):
        """Test expanding enrollment rows that were already loaded."""
        student = await seed.student("Ann")
        group = await seed.group("Math A")
        await seed.enroll(group, student)
        expander = ScheduleExpander(db, settings=portal_settings)
        enrollments = await expander.store.enrollments_for_students([student.id])

        occurrences = await expander.upcoming_for_enrollments(enrollments, WEDNESDAY, 7)

        assert [(o.group_id, o.date, o.student_ids) for o in occurrences] == [
            (group.id, date(2025, 1, 6), (student.id,)),
        ]
        assert await expander.upcoming_for_enrollments([], WEDNESDAY, 7) == []
