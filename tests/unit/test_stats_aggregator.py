# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the stats aggregator."""

from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest

from eduportal.core.config import PortalSettings
from eduportal.core.errors import UnauthorizedError
from eduportal.domains.relationship import CallerContext
from eduportal.domains.stats import StatsAggregator
from eduportal.models.common import Role

# A Wednesday; with a one-week horizon the window runs to 2025-01-08.
NOW = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def portal_settings():
    return PortalSettings(upcoming_horizon_days=7)


@pytest.fixture
def household(seed):
    """Parent with two children sharing one course and one notification."""

    async def build():
        parent = await seed.parent()
        alice = await seed.student("Alice")
        bob = await seed.student("Bob")
        await seed.link(parent, alice, bob)

        math = await seed.group("Math A")
        art = await seed.group(
            "Art",
            subject="Art",
            time_slots=[{"day": "tuesday", "startTime": "15:00", "endTime": "16:00"}],
        )
        old = await seed.group("Old Chess", subject="Chess", status="archived")
        await seed.enroll(math, alice, bob)
        await seed.enroll(art, alice)
        await seed.enroll(old, bob)

        past = await seed.session(math, date(2024, 12, 23))
        earlier = await seed.session(math, date(2024, 12, 16))
        await seed.attendance(alice, past)
        await seed.attendance(alice, earlier, "late")
        await seed.attendance(bob, past, "absent")

        await seed.notification([alice], "Grade")
        await seed.notification([alice], "Trip")
        await seed.notification([alice, bob], "School closed")
        await seed.notification([bob], "Old news", read_by=[bob])
        return parent, alice, bob

    return build


class TestStatsFor:
    """Tests for stats_for."""

    @pytest.mark.asyncio
    async def test_parent_stats(self, db, household, portal_settings):
        """Test that per-student counters are summed and unread is distinct."""
        parent, _, _ = await household()

        stats = await StatsAggregator(db, settings=portal_settings).stats_for(
            CallerContext(parent.id, Role.PARENT),
            now=NOW,
        )

        assert stats.total_courses == 3
        assert stats.total_attendance == 3
        assert stats.upcoming_sessions == 3
        assert stats.unread_notifications == 3

    @pytest.mark.asyncio
    async def test_student_stats(self, db, household, portal_settings):
        """Test that a student only counts their own data."""
        _, alice, bob = await household()
        aggregator = StatsAggregator(db, settings=portal_settings)

        for_alice = await aggregator.stats_for(CallerContext(alice.id, Role.STUDENT), now=NOW)
        for_bob = await aggregator.stats_for(CallerContext(bob.id, Role.STUDENT), now=NOW)

        assert for_alice.model_dump(by_alias=True) == {
            "totalCourses": 2,
            "totalAttendance": 2,
            "upcomingSessions": 2,
            "unreadNotifications": 3,
        }
        assert for_bob.total_courses == 1
        assert for_bob.total_attendance == 1
        assert for_bob.upcoming_sessions == 1
        assert for_bob.unread_notifications == 1

    @pytest.mark.asyncio
    async def test_parent_without_children(self, db, seed, portal_settings):
        """Test that a parent with no linked students only counts their own unread."""
        parent = await seed.parent()
        await seed.notification([parent], "Welcome")

        stats = await StatsAggregator(db, settings=portal_settings).stats_for(
            CallerContext(parent.id, Role.PARENT),
            now=NOW,
        )

        assert (stats.total_courses, stats.total_attendance, stats.upcoming_sessions) == (0, 0, 0)
        assert stats.unread_notifications == 1

    @pytest.mark.asyncio
    async def test_unknown_caller(self, db, portal_settings):
        """Test that an unknown caller is unauthorized."""
        with pytest.raises(UnauthorizedError):
            await StatsAggregator(db, settings=portal_settings).stats_for(
                CallerContext("ghost", Role.STUDENT),
                now=NOW,
            )

    @pytest.mark.asyncio
    async def test_missing_caller(self, db, portal_settings):
        """Test that a missing caller is unauthorized."""
        with pytest.raises(UnauthorizedError):
            await StatsAggregator(db, settings=portal_settings).stats_for(None, now=NOW)

    @pytest.mark.asyncio
    async def test_enrollments_loaded_once(self, db, household, portal_settings):
        """Test that courses and upcoming sessions share one enrollment query."""
        parent, _, _ = await household()
        aggregator = StatsAggregator(db, settings=portal_settings)

        with patch.object(
            aggregator.store,
            "enrollments_for_students",
            wraps=aggregator.store.enrollments_for_students,
        ) as enrollments:
            stats = await aggregator.stats_for(CallerContext(parent.id, Role.PARENT), now=NOW)

        assert enrollments.await_count == 1
        assert (stats.total_courses, stats.upcoming_sessions) == (3, 3)
