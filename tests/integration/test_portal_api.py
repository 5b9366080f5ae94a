# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the student and parent portal API.

The application runs against an in-memory SQLite entity store created in
the application lifespan; seeding goes through the same event loop as
the requests.
"""

from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from eduportal.api.app import create_app
from eduportal.core.config import get_settings
from eduportal.domains.auth.jwt import JWTManager
from eduportal.infrastructure.database.connection import get_engine, get_sessionmaker
from eduportal.infrastructure.database.models import Base

pytestmark = pytest.mark.integration


async def create_schema() -> None:
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def auth_headers(person_id: str, role: str) -> dict[str, str]:
    """Build a bearer header for a portal caller."""
    token = JWTManager(get_settings().jwt).create_access_token(user_id=person_id, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client():
    """Test client with the lifespan running and the schema created."""
    with TestClient(create_app()) as client:
        client.portal.call(create_schema)
        yield client


@pytest.fixture
def household(client, seed_factory):
    """Seed one family with two children and an unrelated family."""

    async def build() -> SimpleNamespace:
        async with get_sessionmaker()() as session:
            seed = seed_factory(session)
            parent = await seed.parent("Pat")
            alice = await seed.student("Alice")
            bob = await seed.student("Bob")
            await seed.link(parent, alice, bob)
            other_parent = await seed.parent("Olga")
            stranger = await seed.student("Zed")
            await seed.link(other_parent, stranger)

            teacher = await seed.teacher("Tess")
            math = await seed.group("Math A", teacher=teacher)
            await seed.enroll(math, alice, bob)
            first = await seed.session(math, date(2025, 1, 6))
            second = await seed.session(math, date(2025, 1, 13), room="Lab")
            await seed.attendance(alice, first, "present")
            await seed.attendance(alice, second, "late")
            await seed.attendance(bob, first, "absent")

            await seed.payment(alice, "150.00", date(2025, 1, 5), method="card")

            shared = await seed.notification([parent, alice], "School closed")
            await seed.notification([bob], "Trip")
            foreign = await seed.notification([stranger], "Private")
            await seed.commit()

            return SimpleNamespace(
                parent=parent.id,
                alice=alice.id,
                bob=bob.id,
                stranger=stranger.id,
                math=math.id,
                shared=shared.id,
                foreign=foreign.id,
            )

    return client.portal.call(build)


class TestHealth:
    """Tests for health endpoints."""

    def test_health(self, client):
        """Test that health reports a reachable database."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["environment"] == "test"
        assert body["database"]["status"] == "healthy"

    def test_readiness(self, client):
        """Test that readiness is true with a database."""
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is True


class TestAuthentication:
    """Tests for caller authentication and the error envelope."""

    def test_missing_token(self, client):
        """Test that no token is answered with 401 in the envelope."""
        response = client.get("/api/v1/students/profile")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Not authenticated"}

    def test_invalid_token(self, client):
        """Test that a garbage token is unauthorized."""
        response = client.get(
            "/api/v1/parents/children",
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_wrong_role_for_endpoint(self, client, household):
        """Test that a student cannot call parent endpoints."""
        response = client.get(
            "/api/v1/parents/children",
            headers=auth_headers(household.alice, "student"),
        )

        assert response.status_code == 401

    def test_unknown_person(self, client, household):
        """Test that a valid token for an unknown person is unauthorized."""
        response = client.get(
            "/api/v1/parents/stats",
            headers=auth_headers("no-such-person", "parent"),
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Unknown caller"

    def test_role_mismatch(self, client, household):
        """Test that a token claiming the wrong role for a person is unauthorized."""
        response = client.get(
            "/api/v1/students/profile",
            headers=auth_headers(household.parent, "student"),
        )

        assert response.status_code == 401

    def test_unknown_route(self, client):
        """Test that unknown routes are rendered in the envelope."""
        response = client.get("/api/v1/nowhere")

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestStudentPortal:
    """Tests for student endpoints."""

    def test_profile(self, client, household):
        """Test the student's own profile in camelCase."""
        response = client.get(
            "/api/v1/students/profile",
            headers=auth_headers(household.alice, "student"),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == household.alice
        assert body["data"]["schoolLevel"] == "grade-5"

    def test_update_profile(self, client, household):
        """Test editing contact fields."""
        response = client.patch(
            "/api/v1/students/profile",
            json={"phone": "555-0199"},
            headers=auth_headers(household.alice, "student"),
        )

        assert response.status_code == 200
        assert response.json()["data"]["phone"] == "555-0199"
        assert response.json()["message"] == "Profile updated"

    def test_update_profile_rejects_role(self, client, household):
        """Test that managed fields cannot be edited."""
        response = client.patch(
            "/api/v1/students/profile",
            json={"role": "teacher"},
            headers=auth_headers(household.alice, "student"),
        )

        assert response.status_code == 400
        assert "role" in response.json()["error"]

    def test_attendance_newest_first(self, client, household):
        """Test the student's attendance history."""
        response = client.get(
            "/api/v1/students/attendance",
            headers=auth_headers(household.alice, "student"),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert [record["date"] for record in data] == ["2025-01-13", "2025-01-06"]
        assert data[0]["session"]["room"] == "Lab"
        assert data[1]["session"]["room"] == "R1"
        assert data[0]["group"]["name"] == "Math A"

    def test_inverted_date_range(self, client, household):
        """Test that startDate after endDate is a 400."""
        response = client.get(
            "/api/v1/students/attendance",
            params={"startDate": "2025-02-01", "endDate": "2025-01-01"},
            headers=auth_headers(household.alice, "student"),
        )

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "Invalid date range" in response.json()["error"]

    def test_malformed_date(self, client, household):
        """Test that an unparseable date is a 400."""
        response = client.get(
            "/api/v1/students/attendance",
            params={"startDate": "yesterday"},
            headers=auth_headers(household.alice, "student"),
        )

        assert response.status_code == 400

    def test_attendance_summary(self, client, household):
        """Test the student's attendance summary."""
        response = client.get(
            "/api/v1/students/attendance/summary",
            headers=auth_headers(household.alice, "student"),
        )

        assert response.json()["data"] == {
            "studentId": household.alice,
            "present": 1,
            "absent": 0,
            "late": 1,
        }

    def test_courses(self, client, household):
        """Test the student's courses."""
        response = client.get(
            "/api/v1/students/courses",
            headers=auth_headers(household.alice, "student"),
        )

        (course,) = response.json()["data"]
        assert course["id"] == household.math
        assert course["teacher"]["name"] == "Tess Doe"
        assert course["timeSlots"] == [{"day": "monday", "startTime": "10:00", "endTime": "11:00"}]

    def test_upcoming_sessions_horizon_validation(self, client, household):
        """Test that negative and oversized horizons are a 400."""
        headers = auth_headers(household.alice, "student")

        negative = client.get("/api/v1/students/upcoming-sessions?days=-1", headers=headers)
        oversized = client.get("/api/v1/students/upcoming-sessions?days=1000", headers=headers)
        weekly = client.get("/api/v1/students/upcoming-sessions?days=6", headers=headers)

        assert negative.status_code == 400
        assert oversized.status_code == 400
        assert weekly.status_code == 200
        assert len(weekly.json()["data"]) == 1

    def test_mark_notification_read(self, client, household):
        """Test marking a notification read, twice."""
        headers = auth_headers(household.alice, "student")
        url = f"/api/v1/students/notifications/{household.shared}/read"

        first = client.patch(url, headers=headers)
        second = client.patch(url, headers=headers)

        assert first.json()["data"] == {"transitioned": 1}
        assert second.status_code == 200
        assert second.json()["data"] == {"transitioned": 0}

    def test_mark_foreign_notification(self, client, household):
        """Test that another student's notification is a 404."""
        response = client.patch(
            f"/api/v1/students/notifications/{household.foreign}/read",
            headers=auth_headers(household.alice, "student"),
        )

        assert response.status_code == 404
        assert response.json()["error"] == f"Notification not found: {household.foreign}"


class TestParentPortal:
    """Tests for parent endpoints."""

    def test_children(self, client, household):
        """Test listing the parent's children."""
        response = client.get(
            "/api/v1/parents/children",
            headers=auth_headers(household.parent, "parent"),
        )

        assert response.status_code == 200
        assert [child["id"] for child in response.json()["data"]] == [
            household.alice,
            household.bob,
        ]

    def test_child_attendance(self, client, household):
        """Test one child's attendance history."""
        response = client.get(
            f"/api/v1/parents/children/{household.bob}/attendance",
            headers=auth_headers(household.parent, "parent"),
        )

        assert response.status_code == 200
        assert [record["status"] for record in response.json()["data"]] == ["absent"]

    def test_other_family_child_is_not_found(self, client, household):
        """Test that another family's child answers 404."""
        response = client.get(
            f"/api/v1/parents/children/{household.stranger}/attendance",
            headers=auth_headers(household.parent, "parent"),
        )

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": f"Student not found: {household.stranger}",
        }

    def test_all_children_attendance(self, client, household):
        """Test attendance across every child."""
        response = client.get(
            "/api/v1/parents/attendance",
            headers=auth_headers(household.parent, "parent"),
        )

        students = {record["studentId"] for record in response.json()["data"]}
        assert students == {household.alice, household.bob}

    def test_payments(self, client, household):
        """Test payments with amounts rendered as decimal strings."""
        response = client.get(
            "/api/v1/parents/payments",
            headers=auth_headers(household.parent, "parent"),
        )

        (payment,) = response.json()["data"]
        assert payment["studentId"] == household.alice
        assert payment["amount"] == "150.00"
        assert payment["method"] == "card"

    def test_payments_for_other_family(self, client, household):
        """Test that filtering by another family's child answers 404."""
        response = client.get(
            "/api/v1/parents/payments",
            params={"studentId": household.stranger},
            headers=auth_headers(household.parent, "parent"),
        )

        assert response.status_code == 404

    def test_notifications_and_read_all(self, client, household):
        """Test listing notifications, then marking them all read."""
        headers = auth_headers(household.parent, "parent")

        before = client.get("/api/v1/parents/notifications", headers=headers)
        marked = client.patch("/api/v1/parents/notifications/read-all", headers=headers)
        after = client.get("/api/v1/parents/notifications", headers=headers)
        stats = client.get("/api/v1/parents/stats", headers=headers)

        assert sorted(n["title"] for n in before.json()["data"]) == ["School closed", "Trip"]
        assert not any(n["isRead"] for n in before.json()["data"])
        assert marked.json()["data"] == {"transitioned": 3}
        assert all(n["isRead"] for n in after.json()["data"])
        assert stats.json()["data"]["unreadNotifications"] == 0

    def test_stats(self, client, household):
        """Test the parent's dashboard counters."""
        response = client.get(
            "/api/v1/parents/stats",
            headers=auth_headers(household.parent, "parent"),
        )

        data = response.json()["data"]
        assert data["totalCourses"] == 2
        assert data["totalAttendance"] == 3
        assert data["unreadNotifications"] == 2
        assert set(data) == {
            "totalCourses",
            "totalAttendance",
            "upcomingSessions",
            "unreadNotifications",
        }
