# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- An in-memory SQLite entity store with the full schema
- A seeding helper that writes people, courses, attendance, payments
  and notifications
- JWT tokens for portal callers
"""

import os
from collections.abc import AsyncGenerator, Iterable
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# Settings are read lazily, so the test environment must be in place
# before anything calls get_settings().
TEST_ENVIRONMENT = {
    "ENVIRONMENT": "test",
    "DEBUG": "false",
    "LOG_LEVEL": "WARNING",
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "JWT_SECRET_KEY": "test-secret-key-for-testing-only",
    "JWT_ALGORITHM": "HS256",
    "RATE_LIMIT_ENABLED": "false",
}
os.environ.update(TEST_ENVIRONMENT)

from eduportal.core.config import clear_settings_cache  # noqa: E402
from eduportal.infrastructure.database.connection import (  # noqa: E402
    build_engine,
    build_sessionmaker,
)
from eduportal.infrastructure.database.models import (  # noqa: E402
    AttendanceRecord,
    Base,
    Group,
    GroupStudent,
    Notification,
    NotificationRecipient,
    ParentStudentRelation,
    Payment,
    Person,
    Session,
)


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return dict(TEST_ENVIRONMENT)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Reload settings around every test so env overrides never leak."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory entity store with every table."""
    engine = build_engine(TEST_ENVIRONMENT["DATABASE_URL"])

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return build_sessionmaker(engine)


@pytest_asyncio.fixture(scope="function")
async def db(sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Create an async session for the test."""
    async with sessionmaker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def seed(db: AsyncSession) -> "PortalSeed":
    """Seeding helper writing through the test session."""
    return PortalSeed(db)


@pytest.fixture
def seed_factory() -> type["PortalSeed"]:
    """Seeding helper class, for tests that manage their own sessions."""
    return PortalSeed


# =============================================================================
# Seeding
# =============================================================================


def at(year: int, month: int, day: int, hour: int = 12) -> datetime:
    """Build an aware UTC datetime."""
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def slot(day: str, start: str, end: str) -> dict[str, str]:
    """Build a stored weekly time slot."""
    return {"day": day, "startTime": start, "endTime": end}


class PortalSeed:
    """Writes portal entities and flushes them so ids are assigned.

    Attributes:
        db: Session the rows are added to.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _add(self, instance: Any) -> Any:
        self.db.add(instance)
        await self.db.flush()
        return instance

    async def commit(self) -> None:
        await self.db.commit()

    async def person(
        self,
        role: str,
        name: str,
        surname: str = "Doe",
        **fields: Any,
    ) -> Person:
        return await self._add(Person(role=role, name=name, surname=surname, **fields))

    async def student(self, name: str = "Alice", **fields: Any) -> Person:
        fields.setdefault("school_level", "grade-5")
        return await self.person("student", name, **fields)

    async def parent(self, name: str = "Pat", **fields: Any) -> Person:
        fields.setdefault("email", f"{name.lower()}@example.com")
        return await self.person("parent", name, **fields)

    async def teacher(self, name: str = "Tess", **fields: Any) -> Person:
        fields.setdefault("email", f"{name.lower()}@school.example.com")
        return await self.person("teacher", name, **fields)

    async def link(self, parent: Person, *students: Person) -> None:
        for student in students:
            await self._add(ParentStudentRelation(parent_id=parent.id, student_id=student.id))

    async def group(
        self,
        name: str = "Math A",
        subject: str = "Mathematics",
        time_slots: list[dict[str, Any]] | None = None,
        room: str | None = "R1",
        teacher: Person | None = None,
        status: str = "active",
        level: str | None = "beginner",
    ) -> Group:
        return await self._add(
            Group(
                name=name,
                subject=subject,
                time_slots=time_slots if time_slots is not None else [slot("monday", "10:00", "11:00")],
                room=room,
                teacher_id=teacher.id if teacher else None,
                status=status,
                level=level,
            )
        )

    async def enroll(self, group: Group, *students: Person) -> None:
        for student in students:
            await self._add(GroupStudent(group_id=group.id, student_id=student.id))

    async def session(
        self,
        group: Group,
        on: date,
        start: str = "10:00",
        end: str = "11:00",
        room: str | None = None,
        slot_start: str | None = None,
    ) -> Session:
        return await self._add(
            Session(
                group_id=group.id,
                session_date=on,
                slot_start_time=time.fromisoformat(slot_start or start),
                start_time=time.fromisoformat(start),
                end_time=time.fromisoformat(end),
                room=room,
            )
        )

    async def attendance(
        self,
        student: Person,
        session: Session,
        status: str = "present",
    ) -> AttendanceRecord:
        return await self._add(
            AttendanceRecord(
                student_id=student.id,
                session_id=session.id,
                status=status,
                date=session.session_date,
            )
        )

    async def payment(
        self,
        student: Person,
        amount: str,
        on: date,
        method: str = "cash",
        status: str = "paid",
        note: str | None = None,
    ) -> Payment:
        return await self._add(
            Payment(
                student_id=student.id,
                amount=Decimal(amount),
                method=method,
                date=on,
                status=status,
                note=note,
            )
        )

    async def notification(
        self,
        recipients: Iterable[Person],
        title: str = "Notice",
        created_at: datetime | None = None,
        related_type: str = "general",
        related_student: Person | None = None,
        read_by: Iterable[Person] = (),
        notification_type: str = "info",
    ) -> Notification:
        created_at = created_at or at(2025, 1, 1)
        notification = await self._add(
            Notification(
                title=title,
                message=f"{title} message",
                notification_type=notification_type,
                related_type=related_type,
                related_student_id=related_student.id if related_student else None,
                created_at=created_at,
                updated_at=created_at,
            )
        )
        read_ids = {person.id for person in read_by}
        for recipient in recipients:
            is_read = recipient.id in read_ids
            await self._add(
                NotificationRecipient(
                    notification_id=notification.id,
                    recipient_id=recipient.id,
                    is_read=is_read,
                    read_at=created_at if is_read else None,
                    updated_at=created_at,
                )
            )
        return notification


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (runs the full app)"
    )
    config.addinivalue_line(
        "markers", "e2e: mark test as an end-to-end test (requires full stack)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
