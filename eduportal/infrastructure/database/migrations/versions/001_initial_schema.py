# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial portal schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-03-01

Creates people, parent-student links, groups, enrollments, sessions,
attendance, payments and notifications with per-recipient read state.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _person_fk(name: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name,
        sa.String(36),
        sa.ForeignKey("people.id", ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    """Create portal tables."""
    # ==========================================================================
    # 1. people
    # ==========================================================================
    op.create_table(
        "people",
        _id(),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("surname", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("school_level", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_people_role", "people", ["role"])

    # ==========================================================================
    # 2. parent_student_relations
    # ==========================================================================
    op.create_table(
        "parent_student_relations",
        _id(),
        _person_fk("parent_id"),
        _person_fk("student_id"),
        sa.Column("relationship_type", sa.String(30), nullable=False, server_default="parent"),
        *_timestamps(),
        sa.UniqueConstraint("student_id"),
    )
    op.create_index(
        "ix_parent_student_relations_parent_id",
        "parent_student_relations",
        ["parent_id"],
    )

    # ==========================================================================
    # 3. groups and enrollments
    # ==========================================================================
    op.create_table(
        "groups",
        _id(),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("subject", sa.String(100), nullable=False),
        sa.Column("level", sa.String(50), nullable=True),
        sa.Column("room", sa.String(50), nullable=True),
        sa.Column("time_slots", sa.JSON, nullable=False),
        _person_fk("teacher_id", nullable=True, ondelete="SET NULL"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
    )

    op.create_table(
        "group_students",
        _id(),
        sa.Column(
            "group_id",
            sa.String(36),
            sa.ForeignKey("groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _person_fk("student_id"),
        *_timestamps(),
        sa.UniqueConstraint("group_id", "student_id", name="uq_group_students_group_student"),
    )
    op.create_index("ix_group_students_student_id", "group_students", ["student_id"])

    # ==========================================================================
    # 4. sessions and attendance
    # ==========================================================================
    op.create_table(
        "sessions",
        _id(),
        sa.Column(
            "group_id",
            sa.String(36),
            sa.ForeignKey("groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("session_date", sa.Date, nullable=False),
        sa.Column("slot_start_time", sa.Time, nullable=False),
        sa.Column("start_time", sa.Time, nullable=False),
        sa.Column("end_time", sa.Time, nullable=False),
        sa.Column("room", sa.String(50), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "group_id",
            "session_date",
            "slot_start_time",
            name="uq_sessions_group_date_slot",
        ),
    )
    op.create_index("ix_sessions_group_date", "sessions", ["group_id", "session_date"])

    op.create_table(
        "attendance_records",
        _id(),
        _person_fk("student_id"),
        sa.Column(
            "session_id",
            sa.String(36),
            sa.ForeignKey("sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "session_id", name="uq_attendance_student_session"),
    )
    op.create_index("ix_attendance_student_date", "attendance_records", ["student_id", "date"])

    # ==========================================================================
    # 5. payments
    # ==========================================================================
    op.create_table(
        "payments",
        _id(),
        _person_fk("student_id"),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("method", sa.String(30), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="paid"),
        sa.Column("note", sa.Text, nullable=True),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="ck_payments_amount_non_negative"),
    )
    op.create_index("ix_payments_student_date", "payments", ["student_id", "date"])

    # ==========================================================================
    # 6. notifications
    # ==========================================================================
    op.create_table(
        "notifications",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("notification_type", sa.String(20), nullable=False, server_default="info"),
        sa.Column("related_type", sa.String(20), nullable=False, server_default="general"),
        sa.Column("related_id", sa.String(36), nullable=True),
        _person_fk("related_student_id", nullable=True, ondelete="SET NULL"),
        *_timestamps(),
    )
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    op.create_table(
        "notification_recipients",
        _id(),
        sa.Column(
            "notification_id",
            sa.String(36),
            sa.ForeignKey("notifications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _person_fk("recipient_id"),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("notification_id", "recipient_id", name="uq_notification_recipient"),
    )
    op.create_index(
        "ix_notification_recipients_recipient_read",
        "notification_recipients",
        ["recipient_id", "is_read"],
    )


def downgrade() -> None:
    """Drop portal tables."""
    op.drop_table("notification_recipients")
    op.drop_table("notifications")
    op.drop_table("payments")
    op.drop_table("attendance_records")
    op.drop_table("sessions")
    op.drop_table("group_students")
    op.drop_table("groups")
    op.drop_table("parent_student_relations")
    op.drop_table("people")
