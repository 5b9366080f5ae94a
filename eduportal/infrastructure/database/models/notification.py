# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notifications and their per-recipient read state.

A notification is created once by a domain event and addressed to one or
more recipients (parents or students). Read state lives on the
recipient row, so the same notification can be read by a student and
still be unread for another recipient.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eduportal.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from eduportal.models.common import NotificationType, RelatedEntityType
from eduportal.utils.datetime import utc_now


class Notification(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Notification content and related-entity reference."""

    __tablename__ = "notifications"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    notification_type: Mapped[str] = mapped_column(
        String(20),
        default=NotificationType.INFO.value,
        nullable=False,
    )
    related_type: Mapped[str] = mapped_column(
        String(20),
        default=RelatedEntityType.GENERAL.value,
        nullable=False,
    )
    related_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    related_student_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("people.id", ondelete="SET NULL"),
        nullable=True,
    )

    recipients: Mapped[list["NotificationRecipient"]] = relationship(
        back_populates="notification",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("ix_notifications_created_at", "created_at"),)


class NotificationRecipient(UUIDPrimaryKeyMixin, Base):
    """Read state of one notification for one recipient.

    ``is_read`` only moves from false to true.
    """

    __tablename__ = "notification_recipients"

    notification_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("notifications.id", ondelete="CASCADE"),
        nullable=False,
    )
    recipient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    notification: Mapped[Notification] = relationship(back_populates="recipients")

    __table_args__ = (
        UniqueConstraint("notification_id", "recipient_id", name="uq_notification_recipient"),
        Index("ix_notification_recipients_recipient_read", "recipient_id", "is_read"),
    )
