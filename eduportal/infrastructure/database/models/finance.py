# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student payments."""

import datetime as dt
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eduportal.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from eduportal.infrastructure.database.models.person import Person
from eduportal.models.common import PaymentStatus


class Payment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A payment made for a student. Amounts are stored with 2 decimals."""

    __tablename__ = "payments"

    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    method: Mapped[str] = mapped_column(String(30), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=PaymentStatus.PAID.value,
        nullable=False,
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    student: Mapped[Person] = relationship(foreign_keys=[student_id])

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payments_amount_non_negative"),
        Index("ix_payments_student_date", "student_id", "date"),
    )
