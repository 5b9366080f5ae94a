# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification schemas."""

from datetime import datetime

from eduportal.models.common import CamelModel


class RelatedEntity(CamelModel):
    """What a notification is about."""

    type: str
    id: str | None = None
    student_id: str | None = None
    student_name: str | None = None


class NotificationView(CamelModel):
    """A notification as seen by one caller.

    ``is_read`` is true only when every recipient row in the caller's
    scope has been read.
    """

    id: str
    title: str
    message: str
    type: str
    is_read: bool
    created_at: datetime
    updated_at: datetime
    related_to: RelatedEntity


class MarkReadResult(CamelModel):
    """Outcome of a read-state transition."""

    transitioned: int
