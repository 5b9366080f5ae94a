# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Entity store models.

Importing this package registers every table on ``Base.metadata``.
"""

from eduportal.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    new_id,
)
from eduportal.infrastructure.database.models.finance import Payment
from eduportal.infrastructure.database.models.notification import (
    Notification,
    NotificationRecipient,
)
from eduportal.infrastructure.database.models.person import ParentStudentRelation, Person
from eduportal.infrastructure.database.models.school import (
    AttendanceRecord,
    Group,
    GroupStudent,
    Session,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "new_id",
    # People
    "Person",
    "ParentStudentRelation",
    # School
    "Group",
    "GroupStudent",
    "Session",
    "AttendanceRecord",
    # Finance
    "Payment",
    # Notifications
    "Notification",
    "NotificationRecipient",
]
