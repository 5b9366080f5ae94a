# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enums and base schema used across portal views."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class Role(str, Enum):
    """Role of a person in the portal."""

    STUDENT = "student"
    PARENT = "parent"
    TEACHER = "teacher"


class PersonStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class GroupStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class NotificationType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"


class RelatedEntityType(str, Enum):
    """Kind of entity a notification refers to."""

    PAYMENT = "payment"
    ATTENDANCE = "attendance"
    COURSE = "course"
    GENERAL = "general"


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    CANCELLED = "cancelled"


class CamelModel(BaseModel):
    """Response schema serialised with camelCase keys for the portal UI."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope returned by every portal endpoint."""

    success: bool = True
    data: T | None = None
    message: str | None = None


class ErrorResponse(BaseModel):
    """Error envelope rendered by the API exception handlers."""

    success: bool = False
    error: str
    code: str | None = None
