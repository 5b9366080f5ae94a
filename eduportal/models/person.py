# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile schemas for students and parents."""

from datetime import datetime

from pydantic import ConfigDict, EmailStr, Field

from eduportal.models.common import CamelModel


class ChildSummary(CamelModel):
    """A student as listed on the parent portal."""

    id: str
    name: str
    surname: str
    school_level: str | None = None
    status: str


class PersonProfile(CamelModel):
    """Profile of the calling person."""

    id: str
    role: str
    name: str
    surname: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    school_level: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime
    children: list[ChildSummary] | None = None


class UpdateProfileRequest(CamelModel):
    """Fields a caller may change on their own profile.

    Status, role and school level are managed elsewhere and rejected here.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    surname: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=255)
