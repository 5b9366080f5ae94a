# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Relationship domain package.

This package resolves callers to the students whose data they may see:
- Caller resolution and role checks
- Subject scope (self, or linked students)
- Per-student authorization for drill-down views
"""

from eduportal.domains.relationship.service import (
    PORTAL_ROLES,
    CallerContext,
    RelationshipResolver,
    SubjectScope,
)

__all__ = [
    "PORTAL_ROLES",
    "CallerContext",
    "RelationshipResolver",
    "SubjectScope",
]
