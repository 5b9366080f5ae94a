# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    students: Student portal endpoints.
    parents: Parent portal endpoints.
"""

from fastapi import APIRouter

from eduportal.api.v1 import parents, students

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(students.router, prefix="/students", tags=["Student Portal"])
router.include_router(parents.router, prefix="/parents", tags=["Parent Portal"])

__all__ = ["router"]
