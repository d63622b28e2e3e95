# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    assignments: Teacher endpoints for templates and distribution.
    students: Student endpoints for received assignments.
"""

from fastapi import APIRouter

from src.api.v1 import assignments, students

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(assignments.router, prefix="/assignments", tags=["Assignments"])
router.include_router(students.router, prefix="/students", tags=["Students"])

__all__ = ["router"]
