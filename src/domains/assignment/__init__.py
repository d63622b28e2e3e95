# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment template domain package.

This package provides assignment template management:
- Template creation with typed questions
- Template lookup for its author
"""

from src.domains.assignment.service import (
    AssignmentService,
    AssignmentServiceError,
    AssignmentNotFoundError,
    SubjectNotFoundError,
)

__all__ = [
    "AssignmentService",
    "AssignmentServiceError",
    "AssignmentNotFoundError",
    "SubjectNotFoundError",
]
