# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models for the application database."""

from src.infrastructure.database.models.assignment import (
    QUESTION_TYPES,
    STUDENT_ASSIGNMENT_STATUSES,
    Assignment,
    AssignmentQuestion,
    AssignmentQuestionOption,
    StudentAssignment,
)
from src.infrastructure.database.models.base import Base
from src.infrastructure.database.models.school import Class, ClassStudent, Subject
from src.infrastructure.database.models.user import User

__all__ = [
    "Base",
    "User",
    "Subject",
    "Class",
    "ClassStudent",
    "Assignment",
    "AssignmentQuestion",
    "AssignmentQuestionOption",
    "StudentAssignment",
    "QUESTION_TYPES",
    "STUDENT_ASSIGNMENT_STATUSES",
]
