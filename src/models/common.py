# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Common enums and helpers for request/response models."""

from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import ValidationError


class QuestionType(str, Enum):
    """Supported assignment question types."""

    MULTIPLE_CHOICE = "multiple_choice"
    SHORT_ANSWER = "short_answer"
    ESSAY = "essay"
    FILE_UPLOAD = "file_upload"


class StudentAssignmentStatus(str, Enum):
    """Lifecycle status of a student assignment."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    GRADED = "graded"
    RETURNED = "returned"


def normalize_uuid(value: Any) -> str:
    """Return the canonical string form of a UUID value.

    Raises:
        ValueError: If value is not a well-formed UUID.
    """
    if isinstance(value, UUID):
        return str(value)
    if not isinstance(value, str):
        raise ValueError("must be a string identifier")
    return str(UUID(value.strip()))


def field_errors_from(error: ValidationError) -> dict[str, str]:
    """Flatten a pydantic ValidationError into {field path: message}.

    Only the first message per field is kept.
    """
    field_errors: dict[str, str] = {}
    for issue in error.errors():
        path = ".".join(str(part) for part in issue["loc"]) or "__root__"
        message = issue["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        field_errors.setdefault(path, message)
    return field_errors
