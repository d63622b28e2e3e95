# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment distribution request and result models.

DistributionRequest is the validated shape the distribution service
works from. DistributionResult reports what happened per class.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.models.common import StudentAssignmentStatus, normalize_uuid
from src.utils.datetime import ensure_utc, parse_iso


def _coerce_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        if not value.strip():
            return None
        return parse_iso(value)
    raise ValueError("not a date")


class DistributionRequest(BaseModel):
    """Validated request to distribute one assignment to classes.

    Attributes:
        assignment_id: Assignment template to distribute.
        class_ids: Target classes, deduplicated in request order.
        due_date: Due date stamped on every created student assignment.
        publish_date: Assigned date; None means "now" at distribution time.
    """

    assignment_id: str = Field(default=None, validate_default=True)
    class_ids: list[str] = Field(default=None, validate_default=True)
    due_date: datetime = Field(default=None, validate_default=True)
    publish_date: datetime | None = None

    @field_validator("assignment_id", mode="before")
    @classmethod
    def validate_assignment_id(cls, value: Any) -> str:
        try:
            return normalize_uuid(value)
        except (ValueError, AttributeError):
            raise ValueError("Invalid assignment ID.") from None

    @field_validator("class_ids", mode="before")
    @classmethod
    def validate_class_ids(cls, value: Any) -> list[str]:
        if value is None:
            value = []
        elif isinstance(value, str):
            value = [value]
        if not value:
            raise ValueError("At least one class must be selected.")

        normalized: list[str] = []
        for raw in value:
            try:
                normalized.append(normalize_uuid(raw))
            except (ValueError, AttributeError):
                raise ValueError(f"Invalid class ID in selection: {raw!r}.") from None

        return list(dict.fromkeys(normalized))

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, value: Any) -> datetime:
        try:
            parsed = _coerce_datetime(value)
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValueError("Due date is required and must be a valid date.")
        return parsed

    @field_validator("publish_date", mode="before")
    @classmethod
    def validate_publish_date(cls, value: Any) -> datetime | None:
        try:
            return _coerce_datetime(value)
        except ValueError:
            raise ValueError("Publish date must be a valid date.") from None


class DistributeAssignmentRequest(BaseModel):
    """HTTP body for distributing an assignment.

    Fields are accepted loosely here and validated by the distribution
    service, which reports problems per field.
    """

    class_ids: list[str] = Field(default_factory=list)
    due_date: str | None = None
    publish_date: str | None = None


class DiagnosticKind(str, Enum):
    """Why a class was skipped or only partially assigned."""

    CLASS_NOT_FOUND = "class_not_found"
    EMPTY_CLASS = "empty_class"
    ALREADY_ASSIGNED = "already_assigned"
    PERSISTENCE_ERROR = "persistence_error"
    TIMEOUT = "timeout"

    @property
    def is_error(self) -> bool:
        """Already-assigned skips are informational, everything else failed."""
        return self is not DiagnosticKind.ALREADY_ASSIGNED


class Diagnostic(BaseModel):
    """Non-fatal message produced while distributing to one class."""

    kind: DiagnosticKind
    message: str


class ClassDistributionOutcome(BaseModel):
    """Result of distributing to a single class."""

    class_id: str
    class_name: str | None = None
    assigned: int = 0
    skipped: int = 0
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def has_error(self) -> bool:
        return any(d.kind.is_error for d in self.diagnostics)


class DistributionResult(BaseModel):
    """Aggregated outcome of a distribution request.

    Attributes:
        success: True when something was assigned or nothing failed.
        total_assigned: Student assignments created by this request.
        diagnostics: Human-readable messages, in class order.
        outcomes: Structured per-class breakdown.
        message: One-line summary for display.
    """

    success: bool
    total_assigned: int
    diagnostics: list[str] = Field(default_factory=list)
    outcomes: list[ClassDistributionOutcome] = Field(default_factory=list)
    message: str = ""


class StudentAssignmentResponse(BaseModel):
    """A distributed student assignment."""

    id: str
    assignment_id: str
    assignment_title: str | None = None
    student_id: str
    class_id: str
    teacher_id: str
    assigned_date: datetime
    due_date: datetime
    status: StudentAssignmentStatus
    submitted_at: datetime | None = None
    grade: float | None = None
    teacher_feedback: str | None = None


class StudentAssignmentListResponse(BaseModel):
    """List of student assignments."""

    items: list[StudentAssignmentResponse]
    total: int
