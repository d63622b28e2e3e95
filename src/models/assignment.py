# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment template request and response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from src.models.common import QuestionType
from src.utils.datetime import ensure_utc

DEFAULT_QUESTION_POINTS = 10
MAX_QUESTIONS = 50


class QuestionOptionCreate(BaseModel):
    """Answer option of a multiple choice question."""

    text: str = Field(min_length=1, description="Option text")
    is_correct: bool = False

    @field_validator("text")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Option text cannot be empty.")
        return value


class QuestionCreate(BaseModel):
    """Question definition inside an assignment creation request."""

    question_text: str = Field(min_length=1)
    question_type: QuestionType
    points: float | None = Field(default=None, ge=0)
    options: list[QuestionOptionCreate] | None = None

    @field_validator("question_text")
    @classmethod
    def strip_question_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Question text cannot be empty.")
        return value

    @model_validator(mode="after")
    def check_multiple_choice_options(self) -> "QuestionCreate":
        """Multiple choice questions need two options and a correct one."""
        if self.question_type is QuestionType.MULTIPLE_CHOICE:
            options = self.options or []
            if len(options) < 2:
                raise ValueError("Multiple choice questions must have at least two options.")
            if not any(option.is_correct for option in options):
                raise ValueError(
                    "One option must be marked as correct for multiple choice questions."
                )
        return self

    @property
    def effective_points(self) -> float:
        """Points with the default applied."""
        return DEFAULT_QUESTION_POINTS if self.points is None else self.points


class AssignmentCreateRequest(BaseModel):
    """Request to create an assignment template."""

    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    subject_id: UUID | None = None
    due_date: datetime | None = Field(
        default=None,
        description="Master due date; distribution sets a due date per class.",
    )
    questions: list[QuestionCreate] = Field(min_length=1, max_length=MAX_QUESTIONS)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required.")
        return value

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class QuestionOptionResponse(BaseModel):
    """Answer option as stored."""

    id: str
    text: str
    is_correct: bool


class QuestionResponse(BaseModel):
    """Question as stored."""

    id: str
    question_text: str
    question_type: QuestionType
    points: float
    sort_order: int
    options: list[QuestionOptionResponse] = Field(default_factory=list)


class AssignmentResponse(BaseModel):
    """Assignment template details."""

    id: str
    teacher_id: str
    subject_id: str | None = None
    title: str
    description: str | None = None
    due_date: datetime | None = None
    questions: list[QuestionResponse] = Field(default_factory=list)
    total_points: float = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AssignmentSummary(BaseModel):
    """Assignment template as shown in a teacher's list."""

    id: str
    title: str
    subject_id: str | None = None
    due_date: datetime | None = None
    question_count: int = 0
    created_at: datetime | None = None
