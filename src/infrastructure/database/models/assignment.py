# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment template and student assignment models.

An Assignment is the reusable template a teacher authors once. A
StudentAssignment is one student's copy of it, created when the template
is distributed to a class. The (assignment_id, student_id) pair is unique
so a student never holds two copies of the same assignment.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

QUESTION_TYPES = ("multiple_choice", "short_answer", "essay", "file_upload")
STUDENT_ASSIGNMENT_STATUSES = ("pending", "in_progress", "submitted", "graded", "returned")


class Assignment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Assignment template authored by a teacher."""

    __tablename__ = "assignments"
    __table_args__ = (
        Index("ix_assignments_teacher_subject", "teacher_id", "subject_id"),
    )

    teacher_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    subject_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("subjects.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    questions: Mapped[list["AssignmentQuestion"]] = relationship(
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="AssignmentQuestion.sort_order",
    )


class AssignmentQuestion(UUIDPrimaryKeyMixin, Base):
    """A single question of an assignment template."""

    __tablename__ = "assignment_questions"

    assignment_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(20), nullable=False)
    points: Mapped[float] = mapped_column(Float, nullable=False, default=10)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    assignment: Mapped[Assignment] = relationship(back_populates="questions")
    options: Mapped[list["AssignmentQuestionOption"]] = relationship(
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="AssignmentQuestionOption.sort_order",
    )


class AssignmentQuestionOption(UUIDPrimaryKeyMixin, Base):
    """Answer option of a multiple choice question."""

    __tablename__ = "assignment_question_options"

    question_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("assignment_questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    question: Mapped[AssignmentQuestion] = relationship(back_populates="options")


class StudentAssignment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One student's copy of a distributed assignment."""

    __tablename__ = "student_assignments"
    __table_args__ = (
        UniqueConstraint(
            "assignment_id",
            "student_id",
            name="uq_student_assignments_assignment_student",
        ),
        Index("ix_student_assignments_class_status", "class_id", "status"),
        Index("ix_student_assignments_student_due", "student_id", "due_date"),
        Index("ix_student_assignments_teacher_status", "teacher_id", "status"),
    )

    assignment_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    class_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
    )
    teacher_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    assigned_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    submission_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    grade: Mapped[float | None] = mapped_column(Float, nullable=True)
    teacher_feedback: Mapped[str | None] = mapped_column(Text, nullable=True)

    assignment: Mapped[Assignment] = relationship()
