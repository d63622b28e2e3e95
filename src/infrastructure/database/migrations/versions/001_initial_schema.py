# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-01-15

Creates users, subjects, classes, enrollments, assignment templates and
student assignments based on the SQLAlchemy models in
src/infrastructure/database/models/.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Create all tables."""
    # ==========================================================================
    # 1. users
    # ==========================================================================
    op.create_table(
        "users",
        _id_column(),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("user_type", sa.String(20), nullable=False, server_default="student"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
        sa.CheckConstraint(
            "user_type IN ('student', 'teacher', 'admin')",
            name="valid_user_type",
        ),
    )

    # ==========================================================================
    # 2. subjects
    # ==========================================================================
    op.create_table(
        "subjects",
        _id_column(),
        sa.Column("name", sa.String(100), unique=True, nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        *_timestamp_columns(),
    )

    # ==========================================================================
    # 3. classes and enrollments
    # ==========================================================================
    op.create_table(
        "classes",
        _id_column(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "teacher_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "subject_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("subjects.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("year", sa.String(20), nullable=True),
        sa.Column("class_code", sa.String(20), unique=True, nullable=True),
        *_timestamp_columns(),
    )
    op.create_index("ix_classes_teacher_subject", "classes", ["teacher_id", "subject_id"])

    op.create_table(
        "class_students",
        sa.Column(
            "class_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "student_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "enrolled_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_class_students_student_id", "class_students", ["student_id"])

    # ==========================================================================
    # 4. assignment templates
    # ==========================================================================
    op.create_table(
        "assignments",
        _id_column(),
        sa.Column(
            "teacher_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "subject_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("subjects.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
    )
    op.create_index(
        "ix_assignments_teacher_subject", "assignments", ["teacher_id", "subject_id"]
    )

    op.create_table(
        "assignment_questions",
        _id_column(),
        sa.Column(
            "assignment_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("assignments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_text", sa.Text, nullable=False),
        sa.Column("question_type", sa.String(20), nullable=False),
        sa.Column("points", sa.Float, nullable=False, server_default="10"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.CheckConstraint(
            "question_type IN ('multiple_choice', 'short_answer', 'essay', 'file_upload')",
            name="valid_question_type",
        ),
    )
    op.create_index(
        "ix_assignment_questions_assignment_id", "assignment_questions", ["assignment_id"]
    )

    op.create_table(
        "assignment_question_options",
        _id_column(),
        sa.Column(
            "question_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("assignment_questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("is_correct", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_assignment_question_options_question_id",
        "assignment_question_options",
        ["question_id"],
    )

    # ==========================================================================
    # 5. student assignments
    # ==========================================================================
    op.create_table(
        "student_assignments",
        _id_column(),
        sa.Column(
            "assignment_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("assignments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "student_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "class_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "teacher_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("assigned_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submission_text", sa.Text, nullable=True),
        sa.Column("grade", sa.Float, nullable=True),
        sa.Column("teacher_feedback", sa.Text, nullable=True),
        *_timestamp_columns(),
        sa.UniqueConstraint(
            "assignment_id",
            "student_id",
            name="uq_student_assignments_assignment_student",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'in_progress', 'submitted', 'graded', 'returned')",
            name="valid_student_assignment_status",
        ),
    )
    op.create_index(
        "ix_student_assignments_class_status", "student_assignments", ["class_id", "status"]
    )
    op.create_index(
        "ix_student_assignments_student_due", "student_assignments", ["student_id", "due_date"]
    )
    op.create_index(
        "ix_student_assignments_teacher_status",
        "student_assignments",
        ["teacher_id", "status"],
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("student_assignments")
    op.drop_table("assignment_question_options")
    op.drop_table("assignment_questions")
    op.drop_table("assignments")
    op.drop_table("class_students")
    op.drop_table("classes")
    op.drop_table("subjects")
    op.drop_table("users")
