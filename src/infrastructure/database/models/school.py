# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject, class and enrollment models."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.utils.datetime import utc_now


class Subject(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Subject taught in one or more classes."""

    __tablename__ = "subjects"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)


class Class(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A class owned by a single teacher."""

    __tablename__ = "classes"
    __table_args__ = (
        Index("ix_classes_teacher_subject", "teacher_id", "subject_id"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    teacher_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    subject_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("subjects.id", ondelete="RESTRICT"),
        nullable=False,
    )
    year: Mapped[str | None] = mapped_column(String(20), nullable=True)
    class_code: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)

    enrollments: Mapped[list["ClassStudent"]] = relationship(
        back_populates="class_",
        cascade="all, delete-orphan",
    )


class ClassStudent(Base):
    """Enrollment of a student in a class."""

    __tablename__ = "class_students"

    class_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("classes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    student_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    class_: Mapped[Class] = relationship(back_populates="enrollments")
