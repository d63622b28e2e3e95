# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Persistence collaborator for assignment distribution.

DistributionRepository is the narrow storage interface the distribution
components depend on. SQLDistributionRepository implements it on
PostgreSQL with SQLAlchemy async.

Every repository call opens its own short-lived session from the
session factory and commits it on exit. A failed insert for one class
therefore never rolls back the rows already written for another, and
calls may run concurrently.
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import (
    Assignment,
    Class,
    ClassStudent,
    StudentAssignment,
)
from src.infrastructure.database.models.base import new_uuid

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]

UNIQUE_STUDENT_ASSIGNMENT = "uq_student_assignments_assignment_student"


@dataclass(frozen=True)
class ClassRecord:
    """A class together with its active enrollments."""

    id: str
    name: str
    teacher_id: str
    student_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class AssignmentRecord:
    """The fields of an assignment template that distribution needs."""

    id: str
    teacher_id: str
    title: str


@dataclass(frozen=True)
class NewStudentAssignment:
    """A student assignment about to be created."""

    assignment_id: str
    student_id: str
    class_id: str
    teacher_id: str
    assigned_date: datetime
    due_date: datetime
    status: str = "pending"
    id: str = field(default_factory=new_uuid)


@dataclass(frozen=True)
class StudentAssignmentRecord:
    """A stored student assignment joined with its template title."""

    id: str
    assignment_id: str
    assignment_title: str | None
    student_id: str
    class_id: str
    teacher_id: str
    assigned_date: datetime
    due_date: datetime
    status: str
    submitted_at: datetime | None = None
    grade: float | None = None
    teacher_feedback: str | None = None


class DistributionRepository(Protocol):
    """Storage operations used by assignment distribution."""

    async def find_class(self, class_id: str, teacher_id: str) -> ClassRecord | None:
        """Return the class if it exists and is owned by teacher_id."""
        ...

    async def find_assignment(self, assignment_id: str) -> AssignmentRecord | None:
        """Return the assignment template, regardless of owner."""
        ...

    async def find_student_assignments(
        self,
        assignment_id: str,
        class_id: str,
        student_ids: Sequence[str],
    ) -> list[str]:
        """Return ids from student_ids that already hold assignment_id."""
        ...

    async def bulk_insert_student_assignments(
        self,
        instances: Sequence[NewStudentAssignment],
    ) -> int:
        """Insert instances, skipping duplicates; return rows inserted."""
        ...

    async def list_student_assignments(
        self,
        student_id: str,
        status: str | None = None,
    ) -> list[StudentAssignmentRecord]:
        """Return the student's assignments, earliest due first."""
        ...

    async def list_assignment_instances(
        self,
        assignment_id: str,
    ) -> list[StudentAssignmentRecord]:
        """Return every student assignment created from assignment_id."""
        ...


class SQLDistributionRepository:
    """DistributionRepository backed by PostgreSQL.

    Attributes:
        session_factory: Callable returning an async context manager that
            yields a session and commits it on exit.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        """Initialize the repository.

        Args:
            session_factory: Session context manager factory, usually
                src.infrastructure.database.get_session.
        """
        self.session_factory = session_factory

    async def find_class(self, class_id: str, teacher_id: str) -> ClassRecord | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Class).where(
                    Class.id == class_id,
                    Class.teacher_id == teacher_id,
                )
            )
            class_ = result.scalar_one_or_none()
            if class_ is None:
                return None

            result = await session.execute(
                select(ClassStudent.student_id)
                .where(
                    ClassStudent.class_id == class_id,
                    ClassStudent.is_active.is_(True),
                )
                .order_by(ClassStudent.enrolled_at)
            )
            student_ids = tuple(dict.fromkeys(str(s) for s in result.scalars().all()))

        return ClassRecord(
            id=str(class_.id),
            name=class_.name,
            teacher_id=str(class_.teacher_id),
            student_ids=student_ids,
        )

    async def find_assignment(self, assignment_id: str) -> AssignmentRecord | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Assignment).where(Assignment.id == assignment_id)
            )
            assignment = result.scalar_one_or_none()

        if assignment is None:
            return None

        return AssignmentRecord(
            id=str(assignment.id),
            teacher_id=str(assignment.teacher_id),
            title=assignment.title,
        )

    async def find_student_assignments(
        self,
        assignment_id: str,
        class_id: str,
        student_ids: Sequence[str],
    ) -> list[str]:
        if not student_ids:
            return []

        # Uniqueness is per (assignment, student); class_id does not narrow it.
        async with self.session_factory() as session:
            result = await session.execute(
                select(StudentAssignment.student_id).where(
                    StudentAssignment.assignment_id == assignment_id,
                    StudentAssignment.student_id.in_(list(student_ids)),
                )
            )
            return [str(s) for s in result.scalars().all()]

    async def bulk_insert_student_assignments(
        self,
        instances: Sequence[NewStudentAssignment],
    ) -> int:
        if not instances:
            return 0

        rows = [
            {
                "id": instance.id,
                "assignment_id": instance.assignment_id,
                "student_id": instance.student_id,
                "class_id": instance.class_id,
                "teacher_id": instance.teacher_id,
                "assigned_date": instance.assigned_date,
                "due_date": instance.due_date,
                "status": instance.status,
            }
            for instance in instances
        ]
        stmt = (
            pg_insert(StudentAssignment)
            .values(rows)
            .on_conflict_do_nothing(constraint=UNIQUE_STUDENT_ASSIGNMENT)
            .returning(StudentAssignment.id)
        )

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            inserted = result.scalars().all()

        if len(inserted) < len(rows):
            logger.info(
                "Skipped %d duplicate student assignments on insert",
                len(rows) - len(inserted),
            )

        return len(inserted)

    async def list_student_assignments(
        self,
        student_id: str,
        status: str | None = None,
    ) -> list[StudentAssignmentRecord]:
        query = (
            select(StudentAssignment, Assignment.title)
            .join(Assignment, Assignment.id == StudentAssignment.assignment_id)
            .where(StudentAssignment.student_id == student_id)
        )
        if status:
            query = query.where(StudentAssignment.status == status)
        query = query.order_by(StudentAssignment.due_date)

        async with self.session_factory() as session:
            result = await session.execute(query)
            rows = result.all()

        return [self._to_record(instance, title) for instance, title in rows]

    async def list_assignment_instances(
        self,
        assignment_id: str,
    ) -> list[StudentAssignmentRecord]:
        query = (
            select(StudentAssignment, Assignment.title)
            .join(Assignment, Assignment.id == StudentAssignment.assignment_id)
            .where(StudentAssignment.assignment_id == assignment_id)
            .order_by(StudentAssignment.class_id, StudentAssignment.created_at)
        )

        async with self.session_factory() as session:
            result = await session.execute(query)
            rows = result.all()

        return [self._to_record(instance, title) for instance, title in rows]

    def _to_record(
        self,
        instance: StudentAssignment,
        title: str | None,
    ) -> StudentAssignmentRecord:
        return StudentAssignmentRecord(
            id=str(instance.id),
            assignment_id=str(instance.assignment_id),
            assignment_title=title,
            student_id=str(instance.student_id),
            class_id=str(instance.class_id),
            teacher_id=str(instance.teacher_id),
            assigned_date=instance.assigned_date,
            due_date=instance.due_date,
            status=instance.status,
            submitted_at=instance.submitted_at,
            grade=instance.grade,
            teacher_feedback=instance.teacher_feedback,
        )
