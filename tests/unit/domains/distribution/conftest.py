# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixtures for distribution domain tests.

InMemoryDistributionRepository stores classes, templates and student
assignments in dicts and enforces the (assignment_id, student_id)
uniqueness the database constraint provides.
"""

import asyncio
from datetime import datetime
from types import SimpleNamespace
from typing import Sequence

import pytest

from src.core.config.settings import DistributionSettings
from src.domains.distribution import (
    AssignmentRecord,
    ClassRecord,
    DistributionService,
    NewStudentAssignment,
    StudentAssignmentRecord,
)
from src.infrastructure.database.connection import DatabaseError

TEACHER_ID = "11111111-1111-4111-8111-111111111111"
OTHER_TEACHER_ID = "22222222-2222-4222-8222-222222222222"
ASSIGNMENT_ID = "aaaaaaaa-0000-4000-8000-000000000001"
FOREIGN_ASSIGNMENT_ID = "aaaaaaaa-0000-4000-8000-000000000002"


def class_id(n: int) -> str:
    """Deterministic class UUID."""
    return f"cccccccc-0000-4000-8000-{n:012d}"


def student_id(n: int) -> str:
    """Deterministic student UUID."""
    return f"55555555-0000-4000-8000-{n:012d}"


class InMemoryDistributionRepository:
    """DistributionRepository fake with failure injection.

    Attributes:
        classes: Class records by id.
        assignments: Assignment records by id.
        instances: Stored student assignments keyed by (assignment, student).
        calls: Names of repository methods in call order.
        failing_inserts: Class ids whose batch insert raises DatabaseError.
        slow_classes: Class ids whose roster read never finishes in time.
        slow_existing: Class ids whose existing-instance check never finishes.
        slow_inserts: Class ids whose batch insert never finishes.
        broken_classes: Class ids whose roster read raises an unexpected error.
        cancelled: Class ids whose roster read was cancelled while waiting.
        concurrent_rows: Rows written by "another request" just before
            the batch for a class is inserted.
    """

    def __init__(self) -> None:
        self.classes: dict[str, ClassRecord] = {}
        self.assignments: dict[str, AssignmentRecord] = {}
        self.instances: dict[tuple[str, str], NewStudentAssignment] = {}
        self.calls: list[str] = []
        self.failing_inserts: set[str] = set()
        self.slow_classes: set[str] = set()
        self.slow_existing: set[str] = set()
        self.slow_inserts: set[str] = set()
        self.broken_classes: set[str] = set()
        self.cancelled: list[str] = []
        self.concurrent_rows: dict[str, list[NewStudentAssignment]] = {}

    # Setup helpers

    def add_class(self, cid: str, name: str, teacher_id: str, students: Sequence[str]) -> None:
        self.classes[cid] = ClassRecord(
            id=cid, name=name, teacher_id=teacher_id, student_ids=tuple(students)
        )

    def add_assignment(self, aid: str, teacher_id: str, title: str = "Fractions") -> None:
        self.assignments[aid] = AssignmentRecord(id=aid, teacher_id=teacher_id, title=title)

    def holders(self, aid: str) -> list[str]:
        return sorted(s for (a, s) in self.instances if a == aid)

    # DistributionRepository

    async def find_class(self, class_id: str, teacher_id: str) -> ClassRecord | None:
        self.calls.append("find_class")
        if class_id in self.broken_classes:
            raise RuntimeError(f"roster service crashed for {class_id}")
        if class_id in self.slow_classes:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                self.cancelled.append(class_id)
                raise
        record = self.classes.get(class_id)
        if record is None or record.teacher_id != teacher_id:
            return None
        return record

    async def find_assignment(self, assignment_id: str) -> AssignmentRecord | None:
        self.calls.append("find_assignment")
        return self.assignments.get(assignment_id)

    async def find_student_assignments(
        self,
        assignment_id: str,
        class_id: str,
        student_ids: Sequence[str],
    ) -> list[str]:
        self.calls.append("find_student_assignments")
        if class_id in self.slow_existing:
            await asyncio.sleep(10)
        return [s for s in student_ids if (assignment_id, s) in self.instances]

    async def bulk_insert_student_assignments(
        self,
        instances: Sequence[NewStudentAssignment],
    ) -> int:
        self.calls.append("bulk_insert_student_assignments")
        class_ids = {i.class_id for i in instances}
        if class_ids & self.slow_inserts:
            await asyncio.sleep(10)
        if class_ids & self.failing_inserts:
            raise DatabaseError("Database operation failed", RuntimeError("disk full"))

        for cid in class_ids:
            for row in self.concurrent_rows.pop(cid, []):
                self.instances.setdefault((row.assignment_id, row.student_id), row)

        inserted = 0
        for instance in instances:
            key = (instance.assignment_id, instance.student_id)
            if key not in self.instances:
                self.instances[key] = instance
                inserted += 1
        return inserted

    async def list_student_assignments(
        self,
        student_id: str,
        status: str | None = None,
    ) -> list[StudentAssignmentRecord]:
        rows = [
            i for (_, s), i in self.instances.items()
            if s == student_id and (status is None or i.status == status)
        ]
        return [self._to_record(i) for i in sorted(rows, key=lambda i: i.due_date)]

    async def list_assignment_instances(self, assignment_id: str) -> list[StudentAssignmentRecord]:
        rows = [i for (a, _), i in self.instances.items() if a == assignment_id]
        return [self._to_record(i) for i in rows]

    def _to_record(self, instance: NewStudentAssignment) -> StudentAssignmentRecord:
        template = self.assignments.get(instance.assignment_id)
        return StudentAssignmentRecord(
            id=instance.id,
            assignment_id=instance.assignment_id,
            assignment_title=template.title if template else None,
            student_id=instance.student_id,
            class_id=instance.class_id,
            teacher_id=instance.teacher_id,
            assigned_date=instance.assigned_date,
            due_date=instance.due_date,
            status=instance.status,
        )


@pytest.fixture
def repository() -> InMemoryDistributionRepository:
    """Repository seeded with one owned and one foreign assignment."""
    repo = InMemoryDistributionRepository()
    repo.add_assignment(ASSIGNMENT_ID, TEACHER_ID)
    repo.add_assignment(FOREIGN_ASSIGNMENT_ID, OTHER_TEACHER_ID, title="Not yours")
    return repo


@pytest.fixture
def service(repository: InMemoryDistributionRepository) -> DistributionService:
    """Sequential distribution service over the in-memory repository."""
    return DistributionService(repository, DistributionSettings(io_timeout_seconds=0.5))


@pytest.fixture
def ids() -> SimpleNamespace:
    """Identifiers shared by the distribution tests."""
    return SimpleNamespace(
        teacher=TEACHER_ID,
        other_teacher=OTHER_TEACHER_ID,
        assignment=ASSIGNMENT_ID,
        foreign_assignment=FOREIGN_ASSIGNMENT_ID,
        class_=class_id,
        student=student_id,
    )


@pytest.fixture
def due_date() -> datetime:
    return datetime.fromisoformat("2024-09-01T00:00:00+00:00")
