# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Ledger of distributed student assignments.

A student holds at most one instance of an assignment. The storage layer
enforces this with a unique constraint on (assignment_id, student_id);
find_existing is only a pre-check that keeps diagnostics accurate.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Sequence

from sqlalchemy.exc import SQLAlchemyError

from src.domains.distribution.errors import LedgerWriteError
from src.domains.distribution.repository import (
    DistributionRepository,
    NewStudentAssignment,
    StudentAssignmentRecord,
)
from src.infrastructure.database.connection import DatabaseError
from src.models.common import StudentAssignmentStatus
from src.models.distribution import StudentAssignmentResponse

logger = logging.getLogger(__name__)


class DistributionLedger:
    """Reads and writes student assignments."""

    def __init__(self, repository: DistributionRepository, timeout: float | None = None) -> None:
        self.repository = repository
        self.timeout = timeout

    async def find_existing(
        self,
        assignment_id: str,
        class_id: str,
        student_ids: Iterable[str],
    ) -> set[str]:
        """Return the students that already hold assignment_id.

        The check covers instances created through any class. class_id
        only identifies the caller in logs.

        Args:
            assignment_id: Assignment template id.
            class_id: Class being distributed to.
            student_ids: Candidate students.

        Returns:
            Subset of student_ids already assigned.
        """
        candidates = list(dict.fromkeys(student_ids))
        if not candidates:
            return set()

        found = await asyncio.wait_for(
            self.repository.find_student_assignments(assignment_id, class_id, candidates),
            timeout=self.timeout,
        )
        existing = set(found) & set(candidates)

        logger.debug(
            "Existing instances: assignment=%s, class=%s, existing=%d/%d",
            assignment_id,
            class_id,
            len(existing),
            len(candidates),
        )
        return existing

    async def insert_many(self, instances: Sequence[NewStudentAssignment]) -> int:
        """Create student assignments in one batch.

        Rows that collide with an existing (assignment, student) pair are
        skipped by the store, so the count can be lower than
        len(instances).

        Args:
            instances: Student assignments to create.

        Returns:
            Number of rows actually created.

        Raises:
            LedgerWriteError: If the store rejects the batch or times out.
        """
        if not instances:
            return 0

        try:
            return await asyncio.wait_for(
                self.repository.bulk_insert_student_assignments(instances),
                timeout=self.timeout,
            )
        except TimeoutError as e:
            raise LedgerWriteError(
                f"Timed out inserting {len(instances)} student assignments"
            ) from e
        except (DatabaseError, SQLAlchemyError) as e:
            raise LedgerWriteError(
                f"Failed to insert {len(instances)} student assignments: {e}"
            ) from e

    async def list_for_student(
        self,
        student_id: str,
        status: StudentAssignmentStatus | None = None,
    ) -> list[StudentAssignmentResponse]:
        """List the assignments a student has received."""
        records = await self.repository.list_student_assignments(
            student_id,
            status.value if status else None,
        )
        return [self._to_response(r) for r in records]

    async def list_for_assignment(self, assignment_id: str) -> list[StudentAssignmentResponse]:
        """List every student assignment created from a template."""
        records = await self.repository.list_assignment_instances(assignment_id)
        return [self._to_response(r) for r in records]

    def _to_response(self, record: StudentAssignmentRecord) -> StudentAssignmentResponse:
        return StudentAssignmentResponse(
            id=record.id,
            assignment_id=record.assignment_id,
            assignment_title=record.assignment_title,
            student_id=record.student_id,
            class_id=record.class_id,
            teacher_id=record.teacher_id,
            assigned_date=record.assigned_date,
            due_date=record.due_date,
            status=StudentAssignmentStatus(record.status),
            submitted_at=record.submitted_at,
            grade=record.grade,
            teacher_feedback=record.teacher_feedback,
        )
