# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment distribution service.

This module provides the DistributionService class, which fans one
assignment template out to every student of one or more classes:
- Request validation
- Ownership check on the assignment
- Per-class roster resolution, deduplication and bulk insert
- Aggregation of per-class outcomes into a single result

Each class is processed independently. A missing class, an empty class
or a failed insert produces a diagnostic for that class and never stops
the others. Only a malformed request or an assignment the teacher does
not own aborts the whole distribution.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Mapping

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from src.core.config.settings import DistributionSettings
from src.domains.distribution.errors import (
    ClassNotFoundError,
    InvalidDistributionRequestError,
    LedgerWriteError,
)
from src.domains.distribution.ledger import DistributionLedger
from src.domains.distribution.repository import (
    AssignmentRecord,
    DistributionRepository,
    NewStudentAssignment,
)
from src.domains.distribution.roster import RosterResolver
from src.domains.distribution.templates import AssignmentTemplateStore
from src.infrastructure.database.connection import DatabaseError
from src.models.common import StudentAssignmentStatus, field_errors_from
from src.models.distribution import (
    ClassDistributionOutcome,
    Diagnostic,
    DiagnosticKind,
    DistributionRequest,
    DistributionResult,
    StudentAssignmentResponse,
)
from src.utils.datetime import utc_now
from src.utils.logging import get_logger

logger = get_logger(__name__)


def validate_request(data: DistributionRequest | Mapping[str, Any]) -> DistributionRequest:
    """Validate raw distribution input.

    Args:
        data: A DistributionRequest or a mapping with its fields.

    Returns:
        Validated DistributionRequest.

    Raises:
        InvalidDistributionRequestError: With per-field messages.
    """
    if isinstance(data, DistributionRequest):
        return data

    try:
        return DistributionRequest.model_validate(dict(data))
    except ValidationError as e:
        raise InvalidDistributionRequestError(field_errors_from(e)) from e


def aggregate(outcomes: list[ClassDistributionOutcome]) -> DistributionResult:
    """Fold per-class outcomes into a DistributionResult.

    success is True when at least one student was assigned or when no
    class reported an error. Already-assigned skips are not errors.
    """
    total_assigned = sum(outcome.assigned for outcome in outcomes)
    diagnostics = [d.message for outcome in outcomes for d in outcome.diagnostics]
    has_errors = any(outcome.has_error for outcome in outcomes)
    success = total_assigned > 0 or not has_errors

    if not diagnostics:
        message = f"Assignment successfully given to {total_assigned} new student(s)."
    elif not success:
        message = f"Assignment could not be processed. Errors: {'; '.join(diagnostics)}"
    else:
        message = (
            f"Assignment partially processed. {total_assigned} student(s) newly assigned. "
            f"Issues: {'; '.join(diagnostics)}"
        )

    return DistributionResult(
        success=success,
        total_assigned=total_assigned,
        diagnostics=diagnostics,
        outcomes=outcomes,
        message=message,
    )


class DistributionService:
    """Distributes assignment templates to class rosters.

    Attributes:
        repository: Storage collaborator.
        settings: Timeout and fan-out settings.
        rosters: Roster resolver.
        templates: Assignment ownership guard.
        ledger: Student assignment ledger.
    """

    def __init__(
        self,
        repository: DistributionRepository,
        settings: DistributionSettings | None = None,
    ) -> None:
        """Initialize distribution service.

        Args:
            repository: Storage collaborator.
            settings: Distribution settings; defaults apply when omitted.
        """
        self.repository = repository
        self.settings = settings or DistributionSettings()

        timeout = self.settings.io_timeout_seconds
        self.rosters = RosterResolver(repository, timeout=timeout)
        self.templates = AssignmentTemplateStore(repository, timeout=timeout)
        self.ledger = DistributionLedger(repository, timeout=timeout)

    async def distribute(
        self,
        request: DistributionRequest | Mapping[str, Any],
        teacher_id: str,
    ) -> DistributionResult:
        """Distribute an assignment to the students of the target classes.

        Args:
            request: Distribution request, validated here if raw.
            teacher_id: Teacher performing the distribution.

        Returns:
            Aggregated result with per-class diagnostics.

        Raises:
            InvalidDistributionRequestError: If the request is malformed.
            AssignmentNotFoundError: If the teacher does not own the assignment.
        """
        request = validate_request(request)
        assignment = await self.templates.get_owned_assignment(request.assignment_id, teacher_id)
        assigned_date = request.publish_date or utc_now()

        if self.settings.concurrent_fanout and len(request.class_ids) > 1:
            semaphore = asyncio.Semaphore(self.settings.max_concurrency)

            async def bounded(class_id: str) -> ClassDistributionOutcome:
                async with semaphore:
                    return await self._distribute_to_class(
                        assignment, class_id, teacher_id, assigned_date, request.due_date
                    )

            # An unexpected error cancels the remaining classes before it propagates.
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(bounded(class_id)) for class_id in request.class_ids]
            outcomes = [task.result() for task in tasks]
        else:
            outcomes = []
            for class_id in request.class_ids:
                outcomes.append(
                    await self._distribute_to_class(
                        assignment, class_id, teacher_id, assigned_date, request.due_date
                    )
                )

        result = aggregate(outcomes)

        logger.info(
            "Distributed assignment",
            assignment_id=assignment.id,
            classes=len(request.class_ids),
            assigned=result.total_assigned,
            diagnostics=len(result.diagnostics),
            teacher_id=teacher_id,
        )

        return result

    async def _distribute_to_class(
        self,
        assignment: AssignmentRecord,
        class_id: str,
        teacher_id: str,
        assigned_date: datetime,
        due_date: datetime,
    ) -> ClassDistributionOutcome:
        """Distribute to one class. Never raises for per-class conditions."""
        outcome = ClassDistributionOutcome(class_id=class_id)

        try:
            roster = await self.rosters.resolve(class_id, teacher_id)
        except ClassNotFoundError as e:
            return self._fail(outcome, DiagnosticKind.CLASS_NOT_FOUND, str(e))
        except TimeoutError:
            return self._fail(
                outcome,
                DiagnosticKind.TIMEOUT,
                f"Timed out loading class with ID {class_id}.",
            )
        except (DatabaseError, SQLAlchemyError) as e:
            logger.warning("Roster lookup failed: class=%s, error=%s", class_id, e)
            return self._fail(
                outcome,
                DiagnosticKind.PERSISTENCE_ERROR,
                f"Failed to load class with ID {class_id}.",
            )

        outcome.class_name = roster.class_name

        if roster.is_empty:
            return self._fail(
                outcome,
                DiagnosticKind.EMPTY_CLASS,
                f'Class "{roster.class_name}" has no students enrolled.',
            )

        try:
            existing = await self.ledger.find_existing(assignment.id, class_id, roster.student_ids)
        except TimeoutError:
            return self._fail(
                outcome,
                DiagnosticKind.TIMEOUT,
                f'Timed out checking existing assignments in class "{roster.class_name}".',
            )
        except (DatabaseError, SQLAlchemyError) as e:
            logger.warning("Existing lookup failed: class=%s, error=%s", class_id, e)
            return self._fail(
                outcome,
                DiagnosticKind.PERSISTENCE_ERROR,
                f'Failed to assign to students in class "{roster.class_name}".',
            )

        to_create = [
            NewStudentAssignment(
                assignment_id=assignment.id,
                student_id=student_id,
                class_id=class_id,
                teacher_id=teacher_id,
                assigned_date=assigned_date,
                due_date=due_date,
                status=StudentAssignmentStatus.PENDING.value,
            )
            for student_id in roster.student_ids
            if student_id not in existing
        ]

        inserted = 0
        if to_create:
            try:
                inserted = await self.ledger.insert_many(to_create)
            except LedgerWriteError as e:
                logger.warning(
                    "Insert failed: assignment=%s, class=%s, error=%s",
                    assignment.id,
                    class_id,
                    e,
                )
                outcome.skipped = len(existing)
                self._add_already_assigned(outcome, len(existing), roster.class_name)
                return self._fail(
                    outcome,
                    DiagnosticKind.PERSISTENCE_ERROR,
                    f'Failed to assign to students in class "{roster.class_name}".',
                )

        # Rows lost to a concurrent distribution count as already assigned.
        skipped = len(existing) + (len(to_create) - inserted)
        outcome.assigned = inserted
        outcome.skipped = skipped
        self._add_already_assigned(outcome, skipped, roster.class_name)

        return outcome

    def _add_already_assigned(
        self,
        outcome: ClassDistributionOutcome,
        count: int,
        class_name: str,
    ) -> None:
        if count > 0:
            outcome.diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.ALREADY_ASSIGNED,
                    message=(
                        f'{count} student(s) in class "{class_name}" '
                        "were already assigned this work."
                    ),
                )
            )

    def _fail(
        self,
        outcome: ClassDistributionOutcome,
        kind: DiagnosticKind,
        message: str,
    ) -> ClassDistributionOutcome:
        logger.warning("Distribution skipped class: class=%s, reason=%s", outcome.class_id, kind.value)
        outcome.diagnostics.append(Diagnostic(kind=kind, message=message))
        return outcome

    async def list_instances(
        self,
        assignment_id: str,
        teacher_id: str,
    ) -> list[StudentAssignmentResponse]:
        """List the student assignments created from a template.

        Raises:
            AssignmentNotFoundError: If the teacher does not own the assignment.
        """
        assignment = await self.templates.get_owned_assignment(assignment_id, teacher_id)
        return await self.ledger.list_for_assignment(assignment.id)

    async def list_for_student(
        self,
        student_id: str,
        status: StudentAssignmentStatus | None = None,
    ) -> list[StudentAssignmentResponse]:
        """List the assignments a student has received, soonest due date first."""
        return await self.ledger.list_for_student(student_id, status)
