# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment template service.

This module provides the AssignmentService class for:
- Creating assignment templates with typed questions
- Reading a template on behalf of its author
- Listing a teacher's templates
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.infrastructure.database.models import (
    Assignment,
    AssignmentQuestion,
    AssignmentQuestionOption,
    Subject,
)
from src.infrastructure.database.models.base import new_uuid
from src.models.assignment import (
    AssignmentCreateRequest,
    AssignmentResponse,
    AssignmentSummary,
    QuestionOptionResponse,
    QuestionResponse,
)
from src.models.common import QuestionType
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class AssignmentServiceError(Exception):
    """Base exception for assignment service errors."""

    pass


class AssignmentNotFoundError(AssignmentServiceError):
    """Raised when assignment is not found or not owned by the caller."""

    pass


class SubjectNotFoundError(AssignmentServiceError):
    """Raised when subject is not found."""

    pass


class AssignmentService:
    """Service for managing assignment templates.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize assignment service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def create_assignment(
        self,
        request: AssignmentCreateRequest,
        teacher_id: str,
    ) -> AssignmentResponse:
        """Create an assignment template.

        Args:
            request: Validated creation request.
            teacher_id: Author of the template.

        Returns:
            Created assignment.

        Raises:
            SubjectNotFoundError: If subject_id does not exist.
        """
        if request.subject_id is not None:
            await self._get_subject(request.subject_id)

        now = utc_now()
        assignment = Assignment(
            id=new_uuid(),
            teacher_id=teacher_id,
            subject_id=str(request.subject_id) if request.subject_id else None,
            title=request.title,
            description=request.description,
            due_date=request.due_date,
            created_at=now,
            updated_at=now,
        )

        for index, question in enumerate(request.questions):
            options = []
            if question.question_type is QuestionType.MULTIPLE_CHOICE:
                options = [
                    AssignmentQuestionOption(
                        id=new_uuid(),
                        text=option.text,
                        is_correct=option.is_correct,
                        sort_order=position,
                    )
                    for position, option in enumerate(question.options or [])
                ]
            assignment.questions.append(
                AssignmentQuestion(
                    id=new_uuid(),
                    question_text=question.question_text,
                    question_type=question.question_type.value,
                    points=question.effective_points,
                    sort_order=index,
                    options=options,
                )
            )

        self.db.add(assignment)
        await self.db.commit()

        logger.info(
            "Created assignment: id=%s, questions=%d, by=%s",
            assignment.id,
            len(assignment.questions),
            teacher_id,
        )

        return self._to_response(assignment)

    async def get_assignment(
        self,
        assignment_id: UUID,
        teacher_id: str,
    ) -> AssignmentResponse:
        """Get an assignment template owned by teacher_id.

        Raises:
            AssignmentNotFoundError: If not found or owned by someone else.
        """
        query = (
            select(Assignment)
            .options(
                selectinload(Assignment.questions).selectinload(AssignmentQuestion.options)
            )
            .where(Assignment.id == str(assignment_id))
        )
        result = await self.db.execute(query)
        assignment = result.scalar_one_or_none()

        if not assignment or str(assignment.teacher_id) != teacher_id:
            raise AssignmentNotFoundError(f"Assignment {assignment_id} not found")

        return self._to_response(assignment)

    async def list_assignments(self, teacher_id: str) -> list[AssignmentSummary]:
        """List a teacher's templates, newest first."""
        question_count = (
            select(func.count(AssignmentQuestion.id))
            .where(AssignmentQuestion.assignment_id == Assignment.id)
            .correlate(Assignment)
            .scalar_subquery()
        )
        query = (
            select(Assignment, question_count)
            .where(Assignment.teacher_id == teacher_id)
            .order_by(Assignment.created_at.desc())
        )
        result = await self.db.execute(query)

        return [
            AssignmentSummary(
                id=str(assignment.id),
                title=assignment.title,
                subject_id=str(assignment.subject_id) if assignment.subject_id else None,
                due_date=assignment.due_date,
                question_count=count or 0,
                created_at=assignment.created_at,
            )
            for assignment, count in result.all()
        ]

    async def _get_subject(self, subject_id: UUID) -> Subject:
        """Get subject by ID.

        Raises:
            SubjectNotFoundError: If not found.
        """
        result = await self.db.execute(select(Subject).where(Subject.id == str(subject_id)))
        subject = result.scalar_one_or_none()

        if not subject:
            raise SubjectNotFoundError(f"Subject {subject_id} not found")

        return subject

    def _to_response(self, assignment: Assignment) -> AssignmentResponse:
        """Convert assignment to response DTO."""
        questions = [
            QuestionResponse(
                id=str(q.id),
                question_text=q.question_text,
                question_type=QuestionType(q.question_type),
                points=q.points,
                sort_order=q.sort_order,
                options=[
                    QuestionOptionResponse(id=str(o.id), text=o.text, is_correct=o.is_correct)
                    for o in q.options
                ],
            )
            for q in sorted(assignment.questions, key=lambda q: q.sort_order)
        ]

        return AssignmentResponse(
            id=str(assignment.id),
            teacher_id=str(assignment.teacher_id),
            subject_id=str(assignment.subject_id) if assignment.subject_id else None,
            title=assignment.title,
            description=assignment.description,
            due_date=assignment.due_date,
            questions=questions,
            total_points=sum(q.points for q in questions),
            created_at=assignment.created_at,
            updated_at=assignment.updated_at,
        )
