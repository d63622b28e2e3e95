# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment API endpoints.

This module provides endpoints for teachers:
- POST / - Create an assignment template
- GET / - List own templates
- GET /{assignment_id} - Get template details
- POST /{assignment_id}/distribute - Give the assignment to classes
- GET /{assignment_id}/students - List distributed student assignments
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import (
    get_assignment_service,
    get_distribution_service,
    require_teacher,
)
from src.api.middleware.auth import CurrentUser
from src.domains.assignment.service import (
    AssignmentNotFoundError as TemplateNotFoundError,
    AssignmentService,
    AssignmentServiceError,
    SubjectNotFoundError,
)
from src.domains.distribution import (
    AssignmentNotFoundError,
    DistributionService,
    InvalidDistributionRequestError,
)
from src.models.assignment import (
    AssignmentCreateRequest,
    AssignmentResponse,
    AssignmentSummary,
)
from src.models.distribution import (
    DistributeAssignmentRequest,
    DistributionResult,
    StudentAssignmentListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create assignment",
    description="Create an assignment template with its questions.",
)
async def create_assignment(
    data: AssignmentCreateRequest,
    current_user: CurrentUser = Depends(require_teacher),
    service: AssignmentService = Depends(get_assignment_service),
) -> AssignmentResponse:
    """Create an assignment template.

    Args:
        data: Assignment creation request.
        current_user: Authenticated teacher.
        service: Assignment service.

    Returns:
        Created assignment.

    Raises:
        HTTPException: If the subject does not exist.
    """
    logger.info("Creating assignment: %s by %s", data.title, current_user.id)

    try:
        return await service.create_assignment(data, teacher_id=current_user.id)
    except SubjectNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Subject not found",
        )
    except AssignmentServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.get(
    "",
    response_model=list[AssignmentSummary],
    summary="List assignments",
    description="List the calling teacher's assignment templates.",
)
async def list_assignments(
    current_user: CurrentUser = Depends(require_teacher),
    service: AssignmentService = Depends(get_assignment_service),
) -> list[AssignmentSummary]:
    """List the teacher's templates, newest first."""
    return await service.list_assignments(current_user.id)


@router.get(
    "/{assignment_id}",
    response_model=AssignmentResponse,
    summary="Get assignment",
    description="Get an assignment template owned by the caller.",
)
async def get_assignment(
    assignment_id: UUID,
    current_user: CurrentUser = Depends(require_teacher),
    service: AssignmentService = Depends(get_assignment_service),
) -> AssignmentResponse:
    """Get assignment template details.

    Raises:
        HTTPException: If not found or owned by another teacher.
    """
    try:
        return await service.get_assignment(assignment_id, teacher_id=current_user.id)
    except TemplateNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assignment not found",
        )


@router.post(
    "/{assignment_id}/distribute",
    response_model=DistributionResult,
    summary="Distribute assignment",
    description=(
        "Give the assignment to every student of the selected classes. "
        "Students who already hold it are skipped."
    ),
)
async def distribute_assignment(
    assignment_id: str,
    data: DistributeAssignmentRequest,
    current_user: CurrentUser = Depends(require_teacher),
    service: DistributionService = Depends(get_distribution_service),
) -> DistributionResult:
    """Distribute an assignment to one or more classes.

    Per-class problems are reported in the result diagnostics with a
    200 status. Only a malformed request or an assignment the caller
    does not own fails the whole request.

    Args:
        assignment_id: Assignment template to distribute.
        data: Target classes and dates.
        current_user: Authenticated teacher.
        service: Distribution service.

    Returns:
        Aggregated distribution result.

    Raises:
        HTTPException: 422 for a malformed request, 404 for a foreign or
            missing assignment, 504 if the assignment lookup timed out.
    """
    payload = {"assignment_id": assignment_id, **data.model_dump()}

    try:
        return await service.distribute(payload, teacher_id=current_user.id)
    except InvalidDistributionRequestError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(e), "field_errors": e.field_errors},
        )
    except AssignmentNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    except TimeoutError:
        logger.warning("Assignment lookup timed out: %s", assignment_id)
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Timed out loading the assignment. Please try again.",
        )


@router.get(
    "/{assignment_id}/students",
    response_model=StudentAssignmentListResponse,
    summary="List distributed copies",
    description="List the student assignments created from a template.",
)
async def list_assignment_students(
    assignment_id: UUID,
    current_user: CurrentUser = Depends(require_teacher),
    service: DistributionService = Depends(get_distribution_service),
) -> StudentAssignmentListResponse:
    """List the student assignments created from a template.

    Raises:
        HTTPException: If not found or owned by another teacher.
    """
    try:
        items = await service.list_instances(str(assignment_id), teacher_id=current_user.id)
    except AssignmentNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    return StudentAssignmentListResponse(items=items, total=len(items))
