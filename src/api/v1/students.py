# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student-facing assignment endpoints.

- GET /me/assignments - List the caller's assignments
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_distribution_service, require_student
from src.api.middleware.auth import CurrentUser
from src.domains.distribution import DistributionService
from src.models.common import StudentAssignmentStatus
from src.models.distribution import StudentAssignmentListResponse

router = APIRouter()


@router.get(
    "/me/assignments",
    response_model=StudentAssignmentListResponse,
    summary="List my assignments",
    description="List the assignments given to the calling student.",
)
async def list_my_assignments(
    status: Annotated[
        StudentAssignmentStatus | None, Query(description="Filter by status")
    ] = None,
    current_user: CurrentUser = Depends(require_student),
    service: DistributionService = Depends(get_distribution_service),
) -> StudentAssignmentListResponse:
    """List the student's assignments, soonest due first.

    Args:
        status: Optional status filter.
        current_user: Authenticated student.
        service: Distribution service.

    Returns:
        The student's assignments.
    """
    items = await service.list_for_student(current_user.id, status)
    return StudentAssignmentListResponse(items=items, total=len(items))
