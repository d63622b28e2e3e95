# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get authenticated users
- Get service instances

Example:
    @router.post("/{assignment_id}/distribute")
    async def distribute(
        service: DistributionService = Depends(get_distribution_service),
        current_user: CurrentUser = Depends(require_teacher),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.core.config import get_settings
from src.domains.assignment.service import AssignmentService
from src.domains.distribution.repository import DistributionRepository, SQLDistributionRepository
from src.domains.distribution.service import DistributionService
from src.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Initialize the database connection pool."""
    await init_database(get_settings())


async def close_db() -> None:
    """Close the database connection pool."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Yields:
        AsyncSession committed when the request handler returns.
    """
    async with get_session() as session:
        yield session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Args:
        request: HTTP request.

    Returns:
        CurrentUser.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_teacher(request: Request) -> CurrentUser:
    """Require teacher user.

    Raises:
        HTTPException: If not a teacher.
    """
    user = require_auth(request)
    if not user.is_teacher:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher access required",
        )
    return user


def require_student(request: Request) -> CurrentUser:
    """Require student user.

    Raises:
        HTTPException: If not a student.
    """
    user = require_auth(request)
    if not user.is_student:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student access required",
        )
    return user


# =========================================================================
# Service Dependencies
# =========================================================================


def get_distribution_repository() -> DistributionRepository:
    """Get the SQL distribution repository.

    Each repository call opens its own session, so no request session
    is shared with the distribution service.
    """
    return SQLDistributionRepository(get_session)


def get_distribution_service(
    repository: DistributionRepository = Depends(get_distribution_repository),
) -> DistributionService:
    """Get distribution service instance.

    Args:
        repository: Storage collaborator.

    Returns:
        Configured DistributionService.
    """
    return DistributionService(repository, settings=get_settings().distribution)


def get_assignment_service(db: AsyncSession = Depends(get_db)) -> AssignmentService:
    """Get assignment template service instance.

    Args:
        db: Database session.

    Returns:
        Configured AssignmentService.
    """
    return AssignmentService(db=db)
