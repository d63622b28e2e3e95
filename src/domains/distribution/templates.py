# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Ownership guard over assignment templates."""

from __future__ import annotations

import asyncio

from src.domains.distribution.errors import AssignmentNotFoundError
from src.domains.distribution.repository import AssignmentRecord, DistributionRepository


class AssignmentTemplateStore:
    """Looks up assignment templates for the teacher who owns them."""

    def __init__(self, repository: DistributionRepository, timeout: float | None = None) -> None:
        self.repository = repository
        self.timeout = timeout

    async def get_owned_assignment(self, assignment_id: str, teacher_id: str) -> AssignmentRecord:
        """Return the template if teacher_id created it.

        Raises:
            AssignmentNotFoundError: If missing or owned by another teacher.
        """
        record = await asyncio.wait_for(
            self.repository.find_assignment(assignment_id),
            timeout=self.timeout,
        )
        if record is None or record.teacher_id != teacher_id:
            raise AssignmentNotFoundError(
                "Assignment not found or you are not authorized to assign it."
            )
        return record
