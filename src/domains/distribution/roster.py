# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class roster resolution for distribution."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from src.domains.distribution.errors import ClassNotFoundError
from src.domains.distribution.repository import DistributionRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Roster:
    """Students enrolled in a class at distribution time.

    Attributes:
        class_id: Class identifier.
        class_name: Display name used in diagnostics.
        student_ids: Enrolled student ids, deduplicated, in enrollment order.
    """

    class_id: str
    class_name: str
    student_ids: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.student_ids


class RosterResolver:
    """Resolves a class roster on behalf of the class owner.

    A class owned by another teacher is reported exactly like a class
    that does not exist.
    """

    def __init__(self, repository: DistributionRepository, timeout: float | None = None) -> None:
        self.repository = repository
        self.timeout = timeout

    async def resolve(self, class_id: str, teacher_id: str) -> Roster:
        """Return the roster of a class owned by teacher_id.

        Args:
            class_id: Class identifier.
            teacher_id: Teacher requesting the roster.

        Returns:
            Roster, possibly with no students.

        Raises:
            ClassNotFoundError: If the class is missing or not owned.
            TimeoutError: If the lookup exceeds the configured timeout.
        """
        record = await asyncio.wait_for(
            self.repository.find_class(class_id, teacher_id),
            timeout=self.timeout,
        )
        if record is None or record.teacher_id != teacher_id:
            logger.debug("Class %s not resolvable for teacher %s", class_id, teacher_id)
            raise ClassNotFoundError(
                f"Class with ID {class_id} not found or not managed by you."
            )

        return Roster(
            class_id=record.id,
            class_name=record.name,
            student_ids=tuple(dict.fromkeys(record.student_ids)),
        )
