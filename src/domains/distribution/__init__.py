# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment distribution domain package.

This package fans assignment templates out to class rosters:
- Roster resolution scoped to the class owner
- Ownership guard on assignment templates
- Ledger of student assignments with one copy per student
- Distribution orchestration with per-class diagnostics
"""

from src.domains.distribution.errors import (
    AssignmentNotFoundError,
    ClassNotFoundError,
    DistributionError,
    InvalidDistributionRequestError,
    LedgerWriteError,
)
from src.domains.distribution.ledger import DistributionLedger
from src.domains.distribution.repository import (
    AssignmentRecord,
    ClassRecord,
    DistributionRepository,
    NewStudentAssignment,
    SQLDistributionRepository,
    StudentAssignmentRecord,
)
from src.domains.distribution.roster import Roster, RosterResolver
from src.domains.distribution.service import DistributionService, aggregate, validate_request
from src.domains.distribution.templates import AssignmentTemplateStore

__all__ = [
    "DistributionService",
    "DistributionLedger",
    "RosterResolver",
    "Roster",
    "AssignmentTemplateStore",
    "DistributionRepository",
    "SQLDistributionRepository",
    "ClassRecord",
    "AssignmentRecord",
    "NewStudentAssignment",
    "StudentAssignmentRecord",
    "aggregate",
    "validate_request",
    "DistributionError",
    "InvalidDistributionRequestError",
    "AssignmentNotFoundError",
    "ClassNotFoundError",
    "LedgerWriteError",
]
