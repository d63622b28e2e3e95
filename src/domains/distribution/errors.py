# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by the distribution domain.

Only InvalidDistributionRequestError and AssignmentNotFoundError leave
DistributionService.distribute(). The others are raised by its
collaborators and turned into per-class diagnostics.
"""


class DistributionError(Exception):
    """Base exception for distribution errors."""

    pass


class InvalidDistributionRequestError(DistributionError):
    """Raised when a distribution request is malformed.

    Attributes:
        field_errors: Mapping of field name to error message.
    """

    def __init__(self, field_errors: dict[str, str]) -> None:
        self.field_errors = field_errors
        if "class_ids" in field_errors:
            message = field_errors["class_ids"]
        else:
            message = "Validation failed. Please check the form."
        super().__init__(message)


class AssignmentNotFoundError(DistributionError):
    """Raised when an assignment does not exist or belongs to another teacher."""

    pass


class ClassNotFoundError(DistributionError):
    """Raised when a class does not exist or belongs to another teacher."""

    pass


class LedgerWriteError(DistributionError):
    """Raised when the store rejects a batch of student assignments."""

    pass
