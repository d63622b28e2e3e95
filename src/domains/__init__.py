# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for AssignHub.

This package contains domain services that encapsulate business logic.

Domains:
    assignment: Assignment template authoring and lookup.
    distribution: Fan-out of templates to class rosters.
    auth: Bearer token verification.
"""
