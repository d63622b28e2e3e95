# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Alembic-style migration modules live in versions/ and are applied
programmatically by runner.run_migrations().
"""
