"""AssignHub Backend.

School assignment platform: teachers build assignment templates and
distribute them to the students of their classes.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
