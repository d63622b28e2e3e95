# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from collections.abc import Generator

import pytest
import structlog

from src.core.config import Settings, clear_settings_cache
from src.utils.logging import clear_context, setup_logging


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Drop cached settings around every test so env patches apply."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def configured_logging() -> Generator[None, None, None]:
    """Apply the application's structlog configuration for one test."""
    setup_logging(Settings())
    yield
    clear_context()
    structlog.reset_defaults()


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (HTTP layer)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_teacher_id() -> str:
    """Provide a sample teacher ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def other_teacher_id() -> str:
    """Provide a second teacher ID for ownership tests."""
    return "550e8400-e29b-41d4-a716-4466554400ff"


@pytest.fixture
def sample_student_id() -> str:
    """Provide a sample student ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def sample_assignment_id() -> str:
    """Provide a sample assignment ID for testing."""
    return "6f1c2a34-5b6d-4e7f-8a9b-0c1d2e3f4a5b"
