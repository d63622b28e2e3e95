# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for DistributionService."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from src.core.config.settings import DistributionSettings
from src.domains.distribution import (
    AssignmentNotFoundError,
    DistributionService,
    InvalidDistributionRequestError,
    NewStudentAssignment,
)
from src.models.distribution import DiagnosticKind, DistributionRequest
from src.utils.logging import bind_context, setup_logging

pytestmark = pytest.mark.usefixtures("configured_logging")


def _request(ids, *class_numbers, due_date="2024-09-01", **extra):
    return {
        "assignment_id": ids.assignment,
        "class_ids": [ids.class_(n) for n in class_numbers],
        "due_date": due_date,
        **extra,
    }


class TestDistributeScenario:
    """End-to-end behaviour over the in-memory store."""

    @pytest.mark.asyncio
    async def test_overlapping_classes_assign_each_student_once(self, service, repository, ids):
        """Two classes sharing a student create three instances, not four."""
        s1, s2, s3 = ids.student(1), ids.student(2), ids.student(3)
        repository.add_class(ids.class_(1), "C1", ids.teacher, [s1, s2])
        repository.add_class(ids.class_(2), "C2", ids.teacher, [s2, s3])

        result = await service.distribute(_request(ids, 1, 2), ids.teacher)

        assert result.success is True
        assert result.total_assigned == 3
        assert result.diagnostics == [
            '1 student(s) in class "C2" were already assigned this work.'
        ]
        assert repository.holders(ids.assignment) == sorted([s1, s2, s3])
        assert repository.instances[(ids.assignment, s2)].class_id == ids.class_(1)
        assert [o.assigned for o in result.outcomes] == [2, 1]
        assert [o.skipped for o in result.outcomes] == [0, 1]

    @pytest.mark.asyncio
    async def test_clean_distribution_message(self, service, repository, ids):
        """A distribution without diagnostics reports a clean success."""
        repository.add_class(ids.class_(1), "7B", ids.teacher, [ids.student(1), ids.student(2)])

        result = await service.distribute(_request(ids, 1), ids.teacher)

        assert result.success is True
        assert result.diagnostics == []
        assert result.message == "Assignment successfully given to 2 new student(s)."

    @pytest.mark.asyncio
    async def test_instances_carry_request_fields(self, service, repository, ids):
        """Created instances are pending with the request dates and caller."""
        repository.add_class(ids.class_(1), "7B", ids.teacher, [ids.student(1)])
        publish = "2024-08-20T08:00:00Z"

        await service.distribute(_request(ids, 1, publish_date=publish), ids.teacher)

        instance = repository.instances[(ids.assignment, ids.student(1))]
        assert instance.status == "pending"
        assert instance.teacher_id == ids.teacher
        assert instance.class_id == ids.class_(1)
        assert instance.due_date == datetime(2024, 9, 1, tzinfo=timezone.utc)
        assert instance.assigned_date == datetime(2024, 8, 20, 8, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_assigned_date_defaults_to_now(self, service, repository, ids):
        """Without publish_date the assigned date is the distribution time."""
        repository.add_class(ids.class_(1), "7B", ids.teacher, [ids.student(1)])
        before = datetime.now(timezone.utc)

        await service.distribute(_request(ids, 1), ids.teacher)

        assigned = repository.instances[(ids.assignment, ids.student(1))].assigned_date
        assert before - timedelta(seconds=1) <= assigned <= datetime.now(timezone.utc)

    @pytest.mark.asyncio
    async def test_duplicate_class_ids_processed_once(self, service, repository, ids):
        """Repeated class ids in one request do not produce extra diagnostics."""
        repository.add_class(ids.class_(1), "7B", ids.teacher, [ids.student(1)])

        result = await service.distribute(_request(ids, 1, 1), ids.teacher)

        assert len(result.outcomes) == 1
        assert result.total_assigned == 1
        assert result.diagnostics == []


class TestIdempotence:
    """Re-running a distribution never creates duplicates."""

    @pytest.mark.asyncio
    async def test_second_run_assigns_nobody(self, service, repository, ids):
        students = [ids.student(n) for n in range(1, 5)]
        repository.add_class(ids.class_(1), "8A", ids.teacher, students)

        first = await service.distribute(_request(ids, 1), ids.teacher)
        second = await service.distribute(_request(ids, 1), ids.teacher)

        assert first.total_assigned == 4
        assert second.total_assigned == 0
        assert second.success is True
        assert second.diagnostics == [
            '4 student(s) in class "8A" were already assigned this work.'
        ]
        assert len(repository.holders(ids.assignment)) == 4

    @pytest.mark.asyncio
    async def test_new_enrollment_picked_up_on_rerun(self, service, repository, ids):
        """Only students enrolled since the last run are assigned."""
        repository.add_class(ids.class_(1), "8A", ids.teacher, [ids.student(1)])
        await service.distribute(_request(ids, 1), ids.teacher)

        repository.add_class(ids.class_(1), "8A", ids.teacher, [ids.student(1), ids.student(2)])
        result = await service.distribute(_request(ids, 1), ids.teacher)

        assert result.total_assigned == 1
        assert result.outcomes[0].skipped == 1


class TestPerClassIsolation:
    """A failing class never stops the others."""

    @pytest.mark.asyncio
    async def test_missing_and_empty_classes(self, service, repository, ids):
        repository.add_class(
            ids.class_(1), "X", ids.teacher, [ids.student(n) for n in range(1, 4)]
        )
        repository.add_class(ids.class_(3), "Z", ids.teacher, [])

        result = await service.distribute(_request(ids, 1, 2, 3), ids.teacher)

        assert result.success is True
        assert result.total_assigned == 3
        assert result.diagnostics == [
            f"Class with ID {ids.class_(2)} not found or not managed by you.",
            'Class "Z" has no students enrolled.',
        ]
        assert [d.kind for o in result.outcomes for d in o.diagnostics] == [
            DiagnosticKind.CLASS_NOT_FOUND,
            DiagnosticKind.EMPTY_CLASS,
        ]
        assert result.message.startswith("Assignment partially processed. 3 student(s)")

    @pytest.mark.asyncio
    async def test_foreign_class_reported_like_missing_class(self, service, repository, ids):
        """Another teacher's class is indistinguishable from a missing one."""
        repository.add_class(ids.class_(1), "Theirs", ids.other_teacher, [ids.student(1)])

        result = await service.distribute(_request(ids, 1), ids.teacher)

        assert result.total_assigned == 0
        assert result.success is False
        assert result.diagnostics == [
            f"Class with ID {ids.class_(1)} not found or not managed by you."
        ]
        assert repository.instances == {}

    @pytest.mark.asyncio
    async def test_insert_failure_keeps_other_classes(self, service, repository, ids):
        repository.add_class(ids.class_(1), "Good", ids.teacher, [ids.student(1), ids.student(2)])
        repository.add_class(ids.class_(2), "Broken", ids.teacher, [ids.student(3)])
        repository.failing_inserts.add(ids.class_(2))

        result = await service.distribute(_request(ids, 1, 2), ids.teacher)

        assert result.success is True
        assert result.total_assigned == 2
        assert result.diagnostics == ['Failed to assign to students in class "Broken".']
        assert result.outcomes[1].diagnostics[0].kind is DiagnosticKind.PERSISTENCE_ERROR
        assert repository.holders(ids.assignment) == [ids.student(1), ids.student(2)]

    @pytest.mark.asyncio
    async def test_everything_failing_is_not_success(self, service, repository, ids):
        repository.add_class(ids.class_(1), "Broken", ids.teacher, [ids.student(1)])
        repository.failing_inserts.add(ids.class_(1))

        result = await service.distribute(_request(ids, 1, 2), ids.teacher)

        assert result.success is False
        assert result.total_assigned == 0
        assert result.message.startswith("Assignment could not be processed. Errors: ")
        assert len(result.diagnostics) == 2

    @pytest.mark.asyncio
    async def test_roster_timeout_is_per_class(self, repository, ids):
        service = DistributionService(repository, DistributionSettings(io_timeout_seconds=0.05))
        repository.add_class(ids.class_(1), "Slow", ids.teacher, [ids.student(1)])
        repository.add_class(ids.class_(2), "Fast", ids.teacher, [ids.student(2)])
        repository.slow_classes.add(ids.class_(1))

        result = await service.distribute(_request(ids, 1, 2), ids.teacher)

        assert result.total_assigned == 1
        assert result.outcomes[0].diagnostics[0].kind is DiagnosticKind.TIMEOUT
        assert result.diagnostics[0] == f"Timed out loading class with ID {ids.class_(1)}."
        assert repository.holders(ids.assignment) == [ids.student(2)]

    @pytest.mark.asyncio
    async def test_existing_check_timeout_is_per_class(self, repository, ids):
        service = DistributionService(repository, DistributionSettings(io_timeout_seconds=0.05))
        repository.add_class(ids.class_(1), "Slow", ids.teacher, [ids.student(1)])
        repository.add_class(ids.class_(2), "Fast", ids.teacher, [ids.student(2)])
        repository.slow_existing.add(ids.class_(1))

        result = await service.distribute(_request(ids, 1, 2), ids.teacher)

        assert result.success is True
        assert result.total_assigned == 1
        assert result.outcomes[0].diagnostics[0].kind is DiagnosticKind.TIMEOUT
        assert result.diagnostics[0] == (
            'Timed out checking existing assignments in class "Slow".'
        )
        assert repository.holders(ids.assignment) == [ids.student(2)]

    @pytest.mark.asyncio
    async def test_insert_timeout_is_per_class(self, repository, ids):
        service = DistributionService(repository, DistributionSettings(io_timeout_seconds=0.05))
        repository.add_class(ids.class_(1), "Slow", ids.teacher, [ids.student(1)])
        repository.add_class(ids.class_(2), "Fast", ids.teacher, [ids.student(2)])
        repository.slow_inserts.add(ids.class_(1))

        result = await service.distribute(_request(ids, 1, 2), ids.teacher)

        assert result.success is True
        assert result.total_assigned == 1
        assert [o.assigned for o in result.outcomes] == [0, 1]
        assert result.outcomes[0].diagnostics[0].kind is DiagnosticKind.PERSISTENCE_ERROR
        assert result.diagnostics == ['Failed to assign to students in class "Slow".']
        assert repository.holders(ids.assignment) == [ids.student(2)]


class TestConcurrentWrites:
    """Rows written by a concurrent request between check and insert."""

    @pytest.mark.asyncio
    async def test_lost_race_counts_as_already_assigned(self, service, repository, ids, due_date):
        s1, s2 = ids.student(1), ids.student(2)
        repository.add_class(ids.class_(1), "9C", ids.teacher, [s1, s2])
        repository.concurrent_rows[ids.class_(1)] = [
            NewStudentAssignment(
                assignment_id=ids.assignment,
                student_id=s1,
                class_id=ids.class_(1),
                teacher_id=ids.teacher,
                assigned_date=due_date,
                due_date=due_date,
            )
        ]

        result = await service.distribute(_request(ids, 1), ids.teacher)

        assert result.total_assigned == 1
        assert result.outcomes[0].skipped == 1
        assert result.diagnostics == [
            '1 student(s) in class "9C" were already assigned this work.'
        ]
        assert result.success is True

    @pytest.mark.asyncio
    async def test_concurrent_fanout_keeps_one_copy_per_student(self, repository, ids):
        service = DistributionService(
            repository,
            DistributionSettings(concurrent_fanout=True, max_concurrency=2),
        )
        s1, s2, s3 = ids.student(1), ids.student(2), ids.student(3)
        repository.add_class(ids.class_(1), "C1", ids.teacher, [s1, s2])
        repository.add_class(ids.class_(2), "C2", ids.teacher, [s2, s3])
        repository.add_class(ids.class_(3), "C3", ids.teacher, [])

        result = await service.distribute(_request(ids, 1, 2, 3), ids.teacher)

        assert result.total_assigned == 3
        assert sum(o.skipped for o in result.outcomes) == 1
        assert repository.holders(ids.assignment) == sorted([s1, s2, s3])
        assert [o.class_id for o in result.outcomes] == [
            ids.class_(1),
            ids.class_(2),
            ids.class_(3),
        ]
        assert result.outcomes[2].diagnostics[0].kind is DiagnosticKind.EMPTY_CLASS


class TestAbortingErrors:
    """Only request validation and template ownership abort."""

    @pytest.mark.asyncio
    async def test_foreign_assignment_raises_before_any_class(self, service, repository, ids):
        repository.add_class(ids.class_(1), "7B", ids.teacher, [ids.student(1)])
        request = _request(ids, 1)
        request["assignment_id"] = ids.foreign_assignment

        with pytest.raises(AssignmentNotFoundError):
            await service.distribute(request, ids.teacher)

        assert repository.calls == ["find_assignment"]
        assert repository.instances == {}

    @pytest.mark.asyncio
    async def test_missing_assignment_raises(self, service, repository, ids):
        request = _request(ids, 1)
        request["assignment_id"] = "aaaaaaaa-0000-4000-8000-0000000000ff"

        with pytest.raises(AssignmentNotFoundError, match="not authorized"):
            await service.distribute(request, ids.teacher)

    @pytest.mark.asyncio
    async def test_empty_class_list_rejected_before_store_access(self, service, repository, ids):
        with pytest.raises(InvalidDistributionRequestError) as exc_info:
            await service.distribute(_request(ids), ids.teacher)

        assert exc_info.value.field_errors == {
            "class_ids": "At least one class must be selected."
        }
        assert str(exc_info.value) == "At least one class must be selected."
        assert repository.calls == []

    @pytest.mark.asyncio
    async def test_bad_due_date_rejected(self, service, repository, ids):
        with pytest.raises(InvalidDistributionRequestError) as exc_info:
            await service.distribute(_request(ids, 1, due_date="next week"), ids.teacher)

        assert exc_info.value.field_errors == {
            "due_date": "Due date is required and must be a valid date."
        }
        assert str(exc_info.value) == "Validation failed. Please check the form."
        assert repository.calls == []

    @pytest.mark.asyncio
    async def test_validated_request_passed_through(self, service, repository, ids):
        """A DistributionRequest instance is used as-is."""
        repository.add_class(ids.class_(1), "7B", ids.teacher, [ids.student(1)])
        request = DistributionRequest(**_request(ids, 1))

        result = await service.distribute(request, ids.teacher)

        assert result.total_assigned == 1


class TestListing:
    """Read paths over distributed instances."""

    @pytest.mark.asyncio
    async def test_list_instances_requires_ownership(self, service, repository, ids):
        with pytest.raises(AssignmentNotFoundError):
            await service.list_instances(ids.foreign_assignment, ids.teacher)

    @pytest.mark.asyncio
    async def test_list_instances_and_student_view(self, service, repository, ids):
        repository.add_class(ids.class_(1), "7B", ids.teacher, [ids.student(1), ids.student(2)])
        await service.distribute(_request(ids, 1), ids.teacher)

        instances = await service.list_instances(ids.assignment, ids.teacher)
        mine = await service.list_for_student(ids.student(1))

        assert {i.student_id for i in instances} == {ids.student(1), ids.student(2)}
        assert len(mine) == 1
        assert mine[0].assignment_title == "Fractions"
        assert mine[0].status.value == "pending"


class TestConcurrentFanoutErrors:
    """Unexpected errors under concurrent fan-out."""

    @pytest.mark.asyncio
    async def test_unexpected_error_cancels_sibling_classes(self, repository, ids):
        service = DistributionService(
            repository,
            DistributionSettings(concurrent_fanout=True, max_concurrency=2, io_timeout_seconds=30),
        )
        repository.add_class(ids.class_(1), "Slow", ids.teacher, [ids.student(1)])
        repository.add_class(ids.class_(2), "Broken", ids.teacher, [ids.student(2)])
        repository.slow_classes.add(ids.class_(1))
        repository.broken_classes.add(ids.class_(2))

        with pytest.raises(ExceptionGroup) as exc_info:
            await service.distribute(_request(ids, 1, 2), ids.teacher)

        assert [type(e) for e in exc_info.value.exceptions] == [RuntimeError]
        assert repository.cancelled == [ids.class_(1)]
        assert repository.instances == {}


class TestConfiguredLogging:
    """Distribution under the application's structlog configuration."""

    @pytest.mark.asyncio
    async def test_distribute_with_json_logging(self, service, repository, ids):
        setup_logging(SimpleNamespace(log_level="DEBUG", is_development=False, debug=False))
        bind_context(user_id=ids.teacher, user_type="teacher")
        repository.add_class(ids.class_(1), "7B", ids.teacher, [ids.student(1)])
        repository.add_class(ids.class_(2), "Empty", ids.teacher, [])

        result = await service.distribute(_request(ids, 1, 2, 3), ids.teacher)

        assert result.success is True
        assert result.total_assigned == 1
        assert [o.diagnostics[0].kind for o in result.outcomes[1:]] == [
            DiagnosticKind.EMPTY_CLASS,
            DiagnosticKind.CLASS_NOT_FOUND,
        ]

    @pytest.mark.asyncio
    async def test_failed_insert_with_console_logging(self, service, repository, ids):
        setup_logging(SimpleNamespace(log_level="INFO", is_development=True, debug=True))
        repository.add_class(ids.class_(1), "Broken", ids.teacher, [ids.student(1)])
        repository.add_class(ids.class_(2), "7B", ids.teacher, [ids.student(2)])
        repository.failing_inserts.add(ids.class_(1))

        result = await service.distribute(_request(ids, 1, 2), ids.teacher)

        assert result.total_assigned == 1
        assert result.outcomes[0].diagnostics[0].kind is DiagnosticKind.PERSISTENCE_ERROR
        assert repository.holders(ids.assignment) == [ids.student(2)]
