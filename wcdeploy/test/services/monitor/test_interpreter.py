"""Tests for snapshot classification and progress."""

from __future__ import annotations

import pytest

from wcdeploy.services.monitor.interpreter import (
    FailedTest,
    Phase,
    are_tests_complete,
    calculate_progress,
    classify,
    did_tests_pass,
    get_failed_tests,
    has_failed_early,
)
from wcdeploy.services.monitor.snapshot import Snapshot, TestRun


def _snap(*statuses: str, status: str = "processing") -> Snapshot:
    runs = tuple(
        TestRun(
            test_run_id=str(i),
            status=s,
            test_type=f"type{i}",
            result_url=f"https://qit.test/{i}",
        )
        for i, s in enumerate(statuses)
    )
    return Snapshot(status=status, test_runs=runs)


class TestCalculateProgress:
    def test_no_test_runs_is_queued(self) -> None:
        assert calculate_progress(Snapshot(status="queued")) == 5
        assert calculate_progress(Snapshot(status="processing")) == 5

    def test_empty_test_runs(self) -> None:
        assert calculate_progress(_snap()) == 10

    @pytest.mark.parametrize(
        ("statuses", "expected"),
        [
            (("pending", "pending"), 0),
            (("success", "running"), 50),
            (("success", "failed", "queued"), 67),
            (("success", "error", "cancelled", "pending"), 75),
            (("success", "success"), 100),
        ],
    )
    def test_ratio_of_finished_runs(self, statuses: tuple[str, ...], expected: int) -> None:
        assert calculate_progress(_snap(*statuses)) == expected

    def test_rounds_half_up(self) -> None:
        statuses = ("success",) + ("pending",) * 7
        assert calculate_progress(_snap(*statuses)) == 13


class TestAreTestsComplete:
    def test_absent_or_empty(self) -> None:
        assert are_tests_complete(Snapshot(status="queued")) is False
        assert are_tests_complete(_snap()) is False

    @pytest.mark.parametrize("pending", ["pending", "running", "queued"])
    def test_any_pending_run(self, pending: str) -> None:
        assert are_tests_complete(_snap("success", pending)) is False

    def test_all_finished(self) -> None:
        assert are_tests_complete(_snap("success", "failed", "cancelled")) is True


class TestHasFailedEarly:
    @pytest.mark.parametrize("status", ["failed", "error"])
    def test_top_level_failure_overrides_pending_runs(self, status: str) -> None:
        assert has_failed_early(_snap("pending", "pending", status=status)) is True

    def test_top_level_failure_without_runs(self) -> None:
        assert has_failed_early(Snapshot(status="failed")) is True

    def test_single_failed_run_while_others_pending(self) -> None:
        assert has_failed_early(_snap("failed", "running", "pending")) is True

    def test_error_run(self) -> None:
        assert has_failed_early(_snap("success", "error")) is True

    def test_healthy(self) -> None:
        assert has_failed_early(_snap("success", "running")) is False
        assert has_failed_early(Snapshot(status="queued")) is False


class TestDidTestsPass:
    def test_absent(self) -> None:
        assert did_tests_pass(Snapshot(status="completed")) is False

    def test_all_success(self) -> None:
        assert did_tests_pass(_snap("success", "success")) is True

    def test_one_non_success_among_many(self) -> None:
        assert did_tests_pass(_snap("success", "success", "success", "cancelled")) is False

    @pytest.mark.parametrize("status", ["Success", "SUCCESS", "success "])
    def test_status_must_match_exactly(self, status: str) -> None:
        assert did_tests_pass(_snap("success", status)) is False


def test_get_failed_tests_lists_every_non_success() -> None:
    failed = get_failed_tests(_snap("success", "failed", "pending"))
    assert failed == [
        FailedTest(type="type1", status="failed", url="https://qit.test/1"),
        FailedTest(type="type2", status="pending", url="https://qit.test/2"),
    ]
    assert failed[0].to_dict() == {"type": "type1", "status": "failed", "url": "https://qit.test/1"}


class TestClassify:
    def test_queued(self) -> None:
        assert classify(Snapshot(status="queued")) == Phase.QUEUED

    def test_in_progress(self) -> None:
        assert classify(_snap("success", "running")) == Phase.IN_PROGRESS
        assert classify(_snap()) == Phase.IN_PROGRESS

    def test_failed_early(self) -> None:
        assert classify(_snap("failed", "running")) == Phase.FAILED_EARLY

    def test_complete_success(self) -> None:
        assert classify(_snap("success")) == Phase.COMPLETE_SUCCESS

    def test_complete_failure_without_failed_runs(self) -> None:
        assert classify(_snap("success", "cancelled")) == Phase.COMPLETE_FAILURE
