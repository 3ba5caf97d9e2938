"""Pure classification of deployment snapshots.

Early failure and completion are separate predicates: one failed test run
ends monitoring at once, without waiting for slower sibling runs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from wcdeploy.core.structured import StrDict
from wcdeploy.services.monitor.snapshot import Snapshot

PENDING_STATUSES = frozenset({"pending", "running", "queued"})
FAILED_STATUSES = frozenset({"failed", "error"})
SUCCESS_STATUS = "success"

QUEUED_PROGRESS = 5
NO_RUNS_PROGRESS = 10


class Phase(Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in-progress"
    FAILED_EARLY = "failed-early"
    COMPLETE_SUCCESS = "complete-success"
    COMPLETE_FAILURE = "complete-failure"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class FailedTest:
    type: str
    status: str
    url: str | None

    def to_dict(self) -> StrDict:
        return {"type": self.type, "status": self.status, "url": self.url}


def _is_finished(status: str) -> bool:
    return status not in PENDING_STATUSES


def calculate_progress(snapshot: Snapshot) -> int:
    """Progress estimate in percent (0-100)."""
    if snapshot.test_runs is None:
        return QUEUED_PROGRESS
    total = len(snapshot.test_runs)
    if total == 0:
        return NO_RUNS_PROGRESS

    completed = sum(1 for run in snapshot.test_runs if _is_finished(run.status))
    # Half-up rounding: 1 of 8 finished reads as 13%, not 12%.
    return int(math.floor(100 * completed / total + 0.5))


def are_tests_complete(snapshot: Snapshot) -> bool:
    if not snapshot.test_runs:
        return False
    return all(_is_finished(run.status) for run in snapshot.test_runs)


def has_failed_early(snapshot: Snapshot) -> bool:
    """True once the deployment or any single test run has failed."""
    if snapshot.status in FAILED_STATUSES:
        return True
    runs = snapshot.test_runs or ()
    return any(run.status in FAILED_STATUSES for run in runs)


def did_tests_pass(snapshot: Snapshot) -> bool:
    if snapshot.test_runs is None:
        return False
    return all(run.status == SUCCESS_STATUS for run in snapshot.test_runs)


def get_failed_tests(snapshot: Snapshot) -> list[FailedTest]:
    """Every test run that did not succeed, pending ones included."""
    runs = snapshot.test_runs or ()
    return [
        FailedTest(type=run.test_type, status=run.status, url=run.result_url)
        for run in runs
        if run.status != SUCCESS_STATUS
    ]


def classify(snapshot: Snapshot) -> Phase:
    if has_failed_early(snapshot):
        return Phase.FAILED_EARLY
    if are_tests_complete(snapshot):
        return Phase.COMPLETE_SUCCESS if did_tests_pass(snapshot) else Phase.COMPLETE_FAILURE
    if snapshot.test_runs is None:
        return Phase.QUEUED
    return Phase.IN_PROGRESS
