"""Deployment status snapshots parsed from the submission API.

The API answers with loosely shaped JSON:

    {
      "status": "processing",
      "test_runs": {
        "123": {"test_run_id": 123, "status": "running", "test_type": "security",
                "result_url": "https://..."}
      }
    }

`parse_snapshot` validates that shape once, at the boundary. Nothing past it
indexes raw JSON.
"""

from __future__ import annotations

from dataclasses import dataclass

from wcdeploy.core.result import Err, Ok, Result
from wcdeploy.core.structured import StrDict, as_obj_list, as_str_dict, get_id, get_str
from wcdeploy.services.monitor.errors import RemoteError

UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class TestRun:
    __test__ = False  # not a pytest test class

    test_run_id: str
    status: str
    test_type: str
    result_url: str | None = None

    def to_dict(self) -> StrDict:
        return {
            "test_run_id": self.test_run_id,
            "status": self.status,
            "test_type": self.test_type,
            "result_url": self.result_url,
        }


@dataclass(frozen=True, slots=True)
class Snapshot:
    """One poll's view of a deployment.

    Attributes:
        status: Top-level deployment status ("queued", "processing", "failed", ...).
        test_runs: None when the API sent no test runs yet; otherwise the runs
            in response order (possibly empty).
    """

    status: str
    test_runs: tuple[TestRun, ...] | None = None

    def test_runs_dict(self) -> dict[str, StrDict] | None:
        """Test runs keyed by id, as persisted in the shared status file."""
        if self.test_runs is None:
            return None
        return {run.test_run_id: run.to_dict() for run in self.test_runs}


def _parse_test_run(fallback_id: str, obj: object) -> TestRun | None:
    data = as_str_dict(obj)
    if data is None:
        return None
    return TestRun(
        test_run_id=get_id(data, "test_run_id") or fallback_id,
        status=get_str(data, "status") or UNKNOWN,
        test_type=get_str(data, "test_type") or UNKNOWN,
        result_url=get_str(data, "result_url"),
    )


def _parse_test_runs(obj: object) -> tuple[TestRun, ...] | None:
    if obj is None:
        return None

    items: list[tuple[str, object]]
    mapping = as_str_dict(obj)
    if mapping is not None:
        items = list(mapping.items())
    else:
        # An empty PHP associative array is serialized as [].
        seq = as_obj_list(obj)
        if seq is None:
            return None
        items = [(str(i), item) for i, item in enumerate(seq)]

    runs = [_parse_test_run(key, value) for key, value in items]
    return tuple(run for run in runs if run is not None)


def parse_snapshot(obj: object) -> Result[Snapshot, RemoteError]:
    """Validate a decoded API response."""
    data = as_str_dict(obj)
    if data is None:
        return Err(RemoteError(kind="malformed", message="Invalid API response: expected object"))

    return Ok(
        Snapshot(
            status=get_str(data, "status") or UNKNOWN,
            test_runs=_parse_test_runs(data.get("test_runs")),
        )
    )
