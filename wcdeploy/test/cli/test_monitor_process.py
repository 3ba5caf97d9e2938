from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

import wcdeploy.cli.monitor_process as monitor_process
from wcdeploy.core.config import Credentials, MonitorConfig
from wcdeploy.core.result import Ok
from wcdeploy.services.monitor.loop import Outcome

runner = CliRunner()


def _payload(tmp_path: Path) -> str:
    return MonitorConfig(
        product_id="18734",
        version="8.1.0",
        slug="woocommerce-product-bundles",
        credentials=Credentials(username="dev", password="secret"),
        working_dir=tmp_path,
        commit_message="Deploy version 8.1.0",
    ).to_payload()


class _FakeMonitor:
    def __init__(self, outcome: Outcome | Exception) -> None:
        self._outcome = outcome

    def run(self) -> Outcome:
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome


def test_missing_argument_exits_one() -> None:
    result = runner.invoke(monitor_process.app, [])
    assert result.exit_code == 1
    assert "missing config argument" in result.output


def test_undecodable_payload_exits_one() -> None:
    result = runner.invoke(monitor_process.app, ["not-base64!"])
    assert result.exit_code == 1
    assert "undecodable payload" in result.output


@pytest.mark.parametrize(
    ("outcome", "code"),
    [
        (Outcome.SUCCEEDED, 0),
        (Outcome.FAILED_EARLY, 1),
        (Outcome.AUTH_ERROR, 1),
        (Outcome.TIMED_OUT, 2),
    ],
)
def test_exit_code_follows_outcome(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, outcome: Outcome, code: int
) -> None:
    seen: list[MonitorConfig] = []

    def fake_build_monitor(config: MonitorConfig, **_kwargs: object) -> _FakeMonitor:
        seen.append(config)
        return _FakeMonitor(outcome)

    monkeypatch.setattr(monitor_process, "build_monitor", fake_build_monitor)

    result = runner.invoke(monitor_process.app, [_payload(tmp_path)])

    assert result.exit_code == code
    assert seen[0].product_id == "18734"


def test_crash_exits_one(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_build_monitor(config: MonitorConfig, **_kwargs: object) -> _FakeMonitor:
        del config
        return _FakeMonitor(RuntimeError("boom"))

    monkeypatch.setattr(monitor_process, "build_monitor", fake_build_monitor)

    result = runner.invoke(monitor_process.app, [_payload(tmp_path)])

    assert result.exit_code == 1
    assert "Monitor crashed: boom" in result.output


def test_build_monitor_wires_status_file(tmp_path: Path) -> None:
    from wcdeploy.output.console import MockConsole
    from wcdeploy.services.monitor.http import MockHttpClient
    from wcdeploy.services.monitor.notifier import RecordingNotifier

    decoded = MonitorConfig.from_payload(_payload(tmp_path))
    assert isinstance(decoded, Ok)
    config = decoded.value

    monitor = monitor_process.build_monitor(
        config, console=MockConsole(), http=MockHttpClient(), notifier=RecordingNotifier()
    )
    assert monitor.config == config


def test_build_monitor_runs_with_silent_notifier(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import json

    from wcdeploy.output.console import MockConsole
    from wcdeploy.services.monitor import loop as loop_mod
    from wcdeploy.services.monitor.client import status_url
    from wcdeploy.services.monitor.http import MockHttpClient
    from wcdeploy.services.monitor.notifier import NullNotifier

    monkeypatch.setattr(loop_mod, "sleep", lambda _seconds: None)
    decoded = MonitorConfig.from_payload(_payload(tmp_path))
    assert isinstance(decoded, Ok)
    config = decoded.value

    http = MockHttpClient()
    http.set_response(
        status_url(config.credentials),
        json.dumps({"status": "completed", "test_runs": {"1": {"status": "success", "test_type": "security"}}}),
    )
    monitor = monitor_process.build_monitor(config, console=MockConsole(), http=http, notifier=NullNotifier())

    assert monitor.run() == Outcome.SUCCEEDED
