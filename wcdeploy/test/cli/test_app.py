from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from wcdeploy import __version__
from wcdeploy.cli.app import app
from wcdeploy.core.config import Credentials, MonitorConfig, ProductConfig
from wcdeploy.core.result import Ok, Result
from wcdeploy.services.monitor.launcher import BatchLaunch

runner = CliRunner()


def _extension(root: Path, slug: str, product_id: int) -> Path:
    path = root / slug
    path.mkdir()
    (path / ".deployrc.json").write_text(json.dumps({"productId": product_id, "slug": slug}), encoding="utf-8")
    (path / "package.json").write_text(json.dumps({"version": "3.0.0"}), encoding="utf-8")
    return path


@pytest.fixture
def creds_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WC_USERNAME", "dev")
    monkeypatch.setenv("WC_APP_PASSWORD", "secret")
    monkeypatch.delenv("WC_API_URL", raising=False)


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_monitor_single_runs_in_foreground(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, creds_env: None
) -> None:
    import wcdeploy.cli.commands.monitor_cmd as monitor_cmd

    ext = _extension(tmp_path, "woocommerce-gift-cards", 5501)
    seen: list[MonitorConfig] = []

    def fake_run_foreground(config: MonitorConfig) -> int:
        seen.append(config)
        return 2

    monkeypatch.setattr(monitor_cmd, "run_foreground", fake_run_foreground)

    result = runner.invoke(app, ["monitor", str(ext)])

    assert result.exit_code == 2
    assert seen[0].product_id == "5501"
    assert seen[0].version == "3.0.0"
    assert seen[0].is_batch_deploy is False


def test_monitor_requires_credentials(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WC_USERNAME", raising=False)
    monkeypatch.delenv("WC_APP_PASSWORD", raising=False)
    ext = _extension(tmp_path, "woocommerce-gift-cards", 5501)

    result = runner.invoke(app, ["monitor", str(ext)])

    assert result.exit_code == 1
    assert "credentials not found" in result.output


def test_monitor_single_without_deployrc(tmp_path: Path, creds_env: None) -> None:
    result = runner.invoke(app, ["monitor", str(tmp_path)])
    assert result.exit_code == 1
    assert ".deployrc.json" in result.output


def test_monitor_batch_launches_background_monitors(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, creds_env: None
) -> None:
    import wcdeploy.cli.commands.monitor_cmd as monitor_cmd

    a = _extension(tmp_path, "ext-a", 1)
    b = _extension(tmp_path, "ext-b", 2)
    broken = tmp_path / "broken"
    broken.mkdir()
    status_file = tmp_path / "status.json"
    seen: dict[str, object] = {}

    def fake_launch_batch(
        products: list[ProductConfig], credentials: Credentials, *, status_file: Path
    ) -> Result[BatchLaunch, str]:
        seen["slugs"] = [p.slug for p in products]
        seen["status_file"] = status_file
        return Ok(BatchLaunch(started=[(p, 4000 + i) for i, p in enumerate(products)], failed=[]))

    monkeypatch.setattr(monitor_cmd, "launch_batch", fake_launch_batch)

    result = runner.invoke(
        app, ["monitor", str(a), str(b), str(broken), "--status-file", str(status_file)]
    )

    assert result.exit_code == 0
    assert seen["slugs"] == ["ext-a", "ext-b"]
    assert seen["status_file"] == status_file
    assert "PID: 4000" in result.output
    assert "Could not load" in result.output


def test_monitor_all_reads_extensions_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, creds_env: None
) -> None:
    import wcdeploy.cli.commands.monitor_cmd as monitor_cmd

    a = _extension(tmp_path, "ext-a", 1)
    config = tmp_path / "extensions.json"
    config.write_text(json.dumps({"extensions": [str(a)]}), encoding="utf-8")
    seen: list[int] = []

    def fake_launch_batch(
        products: list[ProductConfig], credentials: Credentials, *, status_file: Path
    ) -> Result[BatchLaunch, str]:
        seen.append(len(products))
        return Ok(BatchLaunch(started=[(products[0], 1)], failed=[]))

    monkeypatch.setattr(monitor_cmd, "launch_batch", fake_launch_batch)

    result = runner.invoke(
        app, ["monitor", "--all", "--config", str(config), "--status-file", str(tmp_path / "s.json")]
    )

    assert result.exit_code == 0
    assert seen == [1]


def test_monitor_all_without_config(tmp_path: Path, creds_env: None) -> None:
    result = runner.invoke(app, ["monitor", "--all", "--config", str(tmp_path / "missing.json")])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_monitor_batch_with_no_valid_extensions(tmp_path: Path, creds_env: None) -> None:
    (tmp_path / "x").mkdir()
    (tmp_path / "y").mkdir()

    result = runner.invoke(app, ["monitor", str(tmp_path / "x"), str(tmp_path / "y")])

    assert result.exit_code == 1
    assert "No valid extensions found" in result.output


def test_summary_renders_status_file(tmp_path: Path) -> None:
    path = tmp_path / "status.json"
    path.write_text(
        json.dumps(
            [
                {"productId": "1", "slug": "woocommerce-a", "version": "1.0.0", "status": "success",
                 "progress": 100, "startTime": 0, "lastUpdate": 90_000},
                {"productId": "2", "slug": "woocommerce-b", "version": "2.0.0", "status": "processing",
                 "progress": 50, "startTime": 0},
            ]
        ),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["summary", "--status-file", str(path)])

    assert result.exit_code == 0
    assert "SUCCESS" in result.output
    assert "1 complete | 0 failed | 1 in progress" in result.output


def test_summary_exits_one_on_failures(tmp_path: Path) -> None:
    path = tmp_path / "status.json"
    path.write_text(
        json.dumps([{"productId": "1", "slug": "a", "version": "1", "status": "error",
                     "error": "API error: 500 - oops"}]),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["summary", "--status-file", str(path)])

    assert result.exit_code == 1
    assert "API error: 500 - oops" in result.output


def test_summary_empty(tmp_path: Path) -> None:
    result = runner.invoke(app, ["summary", "--status-file", str(tmp_path / "none.json")])
    assert result.exit_code == 0
    assert "No deployments recorded" in result.output
