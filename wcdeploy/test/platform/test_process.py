from __future__ import annotations

import sys
from pathlib import Path

from wcdeploy.core.result import Err, Ok
from wcdeploy.platform.process import ProcessError, run, run_silent, spawn_detached


def test_run_returns_stdout(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
    assert isinstance(result, Ok)
    assert result.value.strip() == "hello"


def test_run_nonzero_exit(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "import sys; sys.exit(3)"], cwd=tmp_path)
    assert isinstance(result, Err)
    assert result.error.returncode == 3


def test_run_missing_executable(tmp_path: Path) -> None:
    result = run(["definitely-not-a-real-binary-wcdeploy"], cwd=tmp_path)
    assert isinstance(result, Err)
    assert result.error.returncode == -1


def test_run_timeout(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)
    assert isinstance(result, Err)
    assert "timed out" in result.error.stderr


def test_run_silent_reports_exit_code(tmp_path: Path) -> None:
    result = run_silent([sys.executable, "-c", "import sys; sys.exit(2)"], cwd=tmp_path)
    assert isinstance(result, Err)
    assert result.error.returncode == 2


def test_spawn_detached_returns_pid(tmp_path: Path) -> None:
    marker = tmp_path / "ran.txt"
    result = spawn_detached(
        [sys.executable, "-c", f"open({str(marker)!r}, 'w').write('x')"],
        cwd=tmp_path,
    )
    assert isinstance(result, Ok)
    assert result.value > 0


def test_spawn_detached_missing_executable(tmp_path: Path) -> None:
    result = spawn_detached(["definitely-not-a-real-binary-wcdeploy"], cwd=tmp_path)
    assert isinstance(result, Err)


def test_process_error_str_truncates_command() -> None:
    error = ProcessError(command=("osascript", "-e", "display", "x"), returncode=1, stdout="", stderr="")
    assert str(error) == "osascript -e display ... failed (exit 1)"
