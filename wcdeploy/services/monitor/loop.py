"""Monitor Loop: tracks one deployment from upload to a terminal outcome.

    polling -> failed-early | succeeded | timed-out | auth-error

Each iteration polls the status API, records the result in the shared status
file and checks the terminal conditions in order: early failure first, then
complete success. Anything else sleeps for the poll interval and polls again
until the attempt ceiling is reached.

The monitor never tags or pushes. Success only prints the commands for the
operator, because a tag must not exist before the remote tests confirm the
version.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from time import sleep

from wcdeploy.core.config import MonitorConfig
from wcdeploy.core.errors import ErrorCode
from wcdeploy.core.result import Err
from wcdeploy.output.console import ConsoleProtocol, Style
from wcdeploy.services.monitor.client import StatusClient
from wcdeploy.services.monitor.errors import RemoteError
from wcdeploy.services.monitor.interpreter import (
    QUEUED_PROGRESS,
    are_tests_complete,
    calculate_progress,
    did_tests_pass,
    get_failed_tests,
    has_failed_early,
)
from wcdeploy.services.monitor.notifier import (
    SOUND_FAILURE,
    SOUND_SUCCESS,
    SOUND_TIMEOUT,
    Notifier,
)
from wcdeploy.services.monitor.snapshot import Snapshot
from wcdeploy.services.monitor.store import EntryIdentity, StatusStore, now_ms
from wcdeploy.services.monitor.timeouts import MAX_POLL_ATTEMPTS, POLL_INTERVAL_SECONDS

__all__ = ["Outcome", "DeployMonitor"]


class Outcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED_EARLY = "failed-early"
    AUTH_ERROR = "auth-error"
    TIMED_OUT = "timed-out"

    def __str__(self) -> str:
        return self.value

    @property
    def exit_code(self) -> ErrorCode:
        match self:
            case Outcome.SUCCEEDED:
                return ErrorCode.OK
            case Outcome.TIMED_OUT:
                return ErrorCode.TIMEOUT
            case _:
                return ErrorCode.FAILURE


class DeployMonitor:
    """State machine for one deployment.

    Collaborators are injected so tests can script the API, inspect the
    status file and record notifications.
    """

    def __init__(
        self,
        config: MonitorConfig,
        *,
        client: StatusClient,
        store: StatusStore,
        notifier: Notifier,
        console: ConsoleProtocol,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
    ) -> None:
        self.config = config
        self._client = client
        self._store = store
        self._notifier = notifier
        self._console = console
        self._poll_interval = poll_interval
        self._max_attempts = max(1, max_attempts)
        self._identity = EntryIdentity(
            product_id=config.product_id,
            slug=config.slug,
            version=config.version,
        )
        self._last_progress: int | None = None
        self._warned_inconclusive = False

    @property
    def _label(self) -> str:
        return f"{self.config.slug} v{self.config.version}"

    def _title(self, outcome: str) -> str:
        if self.config.is_batch_deploy:
            return f"Deploy {self.config.batch_label} {outcome}"
        return f"Deploy {outcome}"

    def run(self) -> Outcome:
        """Poll until a terminal outcome; each outcome is reported exactly once."""
        prefix = f"[{self.config.batch_label}] " if self.config.is_batch_deploy else ""
        self._console.header(f"{prefix}Monitoring deployment for {self._label}")
        self._console.print(f"Product ID: {self.config.product_id}")
        self._console.print(
            f"Polling every {self._poll_interval:g} seconds (max {self._max_attempts} attempts)",
            Style.DIM,
        )
        self._console.newline()

        self._store.update(self._identity, {"status": "queued", "progress": 0, "startTime": now_ms()})

        for attempt in range(1, self._max_attempts + 1):
            outcome = self._poll(attempt)
            if outcome is not None:
                return outcome
            if attempt < self._max_attempts:
                sleep(self._poll_interval)

        return self._timed_out()

    def _poll(self, attempt: int) -> Outcome | None:
        stamp = datetime.now().strftime("%H:%M:%S")
        self._console.print(f"[{stamp}] Checking status (attempt {attempt}/{self._max_attempts})...")

        result = self._client.check_status(self.config.credentials, self.config.product_id)
        if isinstance(result, Err):
            return self._on_error(result.error)

        snapshot = result.value
        progress = calculate_progress(snapshot)
        self._last_progress = progress
        self._console.print(f"  Status: {snapshot.status} ({progress}%)")

        fields: dict[str, object] = {"status": snapshot.status, "progress": progress}
        test_runs = snapshot.test_runs_dict()
        if test_runs is not None:
            fields["testRuns"] = test_runs
        self._store.update(self._identity, fields)
        for run in snapshot.test_runs or ():
            self._console.print(f"  {run.test_type}: {run.status}", Style.DIM)

        if has_failed_early(snapshot):
            return self._failed(snapshot, progress)

        if are_tests_complete(snapshot):
            if did_tests_pass(snapshot):
                return self._succeeded(snapshot)
            self._warn_inconclusive()

        return None

    def _on_error(self, error: RemoteError) -> Outcome | None:
        self._console.error(f"  {error.message}")
        self._store.update(self._identity, {"status": "error", "error": error.message})

        if not error.is_auth_error:
            return None

        self._console.error("Authentication error - stopping monitor")
        self._notifier.notify(
            self._title("Auth Error"),
            f"{self.config.slug}: {error.message}",
            SOUND_FAILURE,
        )
        self._console.newline()
        self._console.print("Check WC_USERNAME / WC_APP_PASSWORD, then restart the monitor:")
        self._console.print("  wc-deploy monitor", Style.BOLD)
        return Outcome.AUTH_ERROR

    def _warn_inconclusive(self) -> None:
        if self._warned_inconclusive:
            return
        self._warned_inconclusive = True
        self._console.warning(
            "All test runs finished without a pass or a failure; waiting for a conclusive status"
        )

    def _failed(self, snapshot: Snapshot, progress: int) -> Outcome:
        failed = get_failed_tests(snapshot)
        failed_types = ", ".join(test.type for test in failed) or f"deployment {snapshot.status}"

        self._console.newline()
        self._console.error(f"Tests failed: {failed_types}")
        for test in failed:
            line = f"  {test.type}: {test.status}"
            if test.url:
                line += f" ({test.url})"
            self._console.print(line, Style.DIM)

        self._store.update(
            self._identity,
            {
                "status": "failed",
                "progress": progress,
                "failedTests": [test.to_dict() for test in failed],
            },
        )

        if self.config.is_batch_deploy:
            self._notifier.notify(self._title("Failed"), f"{self._label}: {failed_types}", SOUND_FAILURE)
        else:
            self._notifier.notify(
                self._title("Failed"), f"{self._label} failed: {failed_types}", SOUND_FAILURE
            )
            self._notifier.speak("Deployment failed")
            if failed and failed[0].url:
                self._notifier.open_url(failed[0].url)

        self._console.newline()
        self._console.print(f"No tag was created for {self.config.version}. To retry:", Style.BOLD)
        self._console.print(f"  cd {self.config.working_dir}")
        self._console.print("  1. Fix the issues")
        self._console.print(f'  2. Amend the commit: git commit --amend -m "{self.config.commit_message}"')
        self._console.print("  3. Rebuild: wc-deploy build")
        self._console.print("  4. Redeploy: wc-deploy deploy --skip-build")
        return Outcome.FAILED_EARLY

    def _succeeded(self, snapshot: Snapshot) -> Outcome:
        self._console.newline()
        self._console.success("All tests passed!")

        self._store.update(self._identity, {"status": "success", "progress": 100})

        if self.config.is_batch_deploy:
            self._notifier.notify(self._title("Succeeded"), f"{self._label} - ready to tag", SOUND_SUCCESS)
        else:
            self._notifier.notify(
                self._title("Success"), f"{self._label} - ready to tag and push", SOUND_SUCCESS
            )
            self._notifier.speak("Deployment complete. Ready to tag.")
            runs = snapshot.test_runs or ()
            if runs and runs[0].result_url:
                self._notifier.open_url(runs[0].result_url)

        self._print_tag_commands("Deployment succeeded! Now tag and push:")
        return Outcome.SUCCEEDED

    def _timed_out(self) -> Outcome:
        minutes = self._poll_interval * self._max_attempts / 60
        progress = self._last_progress if self._last_progress is not None else QUEUED_PROGRESS

        self._console.newline()
        self._console.warning(f"Monitoring timed out after {minutes:g} minutes")

        self._store.update(self._identity, {"status": "timeout", "progress": progress})
        self._notifier.notify(
            self._title("Timeout"), f"{self._label} monitoring timed out", SOUND_TIMEOUT
        )

        self._console.newline()
        self._console.print("Check status manually: wc-deploy status", Style.BOLD)
        self._print_tag_commands("If successful, tag manually:")
        return Outcome.TIMED_OUT

    def _print_tag_commands(self, heading: str) -> None:
        self._console.newline()
        self._console.print(heading, Style.BOLD)
        self._console.print(f"  cd {self.config.working_dir}")
        self._console.print(f"  git tag {self.config.version}")
        self._console.print("  git push && git push --tags")
