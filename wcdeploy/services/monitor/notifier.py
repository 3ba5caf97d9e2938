"""Desktop notification, speech and browser opening.

Notifications are best-effort UX. Every call swallows its own failure (it is
reported on the console when one is attached) and never affects the
monitor's outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from wcdeploy.core.result import Err, Result
from wcdeploy.output.console import ConsoleProtocol, Style
from wcdeploy.platform.detection import Platform, detect_platform
from wcdeploy.platform.process import ProcessError, run
from wcdeploy.services.monitor.timeouts import NOTIFIER_TIMEOUT_SECONDS

__all__ = [
    "Notifier",
    "SystemNotifier",
    "NullNotifier",
    "RecordingNotifier",
    "Notification",
    "SOUND_SUCCESS",
    "SOUND_FAILURE",
    "SOUND_TIMEOUT",
]

SOUND_SUCCESS = "Glass"
SOUND_FAILURE = "Basso"
SOUND_TIMEOUT = "Funk"


class Notifier(Protocol):
    def notify(self, title: str, message: str, sound: str = SOUND_SUCCESS) -> None: ...

    def speak(self, text: str) -> None: ...

    def open_url(self, url: str) -> None: ...


def _applescript_str(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def notification_command(platform: Platform, title: str, message: str, sound: str) -> list[str] | None:
    match platform:
        case Platform.MACOS:
            script = (
                f"display notification {_applescript_str(message)} "
                f"with title {_applescript_str(title)} sound name {_applescript_str(sound)}"
            )
            return ["osascript", "-e", script]
        case Platform.LINUX:
            return ["notify-send", "--app-name=wc-deploy", title, message]
        case _:
            return None


def speech_command(platform: Platform, text: str) -> list[str] | None:
    match platform:
        case Platform.MACOS:
            return ["say", text]
        case Platform.LINUX:
            return ["spd-say", text]
        case _:
            return None


def open_url_command(platform: Platform, url: str) -> list[str] | None:
    match platform:
        case Platform.MACOS:
            return ["open", url]
        case Platform.LINUX:
            return ["xdg-open", url]
        case Platform.WINDOWS:
            # The empty argument is the window title expected by `start`.
            return ["cmd", "/c", "start", "", url]
        case _:
            return None


class SystemNotifier:
    """Notifier backed by the platform's own command-line tools.

    macOS: osascript / say / open. Linux: notify-send / spd-say / xdg-open.
    """

    def __init__(
        self,
        *,
        console: ConsoleProtocol | None = None,
        platform: Platform | None = None,
        cwd: Path | None = None,
    ) -> None:
        self._console = console
        self._platform = platform or detect_platform()
        self._cwd = cwd or Path.cwd()

    def _run(self, what: str, cmd: list[str] | None) -> None:
        if cmd is None:
            self._report(what, f"not supported on {self._platform}")
            return
        result: Result[str, ProcessError] = run(cmd, cwd=self._cwd, timeout=NOTIFIER_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            self._report(what, result.error.stderr.strip() or str(result.error))

    def _report(self, what: str, detail: str) -> None:
        if self._console is not None:
            self._console.print(f"  {what} failed: {detail}", Style.DIM)

    def notify(self, title: str, message: str, sound: str = SOUND_SUCCESS) -> None:
        self._run("Notification", notification_command(self._platform, title, message, sound))

    def speak(self, text: str) -> None:
        self._run("Speech", speech_command(self._platform, text))

    def open_url(self, url: str) -> None:
        self._run("Opening URL", open_url_command(self._platform, url))


class NullNotifier:
    """Notifier that does nothing."""

    def notify(self, title: str, message: str, sound: str = SOUND_SUCCESS) -> None:
        del title, message, sound

    def speak(self, text: str) -> None:
        del text

    def open_url(self, url: str) -> None:
        del url


@dataclass(frozen=True, slots=True)
class Notification:
    title: str
    message: str
    sound: str


def _empty_notifications() -> list[Notification]:
    return []


def _empty_strs() -> list[str]:
    return []


@dataclass
class RecordingNotifier:
    """Notifier that records calls for testing."""

    notifications: list[Notification] = field(default_factory=_empty_notifications)
    spoken: list[str] = field(default_factory=_empty_strs)
    opened: list[str] = field(default_factory=_empty_strs)

    def notify(self, title: str, message: str, sound: str = SOUND_SUCCESS) -> None:
        self.notifications.append(Notification(title, message, sound))

    def speak(self, text: str) -> None:
        self.spoken.append(text)

    def open_url(self, url: str) -> None:
        self.opened.append(url)

    @property
    def titles(self) -> list[str]:
        return [n.title for n in self.notifications]
