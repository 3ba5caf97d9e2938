"""Operating system detection.

Notification, speech and URL opening are delegated to different tools on each
platform, so the notifier needs to know where it runs.
"""

from __future__ import annotations

import sys as _sys
from enum import Enum, auto
from functools import lru_cache

__all__ = ["Platform", "detect_platform"]


class Platform(Enum):
    """Operating system platform."""

    LINUX = auto()
    MACOS = auto()
    WINDOWS = auto()
    UNKNOWN = auto()

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_unix(self) -> bool:
        return self in (Platform.LINUX, Platform.MACOS)


@lru_cache(maxsize=1)
def detect_platform() -> Platform:
    """Detect the current platform (cached)."""
    if _sys.platform.startswith("linux"):
        return Platform.LINUX
    if _sys.platform == "darwin":
        return Platform.MACOS
    if _sys.platform in ("win32", "cygwin"):
        return Platform.WINDOWS
    return Platform.UNKNOWN
