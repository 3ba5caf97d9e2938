"""Process exit codes.

The monitor process and the CLI share these values; launchers and scripts
rely on them to tell "definitely broken" apart from "unknown, check manually".
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for the monitor process and CLI commands.

    - 0: All remote tests passed.
    - 1: Failure (early test failure, auth error, crash, bad invocation).
    - 2: Monitoring timed out; the deployment outcome is unknown.
    """

    OK = 0
    FAILURE = 1
    TIMEOUT = 2

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
