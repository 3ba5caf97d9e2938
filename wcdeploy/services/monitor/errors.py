from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

AUTH_HTTP_STATUSES = frozenset({401, 403})


@dataclass(frozen=True, slots=True)
class RemoteError:
    """Failure of one deployment status request.

    kind:
        network: connection refused, timeout, DNS failure. Retried.
        http: non-2xx response. `status` holds the HTTP code.
        malformed: body is not a JSON object.
    """

    kind: Literal["network", "http", "malformed"]
    message: str
    status: int | None = None

    @property
    def is_retryable(self) -> bool:
        return self.kind == "network"

    @property
    def is_auth_error(self) -> bool:
        return self.kind == "http" and self.status in AUTH_HTTP_STATUSES

    def __str__(self) -> str:
        return self.message
