"""Remote Status Client: polls `/product/deploy/status`."""

from __future__ import annotations

import json
from time import sleep

from wcdeploy.core.config import Credentials
from wcdeploy.core.result import Err, Ok, Result
from wcdeploy.output.console import ConsoleProtocol, Style
from wcdeploy.services.monitor.errors import RemoteError
from wcdeploy.services.monitor.http import HttpClient, HttpError
from wcdeploy.services.monitor.snapshot import Snapshot, parse_snapshot
from wcdeploy.services.monitor.timeouts import (
    ERROR_BODY_EXCERPT_CHARS,
    STATUS_RETRY_ATTEMPTS,
    STATUS_RETRY_DELAY_SECONDS,
)

STATUS_ENDPOINT = "/product/deploy/status"


def status_url(credentials: Credentials) -> str:
    return f"{credentials.api_url.rstrip('/')}{STATUS_ENDPOINT}"


def _to_remote_error(error: HttpError) -> RemoteError:
    if error.is_network_error:
        return RemoteError(kind="network", message=f"Network error: {error.message}")
    excerpt = error.body[:ERROR_BODY_EXCERPT_CHARS]
    return RemoteError(
        kind="http",
        message=f"API error: {error.status} - {excerpt}",
        status=error.status,
    )


def _decode(body: str) -> Result[Snapshot, RemoteError]:
    try:
        obj: object = json.loads(body)
    except json.JSONDecodeError as e:
        return Err(RemoteError(kind="malformed", message=f"Invalid API response: {e}"))
    return parse_snapshot(obj)


class StatusClient:
    """Authenticated deployment status requests with bounded network retry.

    Only `network` failures are retried, with a fixed delay between attempts.
    `http` and `malformed` failures are returned on the first attempt.
    """

    def __init__(
        self,
        http: HttpClient,
        *,
        console: ConsoleProtocol | None = None,
        retry_attempts: int = STATUS_RETRY_ATTEMPTS,
        retry_delay: float = STATUS_RETRY_DELAY_SECONDS,
    ) -> None:
        self._http = http
        self._console = console
        self._attempts = max(1, retry_attempts)
        self._retry_delay = retry_delay

    def check_status(self, credentials: Credentials, product_id: str) -> Result[Snapshot, RemoteError]:
        url = status_url(credentials)
        fields = {
            "product_id": product_id,
            "username": credentials.username,
            "password": credentials.password,
        }

        error = RemoteError(kind="network", message="no status request attempted")
        for attempt in range(self._attempts):
            response = self._http.post_form(url, fields)
            if isinstance(response, Ok):
                return _decode(response.value)

            error = _to_remote_error(response.error)
            if attempt < self._attempts - 1 and error.is_retryable:
                if self._console is not None:
                    self._console.print(
                        f"  Network error, retrying ({attempt + 1}/{self._attempts})...",
                        Style.DIM,
                    )
                sleep(self._retry_delay)
                continue
            return Err(error)

        return Err(error)
