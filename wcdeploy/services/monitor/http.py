"""HTTP transport for the submission API.

This module provides:
- HttpClient: Protocol for form POSTs (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Scripted implementation for testing
"""

from __future__ import annotations

import ssl
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from wcdeploy import __version__
from wcdeploy.core.result import Err, Ok, Result
from wcdeploy.services.monitor.timeouts import HTTP_TIMEOUT_SECONDS

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
        body: Response body of a non-2xx answer, if any
    """

    url: str
    status: int
    message: str
    body: str = ""

    @property
    def is_network_error(self) -> bool:
        return self.status == 0

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations used by the status client."""

    def post_form(self, url: str, fields: Mapping[str, str]) -> Result[str, HttpError]:
        """POST url-encoded form fields.

        Returns:
            Ok with the response text on 2xx, or Err with HttpError
        """
        ...


class RealHttpClient:
    """Real HTTP client using urllib with system certificates."""

    def __init__(
        self,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        user_agent: str = f"wc-deploy/{__version__}",
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def post_form(self, url: str, fields: Mapping[str, str]) -> Result[str, HttpError]:
        data = urllib.parse.urlencode(dict(fields)).encode("utf-8")
        try:
            req = urllib.request.Request(
                url,
                data=data,
                method="POST",
                headers={
                    "User-Agent": self.user_agent,
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Accept": "application/json",
                },
            )
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                raw: bytes = response.read()
        except urllib.error.HTTPError as e:
            body = _read_error_body(e)
            return Err(HttpError(url=url, status=e.code, message=str(e.reason), body=body))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

        return Ok(raw.decode("utf-8", errors="replace"))


def _read_error_body(error: urllib.error.HTTPError) -> str:
    try:
        return error.read().decode("utf-8", errors="replace")
    except OSError:
        return "Unable to read response"


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are scripted per URL and served in order; the last scripted
    response keeps being served once the others are used up.

    Usage:
        client = MockHttpClient()
        client.set_responses(url, [HttpError(url=url, status=0, message="refused"),
                                   '{"status": "queued"}'])
    """

    def __init__(self) -> None:
        self._responses: dict[str, list[str | HttpError]] = {}
        self.calls: list[tuple[str, dict[str, str]]] = []

    def set_responses(self, url: str, responses: Sequence[str | HttpError]) -> None:
        if not responses:
            raise ValueError("at least one response is required")
        self._responses[url] = list(responses)

    def set_response(self, url: str, response: str | HttpError) -> None:
        self.set_responses(url, [response])

    def post_form(self, url: str, fields: Mapping[str, str]) -> Result[str, HttpError]:
        self.calls.append((url, dict(fields)))

        queue = self._responses.get(url)
        if not queue:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)
