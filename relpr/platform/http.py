"""JSON-over-HTTP client abstraction for the GitHub REST API.

This module provides:
- HttpClient: Protocol with the get/post/patch primitives (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Route-table implementation for testing

Timeouts are owned by the client; callers only see Ok or Err.
"""

from __future__ import annotations

import json
import re
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from relpr.core.result import Err, Ok, Result
from relpr.core.structured import as_str_dict, get_str

__all__ = [
    "HttpClient",
    "HttpError",
    "JsonResponse",
    "MockHttpClient",
    "RealHttpClient",
]

_NEXT_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="next"')


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_transient(self) -> bool:
        """Network failures, rate limiting and server errors."""
        return self.status == 0 or self.status == 429 or self.status >= 500


@dataclass(frozen=True, slots=True)
class JsonResponse:
    """Decoded response body plus the pagination link, if any."""

    status: int
    data: object
    next_url: str | None = None


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for the HTTP primitives the platform adapter needs."""

    def get_json(self, url: str) -> Result[JsonResponse, HttpError]:
        """GET url and decode the JSON body."""
        ...

    def post_json(self, url: str, body: dict[str, object]) -> Result[JsonResponse, HttpError]:
        """POST a JSON body and decode the JSON response."""
        ...

    def patch_json(self, url: str, body: dict[str, object]) -> Result[JsonResponse, HttpError]:
        """PATCH a JSON body and decode the JSON response."""
        ...


def parse_next_link(header: str | None) -> str | None:
    """Extract the ``rel="next"`` URL from a ``Link`` header."""
    if not header:
        return None
    m = _NEXT_LINK_RE.search(header)
    return m.group(1) if m else None


def _error_message(raw: bytes, fallback: str) -> str:
    # GitHub puts the reason in {"message": ...}
    try:
        obj: object = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return fallback
    data = as_str_dict(obj)
    if data is None:
        return fallback
    return get_str(data, "message") or fallback


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - Bearer token and GitHub API version headers
    - JSON encoding/decoding
    - ``Link`` header pagination
    """

    def __init__(
        self,
        token: str,
        *,
        timeout: float = 30.0,
        user_agent: str = "relpr",
        api_version: str = "2022-11-28",
    ) -> None:
        self.timeout = timeout
        self._headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "User-Agent": user_agent,
            "X-GitHub-Api-Version": api_version,
        }
        self._ssl_context = ssl.create_default_context()

    def _request(
        self,
        method: str,
        url: str,
        body: dict[str, object] | None = None,
    ) -> Result[JsonResponse, HttpError]:
        headers = dict(self._headers)
        data: bytes | None = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        try:
            req = urllib.request.Request(url, data=data, headers=headers, method=method)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                status = int(response.status)
                raw = response.read()
                next_url = parse_next_link(response.headers.get("Link"))
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=_error_message(e.read(), e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

        if not raw.strip():
            return Ok(JsonResponse(status=status, data=None, next_url=next_url))
        try:
            payload: object = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=status, message=f"JSON parse error: {e}"))
        return Ok(JsonResponse(status=status, data=payload, next_url=next_url))

    def get_json(self, url: str) -> Result[JsonResponse, HttpError]:
        return self._request("GET", url)

    def post_json(self, url: str, body: dict[str, object]) -> Result[JsonResponse, HttpError]:
        return self._request("POST", url, body)

    def patch_json(self, url: str, body: dict[str, object]) -> Result[JsonResponse, HttpError]:
        return self._request("PATCH", url, body)


@dataclass(frozen=True, slots=True)
class MockCall:
    method: str
    url: str
    body: dict[str, object] | None


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are keyed by ``(method, url)``; unknown routes answer 404, which
    is also what GitHub says for a missing ref or release.

    Usage:
        client = MockHttpClient()
        client.set_json("GET", "https://api.github.com/repos/o/r/tags?per_page=100", [])
        result = client.get_json("https://api.github.com/repos/o/r/tags?per_page=100")
        assert result == Ok(JsonResponse(status=200, data=[]))
    """

    def __init__(self) -> None:
        self._responses: dict[tuple[str, str], list[JsonResponse | HttpError]] = {}
        self.calls: list[MockCall] = []

    def set_json(
        self,
        method: str,
        url: str,
        data: object,
        *,
        status: int = 200,
        next_url: str | None = None,
    ) -> None:
        """Answer every ``method url`` request with ``data``."""
        self._responses[(method, url)] = [JsonResponse(status=status, data=data, next_url=next_url)]

    def set_error(self, method: str, url: str, status: int, message: str = "mock error") -> None:
        self._responses[(method, url)] = [HttpError(url=url, status=status, message=message)]

    def queue(self, method: str, url: str, *responses: JsonResponse | HttpError) -> None:
        """Answer successive requests in order; the last one repeats."""
        self._responses[(method, url)] = list(responses)

    def _answer(
        self,
        method: str,
        url: str,
        body: dict[str, object] | None,
    ) -> Result[JsonResponse, HttpError]:
        self.calls.append(MockCall(method=method, url=url, body=body))
        queued = self._responses.get((method, url))
        if not queued:
            return Err(HttpError(url=url, status=404, message="Not Found (mock)"))
        response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_json(self, url: str) -> Result[JsonResponse, HttpError]:
        return self._answer("GET", url, None)

    def post_json(self, url: str, body: dict[str, object]) -> Result[JsonResponse, HttpError]:
        return self._answer("POST", url, body)

    def patch_json(self, url: str, body: dict[str, object]) -> Result[JsonResponse, HttpError]:
        return self._answer("PATCH", url, body)

    def calls_for(self, method: str) -> list[MockCall]:
        return [c for c in self.calls if c.method == method]

    @property
    def mutations(self) -> list[MockCall]:
        """POST and PATCH calls, i.e. everything that changes platform state."""
        return [c for c in self.calls if c.method != "GET"]
