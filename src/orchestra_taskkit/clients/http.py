"""Resilient HTTP client wrapper.

Provides a clean interface for HTTP requests with:
- Typed response objects
- Consistent error handling
- Centralized logging
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from orchestra_taskkit.errors import RemoteCallFailedError, TimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HTTPResponse:
    """Structured HTTP response.

    Attributes:
        status_code: HTTP status code (200, 404, etc.)
        body: Response body as string
        json: Parsed JSON body (None if not JSON)
        headers: Response headers as dict
        elapsed_ms: Request duration in milliseconds
        content: Raw response bytes (for binary payloads such as zip exports)
        ok: True if status code is 2xx
    """

    status_code: int
    body: str
    json: dict[str, Any] | list[Any] | None
    headers: dict[str, str]
    elapsed_ms: float = 0.0
    content: bytes = b""

    @property
    def ok(self) -> bool:
        """True if response has 2xx status code."""
        return 200 <= self.status_code < 300


def request(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    json_body: dict[str, Any] | list[Any] | None = None,
    auth: httpx.Auth | None = None,
    timeout: float | None = None,
) -> HTTPResponse:
    """Make an HTTP request with consistent error handling.

    Args:
        client: httpx.Client instance (from deps.http)
        method: HTTP method (GET, POST, PUT, PATCH, DELETE)
        url: Target URL
        headers: Optional request headers
        params: Optional query parameters (list values repeat the key)
        json_body: Optional JSON body for POST/PUT/PATCH
        auth: Optional httpx auth (e.g. httpx.BasicAuth)
        timeout: Optional timeout override (uses client default if not set)

    Returns:
        HTTPResponse with status, body, and parsed JSON

    Raises:
        RemoteCallFailedError: If the request could not be sent
        TimeoutError: If request times out
    """
    logger.debug(f"HTTP {method} {url}")

    kwargs: dict[str, Any] = {}
    if auth is not None:
        kwargs["auth"] = auth
    if timeout is not None:
        kwargs["timeout"] = timeout

    try:
        response = client.request(
            method=method.upper(),
            url=url,
            headers=headers,
            params=_clean_params(params),
            json=json_body,
            **kwargs,
        )
    except httpx.TimeoutException as e:
        raise TimeoutError(
            f"Request timed out: {method} {url}",
            timeout_seconds=timeout or client.timeout.connect,
        ) from e
    except httpx.RequestError as e:
        raise RemoteCallFailedError(
            f"Request failed: {e}",
            url=url,
            method=method,
        ) from e

    # Parse JSON if content-type indicates JSON
    json_data = None
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        with contextlib.suppress(ValueError):
            json_data = response.json()

    elapsed_ms = round(response.elapsed.total_seconds() * 1000, 2)

    result = HTTPResponse(
        status_code=response.status_code,
        body=response.text,
        json=json_data,
        headers=dict(response.headers),
        elapsed_ms=elapsed_ms,
        content=response.content,
    )

    logger.debug(f"HTTP {method} {url} -> {result.status_code} in {elapsed_ms}ms")
    return result


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop unset query parameters and render booleans the way the API expects."""
    if not params:
        return None
    cleaned: dict[str, Any] = {}
    for key, value in params.items():
        if value is None or value == []:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = value
    return cleaned or None
