"""
HTTP fetching with bounded timeouts.

All network access for feeds and article pages goes through ``fetch_url``,
which never raises: failures are reported on the returned FetchResult so
callers decide whether a failure is per-source, per-item, or ignorable.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either body will be populated (a response arrived) or error will be
    populated (network-level failure), but never both. status_code is None
    for network-level failures.

    Attributes:
        url: The URL that was fetched
        status_code: HTTP status code, or None if request failed before getting response
        body: The raw response body, or None on error
        text: The decoded response body, or None on error
        error: Error message if fetch failed, None on success
        timed_out: True when the failure was a timeout
    """

    url: str
    status_code: int | None
    body: bytes | None
    text: str | None
    error: str | None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code is not None and 200 <= self.status_code < 300


def fetch_url(
    url: str,
    timeout: float,
    user_agent: str,
    trust_env: bool = True,
    client: httpx.Client | None = None,
) -> FetchResult:
    """Fetch a URL using httpx.

    Uses a synchronous HTTP client that follows redirects and respects
    system proxy settings when trust_env is enabled. The request is
    abandoned once ``timeout`` seconds elapse. A single attempt is made.

    Args:
        url: The URL to fetch
        timeout: Request timeout in seconds
        user_agent: User-Agent header string
        trust_env: Whether to respect system proxy settings from environment
        client: Optional pre-built client (used by tests with a mock transport)

    Returns:
        FetchResult with the body on any HTTP response, or an error message
        on network failure or a malformed URL
    """
    headers = {"User-Agent": user_agent}
    try:
        if client is not None:
            resp = client.get(url, headers=headers, timeout=timeout, follow_redirects=True)
        else:
            with httpx.Client(
                timeout=timeout,
                headers=headers,
                follow_redirects=True,
                trust_env=trust_env,
            ) as owned:
                resp = owned.get(url)
    except httpx.TimeoutException as exc:
        return _failed(url, f"Timeout: {type(exc).__name__}: {exc}", timed_out=True)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        return _failed(url, f"{type(exc).__name__}: {exc}")

    return FetchResult(
        url=url,
        status_code=resp.status_code,
        body=resp.content,
        text=resp.text,
        error=None,
    )


def _failed(url: str, error: str, timed_out: bool = False) -> FetchResult:
    return FetchResult(url=url, status_code=None, body=None, text=None, error=error, timed_out=timed_out)
