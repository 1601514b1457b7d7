"""
HTTP retrieval for feeds and raw release-notes documents.

A single synchronous httpx GET per call. There is no retry loop at this
layer: transport errors and non-success statuses are wrapped in FetchError
and propagate to the caller, which owns retry policy.
"""

from __future__ import annotations

import httpx


DEFAULT_USER_AGENT = "NewsletterGenerator/1.0"


class FetchError(RuntimeError):
    """Raised when a feed cannot be retrieved or parsed.

    Attributes:
        url: The URL that failed
        status_code: HTTP status code, or None for network-level failures
    """

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status_code = status_code


def fetch_text(
    url: str,
    timeout: float = 20.0,
    user_agent: str = DEFAULT_USER_AGENT,
    trust_env: bool = True,
    client: httpx.Client | None = None,
) -> str:
    """Fetch a URL and return the response body as text.

    Follows redirects. When a client is supplied it is used as-is (and not
    closed), otherwise a short-lived client is created for the request.

    Args:
        url: The URL to fetch
        timeout: Request timeout in seconds
        user_agent: User-Agent header string
        trust_env: Whether to respect system proxy settings from environment
        client: Optional pre-configured httpx client

    Returns:
        The decoded response body

    Raises:
        FetchError: On transport failure or a non-2xx response
    """
    headers = {"User-Agent": user_agent}
    try:
        if client is not None:
            resp = client.get(url, headers=headers, timeout=timeout, follow_redirects=True)
            resp.raise_for_status()
            return resp.text
        with httpx.Client(
            timeout=timeout,
            headers=headers,
            follow_redirects=True,
            trust_env=trust_env,
        ) as owned:
            resp = owned.get(url)
            resp.raise_for_status()
            return resp.text
    except httpx.HTTPStatusError as exc:
        raise FetchError(
            url, f"HTTP {exc.response.status_code}", status_code=exc.response.status_code
        ) from exc
    except httpx.HTTPError as exc:
        raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc


def resolve_redirect(
    url: str,
    timeout: float = 20.0,
    user_agent: str = DEFAULT_USER_AGENT,
    client: httpx.Client | None = None,
) -> str:
    """Follow redirects with a HEAD request and return the final URL.

    Raises:
        FetchError: On transport failure
    """
    headers = {"User-Agent": user_agent}
    try:
        if client is not None:
            resp = client.head(url, headers=headers, timeout=timeout, follow_redirects=True)
        else:
            with httpx.Client(timeout=timeout, headers=headers, follow_redirects=True) as owned:
                resp = owned.head(url)
    except httpx.HTTPError as exc:
        raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc
    return str(resp.url)
