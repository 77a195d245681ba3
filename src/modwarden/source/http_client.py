"""Shared HTTP client utilities for package sources.

Provides a thin wrapper around ``httpx.Client`` with standardised
timeouts, user-agent headers, and error handling, so that every source
talks to package indexes the same way and tests can patch one function.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from modwarden import __version__

logger = logging.getLogger(__name__)

# Timeout for all index HTTP requests (seconds).
DEFAULT_TIMEOUT: float = 30.0

# User-Agent sent with every request.
USER_AGENT: str = f"modwarden/{__version__}"


def fetch_json(
    url: str,
    *,
    params: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any] | list[Any]:
    """Fetch a URL and parse the response as JSON.

    Args:
        url: The URL to fetch.
        params: Optional query parameters.
        timeout: Request timeout in seconds.

    Returns:
        Parsed JSON response (dict or list). Empty dict on timeouts, HTTP
        errors, transport errors or invalid JSON; the failure is logged.
    """
    try:
        with httpx.Client(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        ) as client:
            resp = client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
    except httpx.TimeoutException:
        logger.warning("Timeout fetching %s", url)
        return {}
    except httpx.HTTPStatusError as exc:
        logger.warning("HTTP %d from %s", exc.response.status_code, url)
        return {}
    except (httpx.RequestError, ValueError) as exc:
        logger.warning("Request error for %s: %s", url, exc)
        return {}
