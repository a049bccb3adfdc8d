"""HTTP client for wearable-data API calls.

Attempt policy:
- SD_UPSTREAM_MAX_ATTEMPTS bounds the attempts (default 1: no automatic retry)
- When raised, only transient errors are retried (429, 5xx, timeouts)
- 400, 401, 403 are never retried (client errors / auth failures)
- Exponential backoff with jitter between attempts
"""

import logging

import httpx
import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from shared.config import settings

logger = structlog.get_logger()

TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}

# Stale upstream responses have been served by intermediate caches before
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class TransientHTTPError(Exception):
    """Raised for HTTP errors that are safe to retry."""

    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


@retry(
    retry=retry_if_exception_type((TransientHTTPError, httpx.TimeoutException)),
    wait=wait_exponential_jitter(initial=1, max=10, jitter=2),
    stop=stop_after_attempt(settings.upstream_max_attempts),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def fetch(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs,
) -> httpx.Response:
    """Make an HTTP request, raising for any non-2xx response."""
    response = await client.request(method, url, **kwargs)

    if response.status_code in TRANSIENT_STATUS_CODES:
        raise TransientHTTPError(response.status_code, response.text[:200])

    response.raise_for_status()
    return response
