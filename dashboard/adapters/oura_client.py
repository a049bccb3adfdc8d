"""Oura V2 live client: fetches raw detailed and daily-summary sleep records.

Every failure surfaces as an UpstreamError; nothing is retried unless
SD_UPSTREAM_MAX_ATTEMPTS is raised. The response body is returned as
untyped records for the reconciler, which owns all shape handling.
"""

from datetime import date
from typing import Any

import httpx
import structlog

from dashboard.adapters.http_client import NO_CACHE_HEADERS, TransientHTTPError, fetch
from dashboard.adapters.protocol import RawRecord
from dashboard.reconciler import SCORE_PATHS, lookup
from shared.config import settings
from shared.exceptions import UpstreamTimeoutError, UpstreamUnavailableError
from shared.metrics import upstream_api_duration_seconds, upstream_failures_total

logger = structlog.get_logger()

DETAILED_ENDPOINT = "sleep"
SUMMARY_ENDPOINT = "daily_sleep"


def extract_records(body: Any) -> list[RawRecord] | None:
    """Return the "data" array of a response body, or None if it has none."""
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    if not isinstance(data, list):
        return None
    return [item for item in data if isinstance(item, dict)]


def _score_locations(record: RawRecord) -> dict[str, Any]:
    return {".".join(path): lookup(record, path) for path in SCORE_PATHS}


class OuraClient:
    """Live data source: two read endpoints keyed by an inclusive date range."""

    source_name = "oura"

    def __init__(
        self,
        base_url: str | None = None,
        access_token: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.oura_base_url).rstrip("/")
        if access_token is None:
            access_token = settings.oura_access_token
        self._access_token = access_token
        self._timeout = timeout_seconds or settings.upstream_timeout_seconds
        self._transport = transport

    async def fetch_detailed(self, start: date, end: date) -> list[RawRecord]:
        return await self._fetch(DETAILED_ENDPOINT, start, end)

    async def fetch_summary(self, start: date, end: date) -> list[RawRecord]:
        return await self._fetch(SUMMARY_ENDPOINT, start, end)

    async def _fetch(self, endpoint: str, start: date, end: date) -> list[RawRecord]:
        url = f"{self._base_url}/v2/usercollection/{endpoint}"
        headers = {"Authorization": f"Bearer {self._access_token}", **NO_CACHE_HEADERS}
        params = {"start_date": start.isoformat(), "end_date": end.isoformat()}

        logger.debug("upstream_request", endpoint=endpoint, **params)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                with upstream_api_duration_seconds.labels(endpoint=endpoint).time():
                    resp = await fetch(client, "GET", url, headers=headers, params=params)
        except httpx.TimeoutException as exc:
            upstream_failures_total.labels(endpoint=endpoint, reason="timeout").inc()
            logger.error("upstream_timeout", endpoint=endpoint, timeout_seconds=self._timeout)
            raise UpstreamTimeoutError(endpoint, self._timeout) from exc
        except TransientHTTPError as exc:
            upstream_failures_total.labels(endpoint=endpoint, reason="http_status").inc()
            logger.error("upstream_error_status", endpoint=endpoint, status=exc.status_code)
            raise UpstreamUnavailableError(endpoint, exc.detail, exc.status_code) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            upstream_failures_total.labels(endpoint=endpoint, reason="http_status").inc()
            logger.error("upstream_error_status", endpoint=endpoint, status=status)
            raise UpstreamUnavailableError(endpoint, exc.response.text[:200], status) from exc
        except httpx.RequestError as exc:
            upstream_failures_total.labels(endpoint=endpoint, reason="transport").inc()
            logger.error("upstream_transport_error", endpoint=endpoint, error=str(exc))
            raise UpstreamUnavailableError(endpoint, str(exc) or type(exc).__name__) from exc

        try:
            body = resp.json()
        except ValueError:
            body = None

        records = extract_records(body)
        if records is None:
            logger.warning(
                "unexpected_upstream_shape",
                endpoint=endpoint,
                body_preview=resp.text[:200],
            )
            return []

        logger.info("upstream_records_fetched", endpoint=endpoint, count=len(records))
        if records:
            first = records[0]
            logger.debug(
                "upstream_first_record",
                endpoint=endpoint,
                days=[r.get("day") for r in records],
                keys=sorted(first.keys()),
                score_locations=_score_locations(first),
            )
        return records
