"""Fixture data source: serves recorded upstream responses from disk (no HTTP).

Expects oura_detailed.json and oura_daily.json in the fixture directory,
each shaped like the live response ({"data": [...]}). A missing file reads
as an empty collection; an unreadable one fails like an upstream outage.
"""

import json
from datetime import date
from pathlib import Path

import structlog

from dashboard.adapters.oura_client import extract_records
from dashboard.adapters.protocol import RawRecord
from shared.exceptions import UpstreamUnavailableError
from shared.metrics import upstream_failures_total

logger = structlog.get_logger()

DETAILED_FILE = "oura_detailed.json"
SUMMARY_FILE = "oura_daily.json"


def _in_range(record: RawRecord, start: date, end: date) -> bool:
    day = record.get("day")
    if not isinstance(day, str):
        return True
    return start.isoformat() <= day[:10] <= end.isoformat()


class FixtureSleepSource:
    """Fixture-mode source: reads recorded payloads, filters to the range."""

    source_name = "oura"

    def __init__(self, fixture_dir: str | Path) -> None:
        self._dir = Path(fixture_dir)

    async def fetch_detailed(self, start: date, end: date) -> list[RawRecord]:
        return self._load(DETAILED_FILE, start, end)

    async def fetch_summary(self, start: date, end: date) -> list[RawRecord]:
        return self._load(SUMMARY_FILE, start, end)

    def _load(self, filename: str, start: date, end: date) -> list[RawRecord]:
        path = self._dir / filename
        if not path.exists():
            logger.debug("fixture_missing", path=str(path))
            return []
        try:
            body = json.loads(path.read_text())
        except (OSError, ValueError) as exc:
            upstream_failures_total.labels(endpoint=filename, reason="fixture").inc()
            logger.error("fixture_unreadable", path=str(path), error=str(exc))
            raise UpstreamUnavailableError(filename, str(exc)) from exc
        records = extract_records(body) or []
        return [r for r in records if _in_range(r, start, end)]
