"""Shared test fixtures."""

import json
import sys
from datetime import UTC, date, datetime
from pathlib import Path
from uuid import UUID

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dashboard.domain.models import SleepNote  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"
NOTE_ID = UUID("a1b2c3d4-5678-90ab-cdef-1234567890ab")


def load_fixture(name: str) -> dict:
    return json.loads((FIXTURES_DIR / name).read_text())


def make_note(day: date, text: str = "Late coffee") -> SleepNote:
    stamp = datetime(2024, 3, 15, 8, 0, tzinfo=UTC)
    return SleepNote(id=NOTE_ID, sleep_date=day, notes=text, created_at=stamp, updated_at=stamp)


@pytest.fixture
def detailed_response():
    return load_fixture("oura_detailed_response.json")


@pytest.fixture
def daily_response():
    return load_fixture("oura_daily_response.json")


@pytest.fixture
def detailed_records(detailed_response):
    return detailed_response["data"]


@pytest.fixture
def daily_records(daily_response):
    return daily_response["data"]


class FakeSource:
    """In-memory SleepDataSource that records the order of calls."""

    source_name = "fake"

    def __init__(self, detailed=None, summary=None, error: Exception | None = None):
        self.detailed = detailed or []
        self.summary = summary or []
        self.error = error
        self.calls: list[str] = []

    async def fetch_detailed(self, start, end):
        self.calls.append("detailed")
        if self.error:
            raise self.error
        return self.detailed

    async def fetch_summary(self, start, end):
        self.calls.append("summary")
        if self.error:
            raise self.error
        return self.summary


@pytest.fixture
def fixture_source(detailed_records, daily_records):
    return FakeSource(detailed=detailed_records, summary=daily_records)
