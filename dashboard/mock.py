"""Synthetic sleep records for when the wearable API is unavailable."""

import random
from datetime import UTC, date, datetime, time, timedelta

from dashboard.domain.models import SENTINEL_HYPNOGRAM_TRACE, RecordOrigin, SleepRecord

_BASE_VALUES = {
    "latency_seconds": 600,
    "total_sleep_seconds": 25200,
    "awake_seconds": 1800,
    "hypnogram_trace": SENTINEL_HYPNOGRAM_TRACE,
    "heart_rate_lowest": 52.0,
    "heart_rate_average": 62.0,
    "temperature_delta": 0.2,
}


def generate_mock(
    start: date, end: date, rng: random.Random | None = None
) -> list[SleepRecord]:
    """Generate one well-formed mock record per day of the inclusive range.

    Scores, efficiency and stage durations are randomized within plausible
    bounds; pass a seeded rng for deterministic output.
    """
    rng = rng or random.Random()
    days = (end - start).days + 1
    records: list[SleepRecord] = []

    for i in range(max(days, 0)):
        day = start + timedelta(days=i)
        midnight = datetime.combine(day, time.min, tzinfo=UTC)
        records.append(
            SleepRecord(
                id=f"mock-{i}",
                day=day,
                origin=RecordOrigin.MOCK,
                bedtime_start=midnight - timedelta(hours=8),
                bedtime_end=midnight - timedelta(minutes=30),
                quality_score=rng.randint(70, 99),
                efficiency_percent=rng.randint(80, 99),
                deep_sleep_seconds=rng.randint(4000, 6999),
                rem_sleep_seconds=rng.randint(5000, 8999),
                light_sleep_seconds=rng.randint(10000, 14999),
                **_BASE_VALUES,
            )
        )

    return records
