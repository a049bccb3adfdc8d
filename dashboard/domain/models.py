"""Canonical sleep record and note models.

SleepRecord is one calendar day's sleep, reconciled from the wearable API's
detailed and daily-summary endpoints (or synthesized by the mock generator).

Design principles:
- Field-complete: every measurement has a real value or a documented default
- Zero means "unknown" for quality_score
- Provenance: origin says which source built the record; raw_payload keeps it
- Records are built per request and never persisted; only notes persist
"""

from datetime import date, datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# 1 = deep, 2 = light, 3 = REM, 4 = awake; one code per 5-minute interval
SENTINEL_HYPNOGRAM_TRACE = "4444332221111222333444332221111222333444"


class RecordOrigin(StrEnum):
    DETAILED = "detailed"
    SUMMARY = "summary"
    MOCK = "mock"


class SleepStage(StrEnum):
    DEEP = "deep"
    LIGHT = "light"
    REM = "rem"


class SleepRecord(BaseModel):
    """Canonical representation of one day's sleep."""

    # Identity
    id: str
    day: date
    origin: RecordOrigin

    # Timing (None = upstream did not provide it)
    bedtime_start: datetime | None = None
    bedtime_end: datetime | None = None
    latency_seconds: int = Field(0, ge=0)

    # Durations
    total_sleep_seconds: int = Field(0, ge=0)
    awake_seconds: int = Field(0, ge=0)
    light_sleep_seconds: int = Field(0, ge=0)
    rem_sleep_seconds: int = Field(0, ge=0)
    deep_sleep_seconds: int = Field(0, ge=0)

    # Quality
    efficiency_percent: int = 0
    hypnogram_trace: str = SENTINEL_HYPNOGRAM_TRACE
    quality_score: int = Field(0, ge=0)

    # Vitals
    heart_rate_lowest: float = 0.0
    heart_rate_average: float = 0.0
    temperature_delta: float = 0.0

    # Provenance
    raw_payload: dict = Field(default_factory=dict, exclude=True)

    @property
    def has_score(self) -> bool:
        return self.quality_score > 0

    def stage_seconds(self, stage: SleepStage) -> int:
        return {
            SleepStage.DEEP: self.deep_sleep_seconds,
            SleepStage.LIGHT: self.light_sleep_seconds,
            SleepStage.REM: self.rem_sleep_seconds,
        }[stage]


class SleepNote(BaseModel):
    """A user-authored note attached to one sleep day."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sleep_date: date
    notes: str
    created_at: datetime
    updated_at: datetime


class SleepRecordWithNote(BaseModel):
    record: SleepRecord
    note: SleepNote | None = None
