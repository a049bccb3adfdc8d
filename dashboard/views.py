"""View models for the dashboard's card, table and trend layouts.

Pure presentation helpers: they shape SleepRecordWithNote values into JSON
the UI renders directly and do no I/O.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from dashboard.domain.models import SleepRecord, SleepRecordWithNote, SleepStage
from dashboard.hypnogram import decode_hypnogram

GOOD_SCORE = 80
FAIR_SCORE = 70


class ViewKind(StrEnum):
    CARDS = "cards"
    TABLE = "table"
    TREND = "trend"


def format_duration(seconds: int) -> str:
    """25200 → "7h 0m"."""
    seconds = max(int(seconds), 0)
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


def format_efficiency(efficiency: float) -> str:
    return f"{round(efficiency)}%"


def format_day(record: SleepRecord) -> str:
    """e.g. "Wed Mar 5, 2025"."""
    return f"{record.day:%a %b} {record.day.day}, {record.day.year}"


def format_time(ts: datetime | None) -> str | None:
    """e.g. "11:05 PM"; None when the timestamp is unknown."""
    if ts is None:
        return None
    return f"{ts.hour % 12 or 12}:{ts:%M %p}"


def stage_percentage(record: SleepRecord, stage: SleepStage) -> float:
    """Share of total sleep spent in a stage, 0-100. 0 when total is unknown."""
    if record.total_sleep_seconds == 0:
        return 0.0
    return record.stage_seconds(stage) / record.total_sleep_seconds * 100


def score_band(score: int) -> str:
    if score >= GOOD_SCORE:
        return "good"
    if score >= FAIR_SCORE:
        return "fair"
    return "poor"


def _note_dict(item: SleepRecordWithNote) -> dict[str, Any] | None:
    return item.note.model_dump(mode="json") if item.note else None


def card_view(item: SleepRecordWithNote) -> dict[str, Any]:
    """Full record plus formatted fields and the decoded hypnogram."""
    record = item.record
    return {
        **record.model_dump(mode="json"),
        "display": {
            "date": format_day(record),
            "bedtime": format_time(record.bedtime_start),
            "wake_time": format_time(record.bedtime_end),
            "total_sleep": format_duration(record.total_sleep_seconds),
            "deep_sleep": format_duration(record.deep_sleep_seconds),
            "rem_sleep": format_duration(record.rem_sleep_seconds),
            "light_sleep": format_duration(record.light_sleep_seconds),
            "efficiency": format_efficiency(record.efficiency_percent),
            "score_band": score_band(record.quality_score) if record.has_score else None,
        },
        "stage_percentages": {
            stage.value: round(stage_percentage(record, stage), 1) for stage in SleepStage
        },
        "hypnogram": decode_hypnogram(record.hypnogram_trace),
        "note": _note_dict(item),
    }


def table_row(item: SleepRecordWithNote) -> dict[str, Any]:
    record = item.record
    return {
        "id": record.id,
        "day": record.day.isoformat(),
        "date": format_day(record),
        "bedtime": format_time(record.bedtime_start),
        "wake_time": format_time(record.bedtime_end),
        "total_sleep": format_duration(record.total_sleep_seconds),
        "deep_sleep": format_duration(record.deep_sleep_seconds),
        "rem_sleep": format_duration(record.rem_sleep_seconds),
        "efficiency": format_efficiency(record.efficiency_percent),
        "quality_score": record.quality_score,
        "score_band": score_band(record.quality_score) if record.has_score else None,
        "has_note": bool(item.note and item.note.notes),
        "note": _note_dict(item),
    }


def _hours(seconds: int) -> float:
    return round(seconds / 3600, 1)


def trend_points(records: list[SleepRecord], max_points: int = 12) -> list[dict[str, Any]]:
    """Chart series, oldest to newest, down-sampled to at most max_points.

    Down-sampling keeps evenly spaced points and always keeps the latest day.
    """
    ordered = sorted(records, key=lambda r: r.day)
    if max_points > 0 and len(ordered) > max_points:
        step = -(-len(ordered) // max_points)
        sampled = ordered[::step][: max_points - 1]
        if not sampled or sampled[-1] is not ordered[-1]:
            sampled.append(ordered[-1])
        ordered = sampled

    return [
        {
            "day": r.day.isoformat(),
            "label": f"{r.day:%a %b} {r.day.day}",
            "total_sleep_hours": _hours(r.total_sleep_seconds),
            "deep_sleep_hours": _hours(r.deep_sleep_seconds),
            "rem_sleep_hours": _hours(r.rem_sleep_seconds),
            "light_sleep_hours": _hours(r.light_sleep_seconds),
            "quality_score": r.quality_score,
            "efficiency_percent": r.efficiency_percent,
        }
        for r in ordered
    ]
