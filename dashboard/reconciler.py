"""Detailed + daily-summary → canonical SleepRecord reconciliation.

Inbound anti-corruption layer for the wearable API. The detailed-session
endpoint and the daily-summary endpoint disagree on field names and nesting,
and both have changed shape over time. Every canonical field is therefore
filled by probing a priority-ordered list of candidate paths; supporting a
new upstream shape means adding a path to one of the tuples below.

Merge policy:
- one record per day; the detailed source wins every field
- except quality_score, where a valid summary score overrides
- summary records are only used directly when the detailed source is empty

Pure functions: no I/O, no logging, never raises on malformed input.
"""

import json
import math
from collections.abc import Callable, Iterable
from datetime import date, datetime
from typing import Any

from dashboard.domain.models import SENTINEL_HYPNOGRAM_TRACE, RecordOrigin, SleepRecord

RawRecord = dict[str, Any]
Path = tuple[str, ...]

# Score locations, strict priority order
SCORE_PATHS: tuple[Path, ...] = (
    ("score",),
    ("contributors", "score", "value"),
    ("sleep_score",),
    ("sleep_score_delta",),
)

# Keys under which a record may carry its original, pre-mapping payload
NESTED_PAYLOAD_KEYS: tuple[str, ...] = ("_rawData", "rawData", "raw_data", "sleep")

DETAILED_FIELD_PATHS: dict[str, tuple[Path, ...]] = {
    "total_sleep_seconds": (
        ("duration",),
        ("total_sleep_duration",),
        ("total_sleep",),
        ("sleep_duration",),
        ("total",),
    ),
    "awake_seconds": (("awake_time",), ("awake_duration",), ("awake",)),
    "light_sleep_seconds": (("light_sleep_duration",), ("light_sleep",), ("light",)),
    "rem_sleep_seconds": (("rem_sleep_duration",), ("rem_sleep",), ("rem",)),
    "deep_sleep_seconds": (("deep_sleep_duration",), ("deep_sleep",), ("deep",)),
    "latency_seconds": (("latency",), ("sleep_latency",)),
    "efficiency_percent": (("efficiency",),),
    "heart_rate_lowest": (("hr_lowest",), ("lowest_heart_rate",)),
    "heart_rate_average": (("hr_average",), ("average_heart_rate",)),
    "temperature_delta": (("temperature_delta",),),
    "hypnogram_trace": (
        ("hypnogram", "hypnogram_5min"),
        ("sleep_phase_5_min",),
        ("hypnogram_5min",),
    ),
}

# The daily-summary endpoint nests per-metric values under "contributors"
SUMMARY_CONTRIBUTOR_PATHS: dict[str, tuple[Path, ...]] = {
    "total_sleep_seconds": (("contributors", "total_sleep", "value"),),
    "awake_seconds": (("contributors", "awake_time", "value"),),
    "light_sleep_seconds": (("contributors", "light_sleep", "value"),),
    "rem_sleep_seconds": (("contributors", "rem_sleep", "value"),),
    "deep_sleep_seconds": (("contributors", "deep_sleep", "value"),),
    "latency_seconds": (("contributors", "latency", "value"),),
    "efficiency_percent": (("contributors", "efficiency", "value"),),
    "heart_rate_lowest": (("contributors", "restfulness", "hr_lowest"),),
    "heart_rate_average": (("contributors", "restfulness", "hr_average"),),
    "temperature_delta": (("contributors", "temperature", "value"),),
}

SUMMARY_FIELD_PATHS: dict[str, tuple[Path, ...]] = {
    name: paths + SUMMARY_CONTRIBUTOR_PATHS.get(name, ())
    for name, paths in DETAILED_FIELD_PATHS.items()
}


# --- Coercion helpers ---


def _to_float(value: Any) -> float | None:
    """Coerce a number or numeric string to a finite float. None on failure."""
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        result = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        # OverflowError: integers beyond float range
        return None
    return result if math.isfinite(result) else None


def _to_int(value: Any) -> int | None:
    number = _to_float(value)
    return int(number) if number is not None else None


def _to_seconds(value: Any) -> int | None:
    seconds = _to_int(value)
    return max(seconds, 0) if seconds is not None else None


def _to_trace(value: Any) -> str | None:
    """Accept a non-empty trace string, or a list of codes encoded as JSON."""
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, list) and value:
        return json.dumps(value)
    return None


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _parse_day(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


_COERCERS: dict[str, Callable[[Any], Any]] = {
    "total_sleep_seconds": _to_seconds,
    "awake_seconds": _to_seconds,
    "light_sleep_seconds": _to_seconds,
    "rem_sleep_seconds": _to_seconds,
    "deep_sleep_seconds": _to_seconds,
    "latency_seconds": _to_seconds,
    "efficiency_percent": _to_int,
    "heart_rate_lowest": _to_float,
    "heart_rate_average": _to_float,
    "temperature_delta": _to_float,
    "hypnogram_trace": _to_trace,
}

_DEFAULTS: dict[str, Any] = {
    "total_sleep_seconds": 0,
    "awake_seconds": 0,
    "light_sleep_seconds": 0,
    "rem_sleep_seconds": 0,
    "deep_sleep_seconds": 0,
    "latency_seconds": 0,
    "efficiency_percent": 0,
    "heart_rate_lowest": 0.0,
    "heart_rate_average": 0.0,
    "temperature_delta": 0.0,
    "hypnogram_trace": SENTINEL_HYPNOGRAM_TRACE,
}


# --- Probing ---


def lookup(record: RawRecord, path: Path) -> Any:
    """Follow a key path through nested dicts. None if any hop is missing."""
    node: Any = record
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _probe(record: RawRecord, paths: Iterable[Path], coerce: Callable[[Any], Any]) -> Any:
    """Return the first present, non-null, coercible candidate value."""
    for path in paths:
        value = lookup(record, path)
        if value is None:
            continue
        coerced = coerce(value)
        if coerced is not None:
            return coerced
    return None


def _unwrap(record: RawRecord) -> RawRecord:
    """Some upstream shapes wrap the real payload one level deeper under "sleep"."""
    nested = record.get("sleep")
    return nested if isinstance(nested, dict) else record


def _nested_payload(record: RawRecord) -> RawRecord | None:
    for key in NESTED_PAYLOAD_KEYS:
        nested = record.get(key)
        if isinstance(nested, dict):
            return nested
    return None


def _record_day(payload: RawRecord, wrapper: RawRecord) -> date | None:
    return (
        _parse_day(payload.get("day"))
        or _parse_day(wrapper.get("day"))
        or _parse_day(payload.get("bedtime_end"))
    )


# --- Score extraction ---


def extract_score(record: Any) -> int:
    """Extract a sleep quality score from a single raw record.

    Candidates in strict priority order: score, contributors.score.value,
    sleep_score, sleep_score_delta. The first present, non-null candidate is
    coerced to an integer. Returns 0 ("unknown") when nothing is present,
    coercion fails, or the value is not positive.
    """
    if not isinstance(record, dict):
        return 0
    for path in SCORE_PATHS:
        value = lookup(record, path)
        if value is None:
            continue
        score = _to_int(value)
        return score if score is not None and score > 0 else 0
    return 0


def summary_scores_by_day(summary_raw: Iterable[Any]) -> dict[date, int]:
    """Build day → score from summary records, keeping only valid scores.

    If no record yields a score directly, fall back to each record's nested
    original payload, which tolerates the summary endpoint changing shape.
    """
    records = [r for r in summary_raw if isinstance(r, dict)]
    scores: dict[date, int] = {}

    for record in records:
        payload = _unwrap(record)
        day = _record_day(payload, record)
        score = extract_score(payload)
        if day is not None and score > 0:
            scores[day] = score

    if scores:
        return scores

    for record in records:
        nested = _nested_payload(record)
        if nested is None:
            continue
        day = _record_day(nested, record)
        score = extract_score(nested)
        if day is not None and score > 0:
            scores[day] = score

    return scores


# --- Normalization ---


def normalize_record(
    record: Any,
    origin: RecordOrigin,
    fallback_day: date | None = None,
) -> SleepRecord | None:
    """Normalize one raw record into a SleepRecord.

    Returns None only when no calendar day can be attributed to the record.
    """
    if not isinstance(record, dict):
        return None

    payload = _unwrap(record)
    day = _record_day(payload, record) or fallback_day
    if day is None:
        return None

    field_paths = SUMMARY_FIELD_PATHS if origin == RecordOrigin.SUMMARY else DETAILED_FIELD_PATHS
    fields: dict[str, Any] = {}
    for name, paths in field_paths.items():
        value = _probe(payload, paths, _COERCERS[name])
        fields[name] = value if value is not None else _DEFAULTS[name]

    record_id = payload.get("id") or record.get("id")
    return SleepRecord(
        id=str(record_id) if record_id else f"{origin.value}-{day.isoformat()}",
        day=day,
        origin=origin,
        bedtime_start=_parse_timestamp(payload.get("bedtime_start")),
        bedtime_end=_parse_timestamp(payload.get("bedtime_end")),
        quality_score=extract_score(payload),
        raw_payload=payload,
        **fields,
    )


def _preference(record: SleepRecord) -> tuple[bool, int]:
    return (record.raw_payload.get("type") == "long_sleep", record.total_sleep_seconds)


def _normalize_all(
    raw_records: Iterable[Any],
    origin: RecordOrigin,
    fallback_day: date | None,
) -> dict[date, SleepRecord]:
    """Normalize and collapse to one record per day.

    Among same-day records, prefer type == "long_sleep", then the longest
    total sleep, then the first seen.
    """
    by_day: dict[date, SleepRecord] = {}
    for raw in raw_records:
        normalized = normalize_record(raw, origin, fallback_day)
        if normalized is None:
            continue
        current = by_day.get(normalized.day)
        if current is None or _preference(normalized) > _preference(current):
            by_day[normalized.day] = normalized
    return by_day


def reconcile(
    detailed_raw: Iterable[Any] | None,
    summary_raw: Iterable[Any] | None,
    *,
    fallback_day: date | None = None,
    include_summary_only_days: bool = False,
) -> list[SleepRecord]:
    """Merge detailed and daily-summary raw records into canonical records.

    Args:
        detailed_raw: Records from the detailed-session endpoint.
        summary_raw: Records from the daily-summary endpoint.
        fallback_day: Day for records that carry no day and no bedtime_end
            (typically the start of the queried range).
        include_summary_only_days: Also emit summary days that the detailed
            source does not cover. By default summary records are only used
            when the detailed source is empty.

    Returns:
        One SleepRecord per day, ordered by day ascending. Empty when neither
        source has data; the caller decides whether to substitute mock data.
    """
    detailed_list = list(detailed_raw or [])
    summary_list = list(summary_raw or [])

    scores = summary_scores_by_day(summary_list)
    detailed = _normalize_all(detailed_list, RecordOrigin.DETAILED, fallback_day)

    merged: dict[date, SleepRecord] = {}
    for day, record in detailed.items():
        if day in scores:
            record = record.model_copy(update={"quality_score": scores[day]})
        merged[day] = record

    if not detailed or include_summary_only_days:
        summary = _normalize_all(summary_list, RecordOrigin.SUMMARY, fallback_day)
        for day, record in summary.items():
            if day in merged:
                continue
            if day in scores:
                record = record.model_copy(update={"quality_score": scores[day]})
            merged[day] = record

    return [merged[day] for day in sorted(merged)]
