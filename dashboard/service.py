"""Dashboard service: fetch → reconcile → filter → decorate with notes.

This is the I/O boundary around the pure reconciler. It owns:
- the order of upstream calls (summary first, then detailed)
- the mock-data fallback policy (request flag, or settings on empty/error)
- nap filtering and newest-first ordering
- degrading to "no notes" when the notes store fails
"""

import time
from dataclasses import dataclass, field
from datetime import date

import structlog
from sqlalchemy.exc import SQLAlchemyError

from dashboard.adapters.protocol import NotesStore, SleepDataSource
from dashboard.domain.models import SleepNote, SleepRecord, SleepRecordWithNote
from dashboard.mock import generate_mock
from dashboard.reconciler import reconcile
from shared.config import settings
from shared.exceptions import InvalidDateRangeError, UpstreamError
from shared.metrics import notes_store_failures_total, reconciled_records_total

logger = structlog.get_logger()


@dataclass
class SleepView:
    """Records for one dashboard request, newest first."""

    start: date
    end: date
    items: list[SleepRecordWithNote] = field(default_factory=list)
    is_mock: bool = False
    notes_available: bool = True
    upstream_error: str | None = None

    @property
    def no_data(self) -> bool:
        return not self.items

    @property
    def records(self) -> list[SleepRecord]:
        return [item.record for item in self.items]


async def fetch_records(
    source: SleepDataSource,
    start: date,
    end: date,
) -> list[SleepRecord]:
    """Fetch both upstream collections and reconcile them.

    Upstream failures propagate as UpstreamError subclasses.
    """
    started = time.monotonic()
    summary_raw = await source.fetch_summary(start, end)
    detailed_raw = await source.fetch_detailed(start, end)

    records = reconcile(
        detailed_raw,
        summary_raw,
        fallback_day=start,
        include_summary_only_days=settings.include_summary_only_days,
    )
    logger.info(
        "sleep_records_reconciled",
        source=source.source_name,
        detailed_count=len(detailed_raw),
        summary_count=len(summary_raw),
        record_count=len(records),
        scored_count=sum(1 for r in records if r.has_score),
        duration_ms=round((time.monotonic() - started) * 1000, 1),
    )
    return records


def drop_naps(records: list[SleepRecord], min_sleep_seconds: int) -> list[SleepRecord]:
    """Remove sessions shorter than min_sleep_seconds of total sleep."""
    return [r for r in records if r.total_sleep_seconds >= min_sleep_seconds]


async def load_notes(notes: NotesStore, start: date, end: date) -> dict[date, SleepNote] | None:
    """Notes by day, or None when the notes store is unavailable."""
    try:
        found = await notes.get_notes(start, end)
    except (SQLAlchemyError, OSError) as exc:
        notes_store_failures_total.labels(operation="get_notes").inc()
        logger.warning("notes_store_unavailable", error=str(exc), start=str(start), end=str(end))
        return None
    return {note.sleep_date: note for note in found}


async def load_sleep_view(
    source: SleepDataSource,
    notes: NotesStore,
    start: date,
    end: date,
    *,
    use_mock: bool = False,
    mock_on_empty: bool | None = None,
    mock_on_error: bool | None = None,
) -> SleepView:
    """Build the dashboard's records for an inclusive date range.

    Mock data is used when requested, or when upstream fails / returns nothing
    and the matching policy flag is set (defaults come from settings).
    Without a fallback, upstream failures propagate to the caller.
    """
    if start > end:
        raise InvalidDateRangeError(str(start), str(end))

    if mock_on_empty is None:
        mock_on_empty = settings.mock_on_empty
    if mock_on_error is None:
        mock_on_error = settings.mock_on_error

    view = SleepView(start=start, end=end)

    if use_mock:
        records = generate_mock(start, end)
        view.is_mock = True
    else:
        try:
            records = await fetch_records(source, start, end)
        except UpstreamError as exc:
            if not mock_on_error:
                raise
            logger.warning("mock_fallback", reason="upstream_error", error=exc.detail)
            records = generate_mock(start, end)
            view.is_mock = True
            view.upstream_error = exc.detail
        else:
            if not records and mock_on_empty:
                logger.info("mock_fallback", reason="no_data", start=str(start), end=str(end))
                records = generate_mock(start, end)
                view.is_mock = True

    kept = drop_naps(records, settings.min_sleep_seconds)
    if len(kept) != len(records):
        logger.debug("naps_dropped", count=len(records) - len(kept))

    for record in kept:
        reconciled_records_total.labels(origin=record.origin.value).inc()

    notes_by_day = await load_notes(notes, start, end)
    view.notes_available = notes_by_day is not None
    notes_by_day = notes_by_day or {}

    view.items = [
        SleepRecordWithNote(record=r, note=notes_by_day.get(r.day))
        for r in sorted(kept, key=lambda r: r.day, reverse=True)
    ]

    if view.no_data:
        logger.info("no_sleep_data", start=str(start), end=str(end))
    return view

