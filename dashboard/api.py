"""FastAPI router for the sleep dashboard.

Endpoints:
- GET /api/v1/sleep              (cards | table | trend views)
- GET /api/v1/notes              (notes for a date range)
- GET /api/v1/notes/{day}
- PUT /api/v1/notes/{day}        (upsert, last writer wins)
"""

import time
from datetime import UTC, date, datetime, timedelta
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.adapters.factory import get_sleep_source
from dashboard.adapters.protocol import SleepDataSource
from dashboard.repository import SleepNoteRepository
from dashboard.service import SleepView, load_sleep_view
from dashboard.views import ViewKind, card_view, table_row, trend_points
from shared.config import settings
from shared.database import get_session
from shared.exceptions import (
    InvalidDateRangeError,
    InvalidViewError,
    NotesStoreUnavailableError,
    NotFoundError,
)
from shared.metrics import (
    api_requests_total,
    api_response_duration_seconds,
    notes_store_failures_total,
)
from shared.middleware import request_id_var

router = APIRouter(prefix="/api/v1")

DEFAULT_RANGE_DAYS = 7


# --- Request models ---


class NoteRequest(BaseModel):
    """Request body for the note upsert endpoint."""

    notes: str = Field(..., max_length=10_000, description="Free-text note for the sleep day")


# --- Response helpers ---


def _meta(**extra: Any) -> dict[str, Any]:
    return {
        "request_id": request_id_var.get(""),
        "timestamp": datetime.now(UTC).isoformat(),
        "api_version": settings.api_version,
        **extra,
    }


def _default_range(start: date | None, end: date | None) -> tuple[date, date]:
    """Fill a missing bound: the range defaults to the last week, ending today."""
    end = end or datetime.now(UTC).date()
    start = start or end - timedelta(days=DEFAULT_RANGE_DAYS)
    return start, end


def _render(view: SleepView, kind: ViewKind) -> list[dict[str, Any]]:
    if kind == ViewKind.TREND:
        return trend_points(view.records, settings.trend_max_points)
    if kind == ViewKind.TABLE:
        return [table_row(item) for item in view.items]
    return [card_view(item) for item in view.items]


def _observe(endpoint: str, method: str, started: float, status_code: int = 200) -> None:
    api_requests_total.labels(endpoint=endpoint, method=method, status_code=str(status_code)).inc()
    api_response_duration_seconds.labels(endpoint=endpoint).observe(time.monotonic() - started)


# --- Endpoints ---


@router.get("/sleep")
async def get_sleep(
    session: AsyncSession = Depends(get_session),
    source: SleepDataSource = Depends(get_sleep_source),
    start: date | None = Query(None),
    end: date | None = Query(None),
    view: str = Query(ViewKind.CARDS.value),
    mock: bool = Query(False, description="Serve synthetic data instead of upstream"),
):
    """Reconciled sleep records with notes for an inclusive date range.

    Upstream failures return 502/504 problem details unless SD_MOCK_ON_ERROR
    is set; the client can then retry or re-request with mock=true.
    """
    started = time.monotonic()
    allowed_views = {v.value for v in ViewKind}
    if view not in allowed_views:
        raise InvalidViewError(view, allowed_views)

    start, end = _default_range(start, end)
    result = await load_sleep_view(
        source, SleepNoteRepository(session), start, end, use_mock=mock
    )

    data = _render(result, ViewKind(view))
    _observe("sleep", "GET", started)
    return {
        "data": data,
        "meta": _meta(
            start=start.isoformat(),
            end=end.isoformat(),
            view=view,
            record_count=len(result.items),
            is_mock=result.is_mock,
            no_data=result.no_data,
            notes_available=result.notes_available,
            upstream_error=result.upstream_error,
        ),
    }


@router.get("/notes")
async def list_notes(
    session: AsyncSession = Depends(get_session),
    start: date = Query(...),
    end: date = Query(...),
):
    """Notes for an inclusive date range, newest first."""
    started = time.monotonic()
    if start > end:
        raise InvalidDateRangeError(str(start), str(end))

    try:
        notes = await SleepNoteRepository(session).get_notes(start, end)
    except (SQLAlchemyError, OSError) as exc:
        notes_store_failures_total.labels(operation="get_notes").inc()
        raise NotesStoreUnavailableError() from exc

    _observe("notes", "GET", started)
    return {"data": [n.model_dump(mode="json") for n in notes], "meta": _meta()}


@router.get("/notes/{day}")
async def get_note(day: date, session: AsyncSession = Depends(get_session)):
    started = time.monotonic()
    try:
        note = await SleepNoteRepository(session).get_note_by_date(day)
    except (SQLAlchemyError, OSError) as exc:
        notes_store_failures_total.labels(operation="get_note_by_date").inc()
        raise NotesStoreUnavailableError() from exc

    if note is None:
        raise NotFoundError(f"No sleep note for {day.isoformat()}")

    _observe("note", "GET", started)
    return {"data": note.model_dump(mode="json"), "meta": _meta()}


@router.put("/notes/{day}")
async def put_note(day: date, body: NoteRequest, session: AsyncSession = Depends(get_session)):
    """Create or replace the note for a sleep day."""
    started = time.monotonic()
    try:
        note = await SleepNoteRepository(session).upsert_note(day, body.notes)
    except (SQLAlchemyError, OSError) as exc:
        notes_store_failures_total.labels(operation="upsert_note").inc()
        raise NotesStoreUnavailableError(
            "Failed to save the note. The notes database might not be set up correctly."
        ) from exc

    _observe("note", "PUT", started)
    return {"data": note.model_dump(mode="json"), "meta": _meta()}
