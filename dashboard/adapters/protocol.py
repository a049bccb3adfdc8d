"""Protocols for the dashboard's external collaborators.

The service layer depends only on these, never on concrete adapters.
"""

from datetime import date
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from dashboard.domain.models import SleepNote

RawRecord = dict[str, Any]


@runtime_checkable
class SleepDataSource(Protocol):
    """Read access to the wearable API's two sleep endpoints."""

    source_name: str

    async def fetch_detailed(self, start: date, end: date) -> list[RawRecord]:
        """Per-session records with timing, stage and hypnogram fields."""
        ...

    async def fetch_summary(self, start: date, end: date) -> list[RawRecord]:
        """Per-day records specialized for scoring."""
        ...


@runtime_checkable
class NotesStore(Protocol):
    """User notes keyed by sleep day."""

    async def get_notes(self, start: date, end: date) -> list[SleepNote]: ...

    async def get_note_by_date(self, day: date) -> SleepNote | None: ...

    async def create_note(self, day: date, notes: str) -> SleepNote: ...

    async def update_note(self, note_id: UUID, notes: str) -> SleepNote | None: ...

    async def upsert_note(self, day: date, notes: str) -> SleepNote: ...
