"""Sleep notes repository: all DB access for user notes.

Notes are keyed by sleep day. Writes are last-writer-wins: the upsert
overwrites any existing note for the day without conflict detection.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.domain.models import SleepNote
from dashboard.domain.orm import SleepNoteModel


class SleepNoteRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_notes(self, start: date, end: date) -> list[SleepNote]:
        """Notes for an inclusive date range, newest first."""
        query = (
            select(SleepNoteModel)
            .where(SleepNoteModel.sleep_date >= start)
            .where(SleepNoteModel.sleep_date <= end)
            .order_by(SleepNoteModel.sleep_date.desc())
        )
        result = await self.session.execute(query)
        return [SleepNote.model_validate(row) for row in result.scalars().all()]

    async def get_note_by_date(self, day: date) -> SleepNote | None:
        query = select(SleepNoteModel).where(SleepNoteModel.sleep_date == day)
        result = await self.session.execute(query)
        row = result.scalar_one_or_none()
        return SleepNote.model_validate(row) if row is not None else None

    async def create_note(self, day: date, notes: str) -> SleepNote:
        """Insert a note. Raises IntegrityError if the day already has one."""
        stmt = (
            pg_insert(SleepNoteModel)
            .values(sleep_date=day, notes=notes)
            .returning(SleepNoteModel)
        )
        result = await self.session.execute(stmt)
        note = SleepNote.model_validate(result.scalar_one())
        await self.session.commit()
        return note

    async def update_note(self, note_id: UUID, notes: str) -> SleepNote | None:
        """Replace the text of an existing note. None if the id is unknown."""
        stmt = (
            update(SleepNoteModel)
            .where(SleepNoteModel.id == note_id)
            .values(notes=notes, updated_at=func.now())
            .returning(SleepNoteModel)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        note = SleepNote.model_validate(row) if row is not None else None
        await self.session.commit()
        return note

    async def upsert_note(self, day: date, notes: str) -> SleepNote:
        """Insert or replace the note for a day."""
        stmt = pg_insert(SleepNoteModel).values(sleep_date=day, notes=notes)
        stmt = stmt.on_conflict_do_update(
            index_elements=["sleep_date"],
            set_={
                "notes": stmt.excluded.notes,
                "updated_at": func.now(),
            },
        ).returning(SleepNoteModel).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        note = SleepNote.model_validate(result.scalar_one())
        await self.session.commit()
        return note
