from __future__ import annotations

from taskmaster.errors import NotFoundError, ValidationError
from taskmaster.models import Note
from taskmaster.session import UserSession
from taskmaster.sync_adapter import RemoteSyncAdapter

MAX_NOTE_LENGTH = 10_000


def _clean_content(content: str | None) -> str:
    clean = str(content or "").strip()
    if not clean:
        raise ValidationError("Note content cannot be empty")
    if len(clean) > MAX_NOTE_LENGTH:
        raise ValidationError(f"Note is longer than {MAX_NOTE_LENGTH} characters")
    return clean


class NoteBook:
    """Free-form notes for one session, newest first."""

    def __init__(self, session: UserSession, adapter: RemoteSyncAdapter):
        self.session = session
        self.adapter = adapter

    async def list(self) -> list[Note]:
        notes = await self.adapter.list_notes(self.session.user_id)
        self.session.ensure_active()
        return notes

    async def add(self, content: str) -> Note:
        clean = _clean_content(content)
        note = await self.adapter.insert_note(self.session.user_id, clean)
        self.session.ensure_active()
        return note

    async def update(self, note_id: str, content: str) -> None:
        clean = _clean_content(content)
        if not await self.adapter.update_note(self.session.user_id, note_id, clean):
            raise NotFoundError(f"Note {note_id} not found")

    async def delete(self, note_id: str) -> None:
        if not await self.adapter.delete_note(self.session.user_id, note_id):
            raise NotFoundError(f"Note {note_id} not found")
