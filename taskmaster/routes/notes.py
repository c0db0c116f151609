from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from taskmaster.dependencies import get_notebook
from taskmaster.notes import NoteBook
from taskmaster.schemas import NoteCreate, NotePatch, NoteResponse

router = APIRouter()


@router.get("/v1/notes", response_model=List[NoteResponse])
async def list_notes(notebook: NoteBook = Depends(get_notebook)):
    return await notebook.list()


@router.post("/v1/notes", response_model=NoteResponse)
async def create_note(payload: NoteCreate, notebook: NoteBook = Depends(get_notebook)):
    return await notebook.add(payload.content)


@router.patch("/v1/notes/{note_id}")
async def patch_note(note_id: str, payload: NotePatch, notebook: NoteBook = Depends(get_notebook)):
    await notebook.update(note_id, payload.content)
    return {"ok": True}


@router.delete("/v1/notes/{note_id}")
async def delete_note(note_id: str, notebook: NoteBook = Depends(get_notebook)):
    await notebook.delete(note_id)
    return {"ok": True}
