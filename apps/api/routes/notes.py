from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from apps.api.dependencies import current_user_id, default_store
from apps.api.reminders_scheduler import get_scheduler
from apps.api.schemas.notes import (
    NoteColorRequest,
    NoteCreateRequest,
    NotePriorityRequest,
    NoteResponse,
    NoteStatusRequest,
    NoteUpdateRequest,
    TodoItemResponse,
    TodoStatusRequest,
)
from packages.core.notes.service import (
    create_note,
    delete_note,
    get_note,
    list_notes,
    update_note,
    update_note_color,
    update_note_priority,
    update_note_status,
    update_todo_status,
)
from packages.core.reminders.errors import InvalidInputError, NotFoundError
from packages.core.reminders.scheduler import ReminderScheduler
from packages.core.storage.sqlite import SQLiteNoteStore


router = APIRouter(prefix="/notes", tags=["notes"])


def _store() -> SQLiteNoteStore:
    return default_store()


def _scheduler() -> ReminderScheduler:
    return get_scheduler()


def _to_response(note) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        user_id=note.user_id,
        title=note.title,
        content=note.content,
        color=note.color,
        priority=note.priority,
        is_todo=note.is_todo,
        todo_items=[
            TodoItemResponse(id=item.id, content=item.content, is_done=item.is_done)
            for item in note.todo_items
        ],
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


@router.post("", response_model=NoteResponse)
def create(payload: NoteCreateRequest, user_id: int = Depends(current_user_id)) -> NoteResponse:
    note = create_note(
        _store(),
        user_id=user_id,
        title=payload.title,
        content=payload.content,
        color=payload.color,
        priority=payload.priority,
        todo_items=[(item.content, item.is_done) for item in payload.todo_items],
    )
    return _to_response(note)


@router.get("", response_model=List[NoteResponse])
def list_all(user_id: int = Depends(current_user_id)) -> List[NoteResponse]:
    return [_to_response(note) for note in list_notes(_store(), user_id)]


@router.get("/{note_id}", response_model=NoteResponse)
def get(note_id: int, user_id: int = Depends(current_user_id)) -> NoteResponse:
    try:
        note = get_note(_store(), note_id, user_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    return _to_response(note)


@router.patch("/{note_id}", response_model=NoteResponse)
def update(
    note_id: int, payload: NoteUpdateRequest, user_id: int = Depends(current_user_id)
) -> NoteResponse:
    todo_items = None
    if payload.todo_items is not None:
        todo_items = [(item.content, item.is_done) for item in payload.todo_items]
    try:
        note = update_note(
            _store(),
            note_id=note_id,
            user_id=user_id,
            title=payload.title,
            content=payload.content,
            todo_items=todo_items,
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _to_response(note)


@router.patch("/{note_id}/color", response_model=NoteResponse)
def update_color(
    note_id: int, payload: NoteColorRequest, user_id: int = Depends(current_user_id)
) -> NoteResponse:
    try:
        note = update_note_color(_store(), note_id, user_id, payload.color)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    return _to_response(note)


@router.patch("/{note_id}/priority", response_model=NoteResponse)
def update_priority(
    note_id: int, payload: NotePriorityRequest, user_id: int = Depends(current_user_id)
) -> NoteResponse:
    try:
        note = update_note_priority(_store(), note_id, user_id, payload.priority)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    return _to_response(note)


@router.patch("/{note_id}/status", response_model=NoteResponse)
def update_status(
    note_id: int, payload: NoteStatusRequest, user_id: int = Depends(current_user_id)
) -> NoteResponse:
    try:
        note = update_note_status(
            _store(),
            note_id,
            user_id,
            is_todo=payload.is_todo,
            is_all_done=payload.is_all_done,
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    return _to_response(note)


@router.patch("/{note_id}/todos/{todo_id}", response_model=NoteResponse)
def update_todo(
    note_id: int,
    todo_id: int,
    payload: TodoStatusRequest,
    user_id: int = Depends(current_user_id),
) -> NoteResponse:
    try:
        note = update_todo_status(_store(), note_id, todo_id, user_id, payload.is_done)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _to_response(note)


@router.delete("/{note_id}")
def delete(note_id: int, user_id: int = Depends(current_user_id)) -> Dict[str, Any]:
    store = _store()
    try:
        delete_note(store, store, _scheduler(), note_id=note_id, user_id=user_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    return {"status": "deleted", "id": note_id}
