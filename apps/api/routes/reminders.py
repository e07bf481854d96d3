from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from apps.api.dependencies import current_user_id, default_store
from apps.api.reminders_scheduler import get_scheduler
from apps.api.schemas.reminders import (
    ReminderCreateRequest,
    ReminderResponse,
    ReminderUpdateRequest,
)
from packages.core.reminders.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    ReminderError,
)
from packages.core.reminders.scheduler import ReminderScheduler
from packages.core.reminders.service import (
    add_reminder,
    delete_reminder,
    get_reminder,
    list_note_reminders,
    update_reminder,
)
from packages.core.storage.sqlite import SQLiteNoteStore


router = APIRouter(tags=["reminders"])

_STATUS_CODES = {
    NotFoundError: 404,
    ConflictError: 409,
    InvalidInputError: 400,
}


def _store() -> SQLiteNoteStore:
    return default_store()


def _scheduler() -> ReminderScheduler:
    return get_scheduler()


def _http_error(exc: ReminderError) -> HTTPException:
    return HTTPException(status_code=_STATUS_CODES.get(type(exc), 400), detail=str(exc))


def _to_response(reminder, scheduler: ReminderScheduler) -> ReminderResponse:
    next_fire = scheduler.next_fire_time(reminder.id)
    return ReminderResponse(
        id=reminder.id,
        note_id=reminder.note_id,
        reminder_time=reminder.reminder_time,
        recurring=reminder.recurring,
        frequency=reminder.frequency,
        next_fire_at=next_fire.isoformat() if next_fire else None,
    )


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


@router.post("/notes/{note_id}/reminders", response_model=ReminderResponse)
def create(
    note_id: int, payload: ReminderCreateRequest, user_id: int = Depends(current_user_id)
) -> ReminderResponse:
    store = _store()
    scheduler = _scheduler()
    try:
        reminder = add_reminder(
            store,
            store,
            scheduler,
            note_id=note_id,
            user_id=user_id,
            reminder_time=payload.reminder_time,
            recurring=payload.recurring,
            frequency=payload.frequency,
        )
    except ReminderError as exc:
        raise _http_error(exc) from exc
    return _to_response(reminder, scheduler)


@router.get("/notes/{note_id}/reminders", response_model=List[ReminderResponse])
def list_for_note(note_id: int, user_id: int = Depends(current_user_id)) -> List[ReminderResponse]:
    store = _store()
    scheduler = _scheduler()
    try:
        reminders = list_note_reminders(store, store, note_id=note_id, user_id=user_id)
    except ReminderError as exc:
        raise _http_error(exc) from exc
    return [_to_response(reminder, scheduler) for reminder in reminders]


@router.get("/reminders/{reminder_id}", response_model=ReminderResponse)
def get(reminder_id: int, user_id: int = Depends(current_user_id)) -> ReminderResponse:
    store = _store()
    try:
        reminder = get_reminder(store, store, user_id=user_id, reminder_id=reminder_id)
    except ReminderError as exc:
        raise _http_error(exc) from exc
    return _to_response(reminder, _scheduler())


@router.patch("/reminders/{reminder_id}", response_model=ReminderResponse)
def update(
    reminder_id: int, payload: ReminderUpdateRequest, user_id: int = Depends(current_user_id)
) -> ReminderResponse:
    store = _store()
    scheduler = _scheduler()
    try:
        updated = update_reminder(
            store,
            store,
            scheduler,
            user_id=user_id,
            reminder_id=reminder_id,
            reminder_time=_blank_to_none(payload.reminder_time),
            recurring=payload.recurring,
            frequency=_blank_to_none(payload.frequency),
        )
    except ReminderError as exc:
        raise _http_error(exc) from exc
    return _to_response(updated, scheduler)


@router.delete("/reminders/{reminder_id}")
def delete(reminder_id: int, user_id: int = Depends(current_user_id)) -> Dict[str, Any]:
    store = _store()
    try:
        delete_reminder(store, store, _scheduler(), user_id=user_id, reminder_id=reminder_id)
    except ReminderError as exc:
        raise _http_error(exc) from exc
    return {"status": "deleted", "id": reminder_id}
