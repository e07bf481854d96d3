from __future__ import annotations

import dataclasses
import datetime as dt
import logging
from typing import List, Optional

from ..storage.base import (
    DuplicateReminder,
    MissingNote,
    NoteReminderStore,
    NoteStore,
    ReminderState,
    ReminderStore,
)
from .errors import ConflictError, InvalidInputError, NotFoundError
from .models import ReminderMessage
from .recurrence import is_recognized, normalize_frequency, parse_reminder_time
from .scheduler import ReminderScheduler


logger = logging.getLogger("mynote.reminders")

REMINDER_SUBJECT = "Reminder Notification"


def _parse_future_time(scheduler: ReminderScheduler, value: str) -> dt.datetime:
    try:
        parsed = parse_reminder_time(value, scheduler.timezone)
    except ValueError as exc:
        raise InvalidInputError(f"invalid reminder time format: {value!r}") from exc
    if parsed < scheduler.now():
        raise InvalidInputError("reminder time is in the past")
    return parsed


def _checked_frequency(frequency: Optional[str]) -> Optional[str]:
    frequency = normalize_frequency(frequency)
    if frequency is not None and not is_recognized(frequency):
        raise InvalidInputError(f"unknown frequency: {frequency}")
    return frequency


def _owned_reminder(
    store: ReminderStore, notes: NoteStore, user_id: int, reminder_id: int
) -> ReminderState:
    reminder = store.get_reminder(reminder_id)
    if reminder is None:
        raise NotFoundError(f"reminder {reminder_id} not found")
    if notes.get_note_for_user(reminder.note_id, user_id) is None:
        raise NotFoundError("note not found or does not belong to the user")
    return reminder


def _drop_if_deleted(
    store: ReminderStore, scheduler: ReminderScheduler, reminder_id: int
) -> None:
    """Undo an arm that raced with a delete.

    The delete cancels before or after the arm; when it cancelled first the
    row is already gone here, so the timer is cancelled again.
    """
    if store.get_reminder(reminder_id) is None:
        scheduler.cancel(reminder_id)
        raise NotFoundError(f"reminder {reminder_id} not found")


def add_reminder(
    store: ReminderStore,
    notes: NoteStore,
    scheduler: ReminderScheduler,
    note_id: int,
    user_id: int,
    reminder_time: str,
    recurring: bool = False,
    frequency: Optional[str] = None,
) -> ReminderState:
    if notes.get_note_for_user(note_id, user_id) is None:
        raise NotFoundError("note not found or does not belong to the user")
    if store.list_reminders_by_note(note_id):
        raise ConflictError("a reminder already exists for this note")

    fire_at = _parse_future_time(scheduler, reminder_time)
    frequency = _checked_frequency(frequency)

    try:
        reminder = store.create_reminder(
            note_id=note_id,
            reminder_time=reminder_time.strip(),
            recurring=recurring,
            frequency=frequency,
        )
    except DuplicateReminder as exc:
        raise ConflictError("a reminder already exists for this note") from exc
    except MissingNote as exc:
        raise NotFoundError("note not found or does not belong to the user") from exc

    scheduler.arm(reminder, fire_at)
    _drop_if_deleted(store, scheduler, reminder.id)
    return reminder


def update_reminder(
    store: ReminderStore,
    notes: NoteStore,
    scheduler: ReminderScheduler,
    user_id: int,
    reminder_id: int,
    reminder_time: Optional[str] = None,
    recurring: Optional[bool] = None,
    frequency: Optional[str] = None,
) -> ReminderState:
    existing = _owned_reminder(store, notes, user_id, reminder_id)

    changes = {}
    fire_at = None
    if reminder_time is not None:
        fire_at = _parse_future_time(scheduler, reminder_time)
        changes["reminder_time"] = reminder_time.strip()
    if recurring is not None:
        changes["recurring"] = recurring
    if frequency is not None:
        changes["frequency"] = _checked_frequency(frequency)

    updated = dataclasses.replace(existing, **changes)
    if not store.update_reminder(updated):
        raise NotFoundError(f"reminder {reminder_id} not found")

    if fire_at is not None:
        scheduler.arm(updated, fire_at)
    else:
        # The stored time may already have fired; resume() picks the next
        # occurrence for recurring reminders and cancels one-shot ones.
        scheduler.resume(updated, parse_reminder_time(updated.reminder_time, scheduler.timezone))
    _drop_if_deleted(store, scheduler, reminder_id)
    return updated


def delete_reminder(
    store: ReminderStore,
    notes: NoteStore,
    scheduler: ReminderScheduler,
    user_id: int,
    reminder_id: int,
) -> None:
    _owned_reminder(store, notes, user_id, reminder_id)
    store.delete_reminder(reminder_id)
    scheduler.cancel(reminder_id)


def get_reminder(
    store: ReminderStore, notes: NoteStore, user_id: int, reminder_id: int
) -> ReminderState:
    return _owned_reminder(store, notes, user_id, reminder_id)


def list_note_reminders(
    store: ReminderStore, notes: NoteStore, note_id: int, user_id: int
) -> List[ReminderState]:
    if notes.get_note_for_user(note_id, user_id) is None:
        raise NotFoundError("note not found or does not belong to the user")
    return store.list_reminders_by_note(note_id)


def restore_reminders(store: ReminderStore, scheduler: ReminderScheduler) -> int:
    """Re-arm every stored reminder; timers do not survive a restart."""
    return scheduler.rehydrate(
        store.list_reminders(),
        lambda value: parse_reminder_time(value, scheduler.timezone),
    )


def build_reminder_message(
    store: NoteReminderStore, reminder: ReminderState
) -> Optional[ReminderMessage]:
    """Compose the e-mail for a fire, reading the reminder and note afresh.

    Returns None when either is gone, which ends the reminder's chain.
    """
    current = store.get_reminder(reminder.id)
    if current is None:
        return None
    note = store.get_note(current.note_id)
    if note is None:
        return None

    lines = ["Reminder", "", f"Title: {note.title}"]
    if note.content:
        lines.append(f"Content: {note.content}")
    if note.todo_items:
        lines.append("Todo Items:")
        for item in note.todo_items:
            status = "Done" if item.is_done else "Not Done"
            lines.append(f"- {item.content} [{status}]")
    lines.append("")
    lines.append(f"Reminder Time: {current.reminder_time}")

    return ReminderMessage(
        user_id=note.user_id,
        subject=REMINDER_SUBJECT,
        body="\n".join(lines) + "\n",
    )
