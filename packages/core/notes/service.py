from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Iterable, List, Optional, Tuple

from ..reminders.errors import InvalidInputError, NotFoundError
from ..reminders.scheduler import ReminderScheduler
from ..storage.base import NoteState, NoteStore, ReminderStore, TodoItemState


def _utc_now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def _clean_items(todo_items: Iterable[Tuple[str, bool]]) -> List[TodoItemState]:
    return [
        TodoItemState(id=0, content=text.strip(), is_done=done)
        for text, done in todo_items
        if text.strip()
    ]


def create_note(
    store: NoteStore,
    user_id: int,
    title: str,
    content: str = "",
    color: Optional[str] = None,
    priority: int = 0,
    todo_items: Iterable[Tuple[str, bool]] = (),
) -> NoteState:
    items = _clean_items(todo_items)
    return store.create_note(
        user_id=user_id,
        title=title.strip(),
        content=content.strip(),
        color=color.strip() if color else None,
        priority=priority,
        is_todo=bool(items),
        todo_items=items,
        created_at=_utc_now_iso(),
    )


def get_note(store: NoteStore, note_id: int, user_id: int) -> NoteState:
    note = store.get_note_for_user(note_id, user_id)
    if note is None:
        raise NotFoundError("note not found or does not belong to the user")
    return note


def list_notes(store: NoteStore, user_id: int) -> List[NoteState]:
    return store.list_notes(user_id)


def delete_note(
    store: NoteStore,
    reminders: ReminderStore,
    scheduler: ReminderScheduler,
    note_id: int,
    user_id: int,
) -> None:
    get_note(store, note_id, user_id)
    attached = reminders.list_reminders_by_note(note_id)
    store.delete_note(note_id)
    for reminder in attached:
        scheduler.cancel(reminder.id)


def _save(
    store: NoteStore, note: NoteState, todo_items: Optional[List[TodoItemState]] = None
) -> NoteState:
    if not store.update_note(note, todo_items):
        raise NotFoundError("note not found or does not belong to the user")
    return get_note(store, note.id, note.user_id)


def update_note(
    store: NoteStore,
    note_id: int,
    user_id: int,
    title: Optional[str] = None,
    content: Optional[str] = None,
    todo_items: Optional[Iterable[Tuple[str, bool]]] = None,
) -> NoteState:
    """Edit the title and body of a note.

    The body is either free text or a checklist: new content clears the
    checklist and new items clear the content. Blank values leave a field
    unchanged.
    """
    note = get_note(store, note_id, user_id)
    content = content.strip() if content else ""
    items = _clean_items(todo_items or ())
    if content and items:
        raise InvalidInputError("a note cannot have both content and todo items")

    changes = {"updated_at": _utc_now_iso()}
    replaced = None
    if title and title.strip():
        changes["title"] = title.strip()
    if content:
        changes.update(content=content, is_todo=False)
        replaced = []
    if items:
        changes.update(content="", is_todo=True)
        replaced = items
    return _save(store, dataclasses.replace(note, **changes), replaced)


def update_note_color(
    store: NoteStore, note_id: int, user_id: int, color: Optional[str]
) -> NoteState:
    note = get_note(store, note_id, user_id)
    color = (color or "").strip() or None
    return _save(store, dataclasses.replace(note, color=color, updated_at=_utc_now_iso()))


def update_note_priority(store: NoteStore, note_id: int, user_id: int, priority: int) -> NoteState:
    note = get_note(store, note_id, user_id)
    return _save(store, dataclasses.replace(note, priority=priority, updated_at=_utc_now_iso()))


def update_note_status(
    store: NoteStore,
    note_id: int,
    user_id: int,
    is_todo: Optional[bool] = None,
    is_all_done: Optional[bool] = None,
) -> NoteState:
    """Switch a note between checklist and plain, or tick every item at once."""
    note = get_note(store, note_id, user_id)
    now = _utc_now_iso()
    changes = {"updated_at": now}
    if is_todo is not None:
        changes["is_todo"] = is_todo
    note = _save(store, dataclasses.replace(note, **changes))
    if is_all_done is not None:
        for item in note.todo_items:
            store.update_todo_status(note.id, item.id, is_all_done, now)
        note = get_note(store, note_id, user_id)
    return note


def update_todo_status(
    store: NoteStore, note_id: int, todo_id: int, user_id: int, is_done: bool
) -> NoteState:
    get_note(store, note_id, user_id)
    if not store.update_todo_status(note_id, todo_id, is_done, _utc_now_iso()):
        raise NotFoundError(f"todo item {todo_id} not found on note {note_id}")
    return get_note(store, note_id, user_id)
