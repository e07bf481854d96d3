from .base import (
    DuplicateReminder,
    MissingNote,
    NoteReminderStore,
    NoteState,
    NoteStore,
    ReminderState,
    ReminderStore,
    TodoItemState,
    UserState,
    UserStore,
)
from .sqlite import SQLiteNoteStore

__all__ = [
    "DuplicateReminder",
    "MissingNote",
    "NoteReminderStore",
    "NoteState",
    "NoteStore",
    "ReminderState",
    "ReminderStore",
    "TodoItemState",
    "UserState",
    "UserStore",
    "SQLiteNoteStore",
]
