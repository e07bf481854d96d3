from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class UserState:
    id: int
    username: str
    email: str


@dataclass(frozen=True)
class TodoItemState:
    id: int
    content: str
    is_done: bool


@dataclass(frozen=True)
class NoteState:
    id: int
    user_id: int
    title: str
    content: str
    color: Optional[str]
    priority: int
    is_todo: bool
    created_at: str
    updated_at: str
    todo_items: List[TodoItemState] = field(default_factory=list)


@dataclass(frozen=True)
class ReminderState:
    id: int
    note_id: int
    reminder_time: str
    recurring: bool
    frequency: Optional[str]


class DuplicateReminder(Exception):
    """Raised by a store when a note already carries a reminder."""


class MissingNote(Exception):
    """Raised by a store when a row refers to a note that no longer exists."""


@runtime_checkable
class UserStore(Protocol):
    def create_user(self, username: str, email: str) -> UserState:
        """Persist a new user and return it with its id."""

    def get_user(self, user_id: int) -> Optional[UserState]:
        """Return user by id."""

    def get_user_email(self, user_id: int) -> Optional[str]:
        """Return the e-mail address of a user, or None if missing."""


@runtime_checkable
class NoteStore(Protocol):
    def create_note(
        self,
        user_id: int,
        title: str,
        content: str,
        color: Optional[str],
        priority: int,
        is_todo: bool,
        todo_items: List[TodoItemState],
        created_at: str,
    ) -> NoteState:
        """Persist a new note with its checklist items."""

    def get_note(self, note_id: int) -> Optional[NoteState]:
        """Return note by id regardless of owner."""

    def get_note_for_user(self, note_id: int, user_id: int) -> Optional[NoteState]:
        """Return note only if it belongs to the user."""

    def list_notes(self, user_id: int) -> List[NoteState]:
        """List notes owned by the user."""

    def update_note(
        self, note: NoteState, todo_items: Optional[List[TodoItemState]] = None
    ) -> bool:
        """Write the editable fields of a note.

        When ``todo_items`` is given the checklist is replaced by it. Returns
        False if the note no longer exists.
        """

    def update_todo_status(
        self, note_id: int, todo_id: int, is_done: bool, updated_at: str
    ) -> bool:
        """Set one checklist item. Returns False if the item is not on the note."""

    def delete_note(self, note_id: int) -> bool:
        """Delete a note, its items and its reminder. Returns True if deleted."""


@runtime_checkable
class ReminderStore(Protocol):
    def create_reminder(
        self,
        note_id: int,
        reminder_time: str,
        recurring: bool,
        frequency: Optional[str],
    ) -> ReminderState:
        """Persist a new reminder.

        Raises DuplicateReminder if the note has one and MissingNote if the
        note does not exist.
        """

    def update_reminder(self, reminder: ReminderState) -> bool:
        """Update an existing reminder. Returns False if it no longer exists."""

    def get_reminder(self, reminder_id: int) -> Optional[ReminderState]:
        """Return reminder by id."""

    def list_reminders_by_note(self, note_id: int) -> List[ReminderState]:
        """List reminders attached to a note."""

    def list_reminders(self) -> List[ReminderState]:
        """List every stored reminder."""

    def delete_reminder(self, reminder_id: int) -> bool:
        """Delete a reminder. Returns True if deleted."""


@runtime_checkable
class NoteReminderStore(NoteStore, ReminderStore, Protocol):
    """A store that holds both notes and their reminders."""
