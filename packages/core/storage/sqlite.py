from __future__ import annotations

import os
import sqlite3
from typing import List, Optional

from .base import (
    DuplicateReminder,
    MissingNote,
    NoteState,
    NoteStore,
    ReminderState,
    ReminderStore,
    TodoItemState,
    UserState,
    UserStore,
)


class SQLiteNoteStore(UserStore, NoteStore, ReminderStore):
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS notes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL,
                    color TEXT,
                    priority INTEGER NOT NULL,
                    is_todo INTEGER NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY(user_id) REFERENCES users(id)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS todo_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    note_id INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    is_done INTEGER NOT NULL,
                    FOREIGN KEY(note_id) REFERENCES notes(id) ON DELETE CASCADE
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS reminders (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    note_id INTEGER NOT NULL,
                    reminder_time TEXT NOT NULL,
                    recurring INTEGER NOT NULL,
                    frequency TEXT,
                    FOREIGN KEY(note_id) REFERENCES notes(id) ON DELETE CASCADE
                )
                """
            )
            conn.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS reminders_note_id_idx
                ON reminders (note_id)
                """
            )

    def create_user(self, username: str, email: str) -> UserState:
        username = username.strip()
        email = email.strip().lower()
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO users (username, email) VALUES (?, ?)",
                (username, email),
            )
            return UserState(id=cur.lastrowid, username=username, email=email)

    def get_user(self, user_id: int) -> Optional[UserState]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, username, email FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            if row is None:
                return None
            return UserState(id=row[0], username=row[1], email=row[2])

    def get_user_email(self, user_id: int) -> Optional[str]:
        user = self.get_user(user_id)
        return user.email if user else None

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
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO notes (
                    user_id, title, content, color, priority, is_todo,
                    created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    title,
                    content,
                    color,
                    priority,
                    1 if is_todo else 0,
                    created_at,
                    created_at,
                ),
            )
            note_id = cur.lastrowid
            for item in todo_items:
                conn.execute(
                    "INSERT INTO todo_items (note_id, content, is_done) VALUES (?, ?, ?)",
                    (note_id, item.content, 1 if item.is_done else 0),
                )
        note = self.get_note(note_id)
        assert note is not None
        return note

    def _todo_items(self, conn: sqlite3.Connection, note_id: int) -> List[TodoItemState]:
        rows = conn.execute(
            "SELECT id, content, is_done FROM todo_items WHERE note_id = ? ORDER BY id ASC",
            (note_id,),
        ).fetchall()
        return [TodoItemState(id=row[0], content=row[1], is_done=bool(row[2])) for row in rows]

    def _row_to_note(self, conn: sqlite3.Connection, row) -> NoteState:
        return NoteState(
            id=row[0],
            user_id=row[1],
            title=row[2],
            content=row[3],
            color=row[4],
            priority=row[5],
            is_todo=bool(row[6]),
            created_at=row[7],
            updated_at=row[8],
            todo_items=self._todo_items(conn, row[0]),
        )

    def get_note(self, note_id: int) -> Optional[NoteState]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, user_id, title, content, color, priority, is_todo,
                       created_at, updated_at
                FROM notes
                WHERE id = ?
                """,
                (note_id,),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_note(conn, row)

    def get_note_for_user(self, note_id: int, user_id: int) -> Optional[NoteState]:
        note = self.get_note(note_id)
        if note is None or note.user_id != user_id:
            return None
        return note

    def list_notes(self, user_id: int) -> List[NoteState]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, user_id, title, content, color, priority, is_todo,
                       created_at, updated_at
                FROM notes
                WHERE user_id = ?
                ORDER BY priority DESC, id ASC
                """,
                (user_id,),
            ).fetchall()
            return [self._row_to_note(conn, row) for row in rows]

    def update_note(
        self, note: NoteState, todo_items: Optional[List[TodoItemState]] = None
    ) -> bool:
        with self._connect() as conn:
            result = conn.execute(
                """
                UPDATE notes
                SET title = ?, content = ?, color = ?, priority = ?, is_todo = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    note.title,
                    note.content,
                    note.color,
                    note.priority,
                    1 if note.is_todo else 0,
                    note.updated_at,
                    note.id,
                ),
            )
            if result.rowcount == 0:
                return False
            if todo_items is not None:
                conn.execute("DELETE FROM todo_items WHERE note_id = ?", (note.id,))
                for item in todo_items:
                    conn.execute(
                        "INSERT INTO todo_items (note_id, content, is_done) VALUES (?, ?, ?)",
                        (note.id, item.content, 1 if item.is_done else 0),
                    )
            return True

    def update_todo_status(
        self, note_id: int, todo_id: int, is_done: bool, updated_at: str
    ) -> bool:
        with self._connect() as conn:
            result = conn.execute(
                "UPDATE todo_items SET is_done = ? WHERE id = ? AND note_id = ?",
                (1 if is_done else 0, todo_id, note_id),
            )
            if result.rowcount == 0:
                return False
            conn.execute("UPDATE notes SET updated_at = ? WHERE id = ?", (updated_at, note_id))
            return True

    def delete_note(self, note_id: int) -> bool:
        with self._connect() as conn:
            result = conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))
            return result.rowcount > 0

    def create_reminder(
        self,
        note_id: int,
        reminder_time: str,
        recurring: bool,
        frequency: Optional[str],
    ) -> ReminderState:
        with self._connect() as conn:
            try:
                cur = conn.execute(
                    """
                    INSERT INTO reminders (note_id, reminder_time, recurring, frequency)
                    VALUES (?, ?, ?, ?)
                    """,
                    (note_id, reminder_time, 1 if recurring else 0, frequency),
                )
            except sqlite3.IntegrityError as exc:
                if "UNIQUE" in str(exc):
                    raise DuplicateReminder(f"Note {note_id} already has a reminder") from exc
                raise MissingNote(f"Note {note_id} does not exist") from exc
            return ReminderState(
                id=cur.lastrowid,
                note_id=note_id,
                reminder_time=reminder_time,
                recurring=recurring,
                frequency=frequency,
            )

    def update_reminder(self, reminder: ReminderState) -> bool:
        with self._connect() as conn:
            result = conn.execute(
                """
                UPDATE reminders
                SET reminder_time = ?, recurring = ?, frequency = ?
                WHERE id = ?
                """,
                (
                    reminder.reminder_time,
                    1 if reminder.recurring else 0,
                    reminder.frequency,
                    reminder.id,
                ),
            )
            return result.rowcount > 0

    def _row_to_reminder(self, row) -> ReminderState:
        return ReminderState(
            id=row[0],
            note_id=row[1],
            reminder_time=row[2],
            recurring=bool(row[3]),
            frequency=row[4],
        )

    def get_reminder(self, reminder_id: int) -> Optional[ReminderState]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, note_id, reminder_time, recurring, frequency
                FROM reminders
                WHERE id = ?
                """,
                (reminder_id,),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_reminder(row)

    def list_reminders_by_note(self, note_id: int) -> List[ReminderState]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, note_id, reminder_time, recurring, frequency
                FROM reminders
                WHERE note_id = ?
                ORDER BY id ASC
                """,
                (note_id,),
            ).fetchall()
            return [self._row_to_reminder(row) for row in rows]

    def list_reminders(self) -> List[ReminderState]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, note_id, reminder_time, recurring, frequency
                FROM reminders
                ORDER BY id ASC
                """
            ).fetchall()
            return [self._row_to_reminder(row) for row in rows]

    def delete_reminder(self, reminder_id: int) -> bool:
        with self._connect() as conn:
            result = conn.execute("DELETE FROM reminders WHERE id = ?", (reminder_id,))
            return result.rowcount > 0
