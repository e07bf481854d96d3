from .service import (
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

__all__ = [
    "create_note",
    "delete_note",
    "get_note",
    "list_notes",
    "update_note",
    "update_note_color",
    "update_note_priority",
    "update_note_status",
    "update_todo_status",
]
