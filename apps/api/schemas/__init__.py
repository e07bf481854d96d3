from .notes import (
    NoteColorRequest,
    NoteCreateRequest,
    NotePriorityRequest,
    NoteResponse,
    NoteStatusRequest,
    NoteUpdateRequest,
    TodoItemPayload,
    TodoItemResponse,
    TodoStatusRequest,
)
from .reminders import ReminderCreateRequest, ReminderResponse, ReminderUpdateRequest

__all__ = [
    "NoteColorRequest",
    "NoteCreateRequest",
    "NotePriorityRequest",
    "NoteResponse",
    "NoteStatusRequest",
    "NoteUpdateRequest",
    "ReminderCreateRequest",
    "ReminderResponse",
    "ReminderUpdateRequest",
    "TodoItemPayload",
    "TodoItemResponse",
    "TodoStatusRequest",
]
