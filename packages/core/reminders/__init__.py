from .errors import ConflictError, InvalidInputError, NotFoundError, ReminderError
from .models import DeliveryResult, Notifier, ReminderMessage
from .scheduler import ReminderPhase, ReminderScheduler
from .service import (
    add_reminder,
    build_reminder_message,
    delete_reminder,
    get_reminder,
    list_note_reminders,
    restore_reminders,
    update_reminder,
)

__all__ = [
    "ConflictError",
    "DeliveryResult",
    "InvalidInputError",
    "NotFoundError",
    "Notifier",
    "ReminderError",
    "ReminderMessage",
    "ReminderPhase",
    "ReminderScheduler",
    "add_reminder",
    "build_reminder_message",
    "delete_reminder",
    "get_reminder",
    "list_note_reminders",
    "restore_reminders",
    "update_reminder",
]
