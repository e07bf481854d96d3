from __future__ import annotations


class ReminderError(Exception):
    """Base class for failures surfaced to the caller of the reminder service."""


class NotFoundError(ReminderError):
    """The reminder or note is missing, or does not belong to the caller."""


class ConflictError(ReminderError):
    """The note already carries a reminder."""


class InvalidInputError(ReminderError):
    """Unparseable or past reminder time, or an unknown frequency."""
