from .notes import router as notes_router
from .reminders import router as reminders_router

__all__ = [
    "notes_router",
    "reminders_router",
]
