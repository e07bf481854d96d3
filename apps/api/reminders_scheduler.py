from __future__ import annotations

import logging
from functools import partial
from typing import Optional

from apps.api.dependencies import default_store
from apps.api.notifications import EmailNotifier
from packages.core.reminders.config import reminder_timezone, reminder_tzinfo
from packages.core.reminders.scheduler import ReminderScheduler
from packages.core.reminders.service import build_reminder_message, restore_reminders
from packages.core.reminders.timers import APSchedulerTimers, TimerBackend
from packages.core.storage.sqlite import SQLiteNoteStore


logger = logging.getLogger("mynote.reminders")

_SCHEDULER: Optional[ReminderScheduler] = None


def build_scheduler(
    store: SQLiteNoteStore, timers: Optional[TimerBackend] = None
) -> ReminderScheduler:
    return ReminderScheduler(
        timers=timers or APSchedulerTimers(reminder_timezone()),
        notifier=EmailNotifier(store),
        build_message=partial(build_reminder_message, store),
        timezone=reminder_tzinfo(),
    )


def start_scheduler(store: SQLiteNoteStore) -> ReminderScheduler:
    global _SCHEDULER
    if _SCHEDULER is None:
        _SCHEDULER = build_scheduler(store)
    _SCHEDULER.start()
    restore_reminders(store, _SCHEDULER)
    return _SCHEDULER


def get_scheduler() -> ReminderScheduler:
    """Scheduler shared by the routes.

    Before startup, or with the scheduler disabled, this is an unstarted
    scheduler: reminders are still tracked but no timer is dispatched.
    """
    global _SCHEDULER
    if _SCHEDULER is None:
        _SCHEDULER = build_scheduler(default_store())
    return _SCHEDULER


def stop_scheduler() -> None:
    global _SCHEDULER
    if _SCHEDULER is None:
        return
    _SCHEDULER.shutdown()
    _SCHEDULER = None
    logger.info("reminder_scheduler_stopped")
