from __future__ import annotations

import datetime as dt
from functools import partial
from typing import Callable, Dict, List, Tuple
from zoneinfo import ZoneInfo

import pytest

from packages.core.reminders.models import DeliveryResult
from packages.core.reminders.scheduler import ReminderScheduler
from packages.core.reminders.service import build_reminder_message
from packages.core.storage.sqlite import SQLiteNoteStore


BANGKOK = ZoneInfo("Asia/Bangkok")
START = dt.datetime(2026, 1, 5, 8, 0, 0, tzinfo=BANGKOK)


class ManualTimers:
    """Timer backend driven by an explicit clock; timers run inside advance()."""

    def __init__(self, start: dt.datetime) -> None:
        self._now = start
        self.jobs: Dict[str, Tuple[dt.datetime, Callable[[], None]]] = {}
        self.started = False

    def now(self) -> dt.datetime:
        return self._now

    def set_now(self, value: dt.datetime) -> None:
        self._now = value

    def schedule(self, key, run_at, action) -> None:
        self.jobs[key] = (run_at, action)

    def cancel(self, key) -> bool:
        return self.jobs.pop(key, None) is not None

    def pending(self) -> List[str]:
        return sorted(self.jobs)

    def start(self) -> None:
        self.started = True

    def shutdown(self) -> None:
        self.jobs.clear()
        self.started = False

    def advance(self, delta: dt.timedelta) -> None:
        target = self._now + delta
        while True:
            due = [(run_at, key) for key, (run_at, _) in self.jobs.items() if run_at <= target]
            if not due:
                break
            run_at, key = min(due)
            _, action = self.jobs.pop(key)
            self._now = max(self._now, run_at)
            action()
        self._now = max(self._now, target)


class RecordingNotifier:
    def __init__(self, timers: ManualTimers) -> None:
        self._timers = timers
        self.sent: List[dict] = []

    def deliver(self, user_id: int, subject: str, body: str) -> DeliveryResult:
        self.sent.append(
            {"user_id": user_id, "subject": subject, "body": body, "at": self._timers.now()}
        )
        return DeliveryResult(ok=True)


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers(START)


@pytest.fixture
def notifier(timers) -> RecordingNotifier:
    return RecordingNotifier(timers)


@pytest.fixture
def store(tmp_path) -> SQLiteNoteStore:
    return SQLiteNoteStore(db_path=str(tmp_path / "mynote.db"))


@pytest.fixture
def scheduler(store, timers, notifier) -> ReminderScheduler:
    return ReminderScheduler(
        timers=timers,
        notifier=notifier,
        build_message=partial(build_reminder_message, store),
        timezone=BANGKOK,
    )


@pytest.fixture
def owner(store):
    return store.create_user("alice", "alice@example.com")


@pytest.fixture
def note(store, owner):
    return store.create_note(
        user_id=owner.id,
        title="Pay rent",
        content="Transfer to landlord",
        color="yellow",
        priority=1,
        is_todo=False,
        todo_items=[],
        created_at="2026-01-01T00:00:00+00:00",
    )
