from __future__ import annotations

import datetime as dt
import logging
from typing import Callable, List, Optional, Protocol
from zoneinfo import ZoneInfo

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger


logger = logging.getLogger("mynote.timers")


class TimerBackend(Protocol):
    def now(self) -> dt.datetime:
        """Current time, timezone-aware."""

    def schedule(self, key: str, run_at: dt.datetime, action: Callable[[], None]) -> None:
        """Run ``action`` once at ``run_at``, replacing any timer with the same key."""

    def cancel(self, key: str) -> bool:
        """Drop a pending timer. Returns True if one was pending."""

    def pending(self) -> List[str]:
        """Keys of timers that have not fired yet."""

    def start(self) -> None:
        """Begin dispatching timers."""

    def shutdown(self) -> None:
        """Stop dispatching timers."""


class APSchedulerTimers:
    """One-shot timers backed by an APScheduler background scheduler.

    Jobs use a date trigger with no misfire grace limit, so a timer that
    comes due while the scheduler is busy still runs, just late.
    """

    def __init__(self, timezone: str, scheduler: Optional[BackgroundScheduler] = None) -> None:
        self._tz = ZoneInfo(timezone)
        self._scheduler = scheduler or BackgroundScheduler(timezone=timezone)

    def now(self) -> dt.datetime:
        return dt.datetime.now(self._tz)

    def schedule(self, key: str, run_at: dt.datetime, action: Callable[[], None]) -> None:
        self._scheduler.add_job(
            action,
            trigger=DateTrigger(run_date=run_at),
            id=key,
            replace_existing=True,
            misfire_grace_time=None,
            max_instances=1,
        )

    def cancel(self, key: str) -> bool:
        try:
            self._scheduler.remove_job(key)
        except JobLookupError:
            return False
        return True

    def pending(self) -> List[str]:
        return [job.id for job in self._scheduler.get_jobs()]

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("timers_started timezone=%s", self._tz.key)

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("timers_stopped")
