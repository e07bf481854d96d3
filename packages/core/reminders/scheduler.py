from __future__ import annotations

import contextlib
import datetime as dt
import enum
import functools
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, Optional

from opentelemetry import trace

from ..storage.base import ReminderState
from .models import Notifier, ReminderMessage
from .recurrence import first_occurrence_after, occurrence
from .timers import TimerBackend


logger = logging.getLogger("mynote.reminders")
tracer = trace.get_tracer("mynote.reminders")

MessageBuilder = Callable[[ReminderState], Optional[ReminderMessage]]


class ReminderPhase(str, enum.Enum):
    UNARMED = "unarmed"
    ARMED = "armed"
    FIRING = "firing"


@dataclass(frozen=True)
class ScheduledFire:
    reminder: ReminderState
    fire_at: dt.datetime
    anchor: dt.datetime
    index: int
    generation: int

    @property
    def job_key(self) -> str:
        return f"reminder-{self.reminder.id}-{self.generation}"


@dataclass
class _Slot:
    # ``lock`` guards the fields below and is only held for bookkeeping.
    # ``fire_lock`` is held for a whole delivery so fires never overlap.
    # A retired slot has left the registry and must not be armed again.
    lock: threading.Lock = field(default_factory=threading.Lock)
    fire_lock: threading.Lock = field(default_factory=threading.Lock)
    scheduled: Optional[ScheduledFire] = None
    generation: int = 0
    firing: bool = False
    retired: bool = False


class ReminderScheduler:
    """Keeps at most one pending fire per reminder and drives recurrence.

    Every arm or cancel gives the reminder a new generation, drawn from a
    counter shared by all reminders so a value is never reused. A timer only
    delivers if its generation is still current when it wakes, and a fire
    only rearms if nothing changed the generation while it was delivering.
    Bookkeeping for a reminder is dropped once nothing is scheduled and no
    fire is running.
    """

    def __init__(
        self,
        timers: TimerBackend,
        notifier: Notifier,
        build_message: MessageBuilder,
        timezone: dt.tzinfo,
    ) -> None:
        self._timers = timers
        self._notifier = notifier
        self._build_message = build_message
        self.timezone = timezone
        self._slots: Dict[int, _Slot] = {}
        self._slots_lock = threading.Lock()
        self._generations = itertools.count(1)

    def _existing_slot(self, reminder_id: int) -> Optional[_Slot]:
        with self._slots_lock:
            return self._slots.get(reminder_id)

    @contextlib.contextmanager
    def _live_slot(self, reminder_id: int) -> Iterator[_Slot]:
        """Lock the registered slot for a reminder, creating it if needed."""
        while True:
            with self._slots_lock:
                slot = self._slots.get(reminder_id)
                if slot is None:
                    slot = _Slot()
                    self._slots[reminder_id] = slot
            slot.lock.acquire()
            if not slot.retired:
                break
            slot.lock.release()
        try:
            yield slot
        finally:
            slot.lock.release()

    def _retire_locked(self, reminder_id: int, slot: _Slot) -> None:
        if slot.scheduled is not None or slot.firing:
            return
        with self._slots_lock:
            if self._slots.get(reminder_id) is slot:
                del self._slots[reminder_id]
        slot.retired = True

    def now(self) -> dt.datetime:
        return self._timers.now().astimezone(self.timezone)

    def start(self) -> None:
        self._timers.start()

    def arm(
        self,
        reminder: ReminderState,
        fire_at: dt.datetime,
        anchor: Optional[dt.datetime] = None,
        index: int = 0,
    ) -> None:
        """Schedule a fire at ``fire_at``, superseding any pending one.

        ``anchor`` and ``index`` locate ``fire_at`` within a recurrence chain;
        they default to a chain that starts at ``fire_at``.
        """
        with self._live_slot(reminder.id) as slot:
            self._arm_locked(
                slot, reminder, fire_at, anchor if anchor is not None else fire_at, index
            )
        logger.info("reminder_armed id=%s fire_at=%s", reminder.id, fire_at.isoformat())

    def _arm_locked(
        self,
        slot: _Slot,
        reminder: ReminderState,
        fire_at: dt.datetime,
        anchor: dt.datetime,
        index: int,
    ) -> None:
        if slot.scheduled is not None:
            self._timers.cancel(slot.scheduled.job_key)
        slot.generation = next(self._generations)
        scheduled = ScheduledFire(
            reminder=reminder,
            fire_at=fire_at,
            anchor=anchor,
            index=index,
            generation=slot.generation,
        )
        slot.scheduled = scheduled
        self._timers.schedule(
            scheduled.job_key,
            fire_at,
            functools.partial(self._fire, reminder.id, scheduled.generation),
        )

    def cancel(self, reminder_id: int) -> bool:
        """Drop the pending fire for a reminder and stop its chain.

        Idempotent. A delivery that has already started still completes,
        but it will not rearm. Returns True if a fire was pending.
        """
        slot = self._existing_slot(reminder_id)
        if slot is None:
            return False
        with slot.lock:
            if slot.retired:
                return False
            slot.generation = next(self._generations)
            scheduled = slot.scheduled
            slot.scheduled = None
            if scheduled is not None:
                self._timers.cancel(scheduled.job_key)
            self._retire_locked(reminder_id, slot)
        if scheduled is not None:
            logger.info("reminder_cancelled id=%s", reminder_id)
        return scheduled is not None

    def state(self, reminder_id: int) -> ReminderPhase:
        slot = self._existing_slot(reminder_id)
        if slot is None:
            return ReminderPhase.UNARMED
        with slot.lock:
            if slot.firing:
                return ReminderPhase.FIRING
            if slot.scheduled is not None:
                return ReminderPhase.ARMED
            return ReminderPhase.UNARMED

    def next_fire_time(self, reminder_id: int) -> Optional[dt.datetime]:
        slot = self._existing_slot(reminder_id)
        if slot is None:
            return None
        with slot.lock:
            return slot.scheduled.fire_at if slot.scheduled else None

    def tracked(self) -> int:
        """Number of reminders the scheduler currently keeps bookkeeping for."""
        with self._slots_lock:
            return len(self._slots)

    def pending(self) -> Dict[int, dt.datetime]:
        with self._slots_lock:
            slots = dict(self._slots)
        result = {}
        for reminder_id, slot in slots.items():
            with slot.lock:
                if slot.scheduled is not None:
                    result[reminder_id] = slot.scheduled.fire_at
        return result

    def _fire(self, reminder_id: int, generation: int) -> None:
        slot = self._existing_slot(reminder_id)
        if slot is None:
            logger.debug("reminder_fire_superseded id=%s generation=%s", reminder_id, generation)
            return
        with slot.fire_lock:
            with slot.lock:
                scheduled = slot.scheduled
                if slot.retired or scheduled is None or scheduled.generation != generation:
                    logger.debug(
                        "reminder_fire_superseded id=%s generation=%s", reminder_id, generation
                    )
                    return
                slot.scheduled = None
                slot.firing = True

            keep_chain = True
            try:
                with tracer.start_as_current_span("reminder.fire") as span:
                    span.set_attribute("reminder.id", reminder_id)
                    span.set_attribute("reminder.index", scheduled.index)
                    keep_chain = self._deliver(scheduled)
            finally:
                with slot.lock:
                    slot.firing = False
                    if keep_chain and slot.generation == generation:
                        self._rearm_locked(slot, scheduled)
                    self._retire_locked(reminder_id, slot)

    def _deliver(self, scheduled: ScheduledFire) -> bool:
        reminder = scheduled.reminder
        try:
            message = self._build_message(reminder)
        except Exception:
            logger.exception("reminder_message_failed id=%s", reminder.id)
            return True
        if message is None:
            logger.warning(
                "reminder_record_missing id=%s note_id=%s", reminder.id, reminder.note_id
            )
            return False
        try:
            result = self._notifier.deliver(message.user_id, message.subject, message.body)
        except Exception:
            logger.exception("reminder_delivery_error id=%s", reminder.id)
            return True
        if result.ok:
            logger.info(
                "reminder_fired id=%s user_id=%s fire_at=%s",
                reminder.id,
                message.user_id,
                scheduled.fire_at.isoformat(),
            )
        else:
            logger.warning(
                "reminder_delivery_failed id=%s user_id=%s error=%s",
                reminder.id,
                message.user_id,
                result.error,
            )
        return True

    def _rearm_locked(self, slot: _Slot, fired: ScheduledFire) -> None:
        reminder = fired.reminder
        if not reminder.recurring:
            return
        next_index = fired.index + 1
        next_time = occurrence(fired.anchor, reminder.frequency, next_index)
        if next_time is None:
            logger.info(
                "reminder_chain_stopped id=%s frequency=%s", reminder.id, reminder.frequency
            )
            return
        if next_time <= self.now():
            logger.warning(
                "reminder_chain_stopped id=%s next_time=%s reason=not_in_future",
                reminder.id,
                next_time.isoformat(),
            )
            return
        self._arm_locked(slot, reminder, next_time, fired.anchor, next_index)
        logger.info("reminder_rearmed id=%s fire_at=%s", reminder.id, next_time.isoformat())

    def resume(self, reminder: ReminderState, fire_at: dt.datetime) -> bool:
        """Arm a stored reminder whose time may already have passed.

        A future ``fire_at`` is armed as is. A recurring reminder whose time
        has passed resumes at its first occurrence after now. Anything else
        has nothing left to fire: its pending timer is cancelled and False is
        returned.
        """
        now = self.now()
        if fire_at > now:
            self.arm(reminder, fire_at)
            return True
        resumed = None
        if reminder.recurring:
            resumed = first_occurrence_after(fire_at, reminder.frequency, now)
        if resumed is None:
            self.cancel(reminder.id)
            logger.info("reminder_not_resumed id=%s fire_at=%s", reminder.id, fire_at.isoformat())
            return False
        index, next_time = resumed
        self.arm(reminder, next_time, anchor=fire_at, index=index)
        return True

    def rehydrate(
        self,
        reminders: Iterable[ReminderState],
        parse: Callable[[str], dt.datetime],
    ) -> int:
        """Arm stored reminders after a restart. Returns how many were armed."""
        armed = 0
        for reminder in reminders:
            try:
                fire_at = parse(reminder.reminder_time)
            except ValueError:
                logger.warning(
                    "reminder_restore_skipped id=%s value=%s", reminder.id, reminder.reminder_time
                )
                continue
            if self.resume(reminder, fire_at):
                armed += 1
        logger.info("reminders_restored armed=%s", armed)
        return armed

    def shutdown(self) -> None:
        for reminder_id in list(self.pending()):
            self.cancel(reminder_id)
        self._timers.shutdown()
