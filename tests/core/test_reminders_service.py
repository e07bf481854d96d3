import datetime as dt

import pytest

from conftest import START
from packages.core.reminders.errors import ConflictError, InvalidInputError, NotFoundError
from packages.core.reminders.scheduler import ReminderPhase
from packages.core.reminders.service import (
    add_reminder,
    build_reminder_message,
    delete_reminder,
    get_reminder,
    list_note_reminders,
    restore_reminders,
    update_reminder,
)
from packages.core.storage.base import TodoItemState


def _fmt(value):
    return value.strftime("%Y-%m-%d %H:%M:%S")


def test_add_reminder_fires_once_to_owner(store, scheduler, timers, notifier, owner, note):
    reminder = add_reminder(
        store,
        store,
        scheduler,
        note_id=note.id,
        user_id=owner.id,
        reminder_time=_fmt(START + dt.timedelta(seconds=2)),
    )
    assert reminder.id
    assert scheduler.state(reminder.id) == ReminderPhase.ARMED

    timers.advance(dt.timedelta(seconds=2))

    assert len(notifier.sent) == 1
    sent = notifier.sent[0]
    assert sent["user_id"] == owner.id
    assert sent["subject"] == "Reminder Notification"
    assert "Title: Pay rent" in sent["body"]
    assert scheduler.state(reminder.id) == ReminderPhase.UNARMED


def test_add_reminder_in_past_is_rejected_without_side_effects(store, scheduler, timers, owner, note):
    with pytest.raises(InvalidInputError):
        add_reminder(
            store,
            store,
            scheduler,
            note_id=note.id,
            user_id=owner.id,
            reminder_time=_fmt(START - dt.timedelta(minutes=1)),
        )

    assert store.list_reminders() == []
    assert scheduler.pending() == {}
    assert timers.pending() == []


def test_add_reminder_bad_format_is_invalid(store, scheduler, owner, note):
    with pytest.raises(InvalidInputError):
        add_reminder(store, store, scheduler, note.id, owner.id, "tomorrow at nine")


def test_add_reminder_unknown_frequency_is_invalid(store, scheduler, owner, note):
    with pytest.raises(InvalidInputError):
        add_reminder(
            store,
            store,
            scheduler,
            note.id,
            owner.id,
            _fmt(START + dt.timedelta(hours=1)),
            recurring=True,
            frequency="hourly",
        )
    assert store.list_reminders() == []


def test_second_reminder_on_note_conflicts(store, scheduler, owner, note):
    add_reminder(store, store, scheduler, note.id, owner.id, _fmt(START + dt.timedelta(hours=1)))

    with pytest.raises(ConflictError):
        add_reminder(store, store, scheduler, note.id, owner.id, _fmt(START + dt.timedelta(hours=2)))


def test_racing_insert_still_conflicts(store, scheduler, owner, note, monkeypatch):
    add_reminder(store, store, scheduler, note.id, owner.id, _fmt(START + dt.timedelta(hours=1)))
    monkeypatch.setattr(store, "list_reminders_by_note", lambda note_id: [])

    with pytest.raises(ConflictError):
        add_reminder(store, store, scheduler, note.id, owner.id, _fmt(START + dt.timedelta(hours=2)))
    assert len(scheduler.pending()) == 1


def test_foreign_note_is_not_found(store, scheduler, note):
    other = store.create_user("bob", "bob@example.com")

    with pytest.raises(NotFoundError):
        add_reminder(store, store, scheduler, note.id, other.id, _fmt(START + dt.timedelta(hours=1)))
    with pytest.raises(NotFoundError):
        list_note_reminders(store, store, note.id, other.id)


def test_weekly_reminder_fires_three_times_in_three_weeks(store, scheduler, timers, notifier, owner, note):
    t0 = START + dt.timedelta(minutes=10)
    add_reminder(
        store,
        store,
        scheduler,
        note.id,
        owner.id,
        _fmt(t0),
        recurring=True,
        frequency="weekly",
    )

    timers.advance(dt.timedelta(minutes=10) + dt.timedelta(weeks=3) - dt.timedelta(seconds=1))

    assert [item["at"] for item in notifier.sent] == [
        t0,
        t0 + dt.timedelta(days=7),
        t0 + dt.timedelta(days=14),
    ]


def test_update_only_recurring_keeps_fire_time_and_starts_chain(
    store, scheduler, timers, notifier, owner, note
):
    t0 = START + dt.timedelta(hours=1)
    reminder = add_reminder(store, store, scheduler, note.id, owner.id, _fmt(t0))

    updated = update_reminder(
        store,
        store,
        scheduler,
        user_id=owner.id,
        reminder_id=reminder.id,
        recurring=True,
        frequency="daily",
    )
    assert updated.reminder_time == reminder.reminder_time
    assert scheduler.next_fire_time(reminder.id) == t0

    timers.advance(dt.timedelta(hours=1))
    assert len(notifier.sent) == 1
    assert scheduler.next_fire_time(reminder.id) == t0 + dt.timedelta(days=1)


def test_update_time_rearms_and_persists(store, scheduler, timers, notifier, owner, note):
    reminder = add_reminder(store, store, scheduler, note.id, owner.id, _fmt(START + dt.timedelta(hours=1)))
    new_time = START + dt.timedelta(hours=3)

    update_reminder(store, store, scheduler, owner.id, reminder.id, reminder_time=_fmt(new_time))

    assert store.get_reminder(reminder.id).reminder_time == _fmt(new_time)
    timers.advance(dt.timedelta(hours=2))
    assert notifier.sent == []
    timers.advance(dt.timedelta(hours=1))
    assert len(notifier.sent) == 1


def test_update_with_past_time_changes_nothing(store, scheduler, owner, note):
    t0 = START + dt.timedelta(hours=1)
    reminder = add_reminder(store, store, scheduler, note.id, owner.id, _fmt(t0))

    with pytest.raises(InvalidInputError):
        update_reminder(
            store,
            store,
            scheduler,
            owner.id,
            reminder.id,
            reminder_time=_fmt(START - dt.timedelta(days=1)),
        )

    assert store.get_reminder(reminder.id).reminder_time == _fmt(t0)
    assert scheduler.next_fire_time(reminder.id) == t0


def test_update_after_fire_resumes_recurring_at_next_occurrence(
    store, scheduler, timers, owner, note
):
    t0 = START + dt.timedelta(minutes=1)
    reminder = add_reminder(store, store, scheduler, note.id, owner.id, _fmt(t0))
    timers.advance(dt.timedelta(hours=2))
    assert scheduler.pending() == {}

    update_reminder(store, store, scheduler, owner.id, reminder.id, recurring=True, frequency="daily")

    assert scheduler.next_fire_time(reminder.id) == t0 + dt.timedelta(days=1)


def test_update_missing_or_foreign_reminder_is_not_found(store, scheduler, owner, note):
    with pytest.raises(NotFoundError):
        update_reminder(store, store, scheduler, owner.id, 404, recurring=True)

    reminder = add_reminder(store, store, scheduler, note.id, owner.id, _fmt(START + dt.timedelta(hours=1)))
    other = store.create_user("bob", "bob@example.com")
    with pytest.raises(NotFoundError):
        update_reminder(store, store, scheduler, other.id, reminder.id, recurring=True)
    with pytest.raises(NotFoundError):
        get_reminder(store, store, other.id, reminder.id)


def test_delete_reminder_cancels_timer(store, scheduler, timers, notifier, owner, note):
    reminder = add_reminder(store, store, scheduler, note.id, owner.id, _fmt(START + dt.timedelta(hours=1)))

    delete_reminder(store, store, scheduler, owner.id, reminder.id)

    assert store.get_reminder(reminder.id) is None
    timers.advance(dt.timedelta(days=1))
    assert notifier.sent == []
    with pytest.raises(NotFoundError):
        delete_reminder(store, store, scheduler, owner.id, reminder.id)


def test_restore_reminders_rearms_stored_records(store, scheduler, owner, note):
    reminder = store.create_reminder(
        note_id=note.id,
        reminder_time=_fmt(START + dt.timedelta(days=1)),
        recurring=False,
        frequency=None,
    )

    assert restore_reminders(store, scheduler) == 1
    assert scheduler.next_fire_time(reminder.id) == START + dt.timedelta(days=1)


def test_reminder_message_lists_todo_items(store, owner):
    note = store.create_note(
        user_id=owner.id,
        title="Groceries",
        content="",
        color=None,
        priority=0,
        is_todo=True,
        todo_items=[],
        created_at="2026-01-01T00:00:00+00:00",
    )
    reminder = store.create_reminder(note.id, "2026-01-06 09:00:00", False, None)

    note_with_items = store.create_note(
        user_id=owner.id,
        title="Errands",
        content="Before noon",
        color=None,
        priority=0,
        is_todo=True,
        todo_items=[
            TodoItemState(id=0, content="milk", is_done=True),
            TodoItemState(id=0, content="eggs", is_done=False),
        ],
        created_at="2026-01-01T00:00:00+00:00",
    )
    other = store.create_reminder(note_with_items.id, "2026-01-07 10:00:00", False, None)

    plain = build_reminder_message(store, reminder)
    assert plain.body == "Reminder\n\nTitle: Groceries\n\nReminder Time: 2026-01-06 09:00:00\n"

    message = build_reminder_message(store, other)
    assert "Content: Before noon" in message.body
    assert "- milk [Done]" in message.body
    assert "- eggs [Not Done]" in message.body
    assert message.user_id == owner.id


def test_update_losing_race_with_delete_is_not_found_and_stays_unarmed(
    store, scheduler, timers, notifier, owner, note, monkeypatch
):
    reminder = add_reminder(
        store,
        store,
        scheduler,
        note.id,
        owner.id,
        _fmt(START + dt.timedelta(hours=1)),
        recurring=True,
        frequency="daily",
    )
    write = store.update_reminder

    def delete_then_write(updated):
        delete_reminder(store, store, scheduler, owner.id, reminder.id)
        return write(updated)

    monkeypatch.setattr(store, "update_reminder", delete_then_write)

    with pytest.raises(NotFoundError):
        update_reminder(store, store, scheduler, owner.id, reminder.id, frequency="weekly")

    assert store.get_reminder(reminder.id) is None
    assert scheduler.pending() == {}
    timers.advance(dt.timedelta(days=15))
    assert notifier.sent == []


def test_delete_between_update_write_and_arm_leaves_nothing_armed(
    store, scheduler, timers, notifier, owner, note, monkeypatch
):
    reminder = add_reminder(
        store,
        store,
        scheduler,
        note.id,
        owner.id,
        _fmt(START + dt.timedelta(hours=1)),
        recurring=True,
        frequency="daily",
    )
    write = store.update_reminder

    def write_then_delete(updated):
        written = write(updated)
        delete_reminder(store, store, scheduler, owner.id, reminder.id)
        return written

    monkeypatch.setattr(store, "update_reminder", write_then_delete)

    with pytest.raises(NotFoundError):
        update_reminder(
            store,
            store,
            scheduler,
            owner.id,
            reminder.id,
            reminder_time=_fmt(START + dt.timedelta(hours=2)),
        )

    assert scheduler.pending() == {}
    timers.advance(dt.timedelta(days=3))
    assert notifier.sent == []


def test_timer_of_deleted_reminder_delivers_nothing_and_stops(
    store, scheduler, timers, notifier, owner, note
):
    reminder = add_reminder(
        store,
        store,
        scheduler,
        note.id,
        owner.id,
        _fmt(START + dt.timedelta(minutes=5)),
        recurring=True,
        frequency="daily",
    )
    store.delete_reminder(reminder.id)

    timers.advance(dt.timedelta(days=3))

    assert notifier.sent == []
    assert scheduler.pending() == {}


def test_update_with_time_reached_during_write_still_fires(
    store, scheduler, timers, notifier, owner, note, monkeypatch
):
    reminder = add_reminder(store, store, scheduler, note.id, owner.id, _fmt(START + dt.timedelta(hours=1)))
    write = store.update_reminder

    def slow_write(updated):
        timers.set_now(timers.now() + dt.timedelta(seconds=2))
        return write(updated)

    monkeypatch.setattr(store, "update_reminder", slow_write)

    update_reminder(
        store,
        store,
        scheduler,
        owner.id,
        reminder.id,
        reminder_time=_fmt(START + dt.timedelta(seconds=1)),
    )
    timers.advance(dt.timedelta(seconds=1))

    assert len(notifier.sent) == 1
    assert scheduler.pending() == {}


def test_add_reminder_to_note_deleted_mid_request_is_not_found(
    store, scheduler, owner, note, monkeypatch
):
    def delete_note_first(note_id):
        store.delete_note(note_id)
        return []

    monkeypatch.setattr(store, "list_reminders_by_note", delete_note_first)

    with pytest.raises(NotFoundError):
        add_reminder(store, store, scheduler, note.id, owner.id, _fmt(START + dt.timedelta(hours=1)))
    assert scheduler.pending() == {}
