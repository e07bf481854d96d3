from __future__ import annotations

import datetime as dt
from typing import Optional, Tuple

from dateutil.relativedelta import relativedelta

from .config import FREQUENCIES, TIME_FORMAT


_STEPS = {
    "daily": relativedelta(days=1),
    "weekly": relativedelta(days=7),
    "monthly": relativedelta(months=1),
    "yearly": relativedelta(years=1),
}


def parse_reminder_time(value: str, tz: dt.tzinfo) -> dt.datetime:
    """Parse ``YYYY-MM-DD HH:MM:SS`` as wall-clock time in ``tz``.

    Raises ValueError when the string does not match the format.
    """
    return dt.datetime.strptime(value.strip(), TIME_FORMAT).replace(tzinfo=tz)


def normalize_frequency(frequency: Optional[str]) -> Optional[str]:
    if frequency is None:
        return None
    cleaned = frequency.strip().lower()
    return cleaned or None


def is_recognized(frequency: Optional[str]) -> bool:
    return frequency in FREQUENCIES


def occurrence(anchor: dt.datetime, frequency: Optional[str], index: int) -> Optional[dt.datetime]:
    """Return the ``index``-th occurrence counted from ``anchor``.

    Calendar arithmetic is applied to wall-clock fields. Month and year steps
    clamp to the last valid day (Jan 31 -> Feb 28/29, Feb 29 -> Feb 28), and
    every occurrence is computed from the anchor rather than from the previous
    one, so a chain started on the 31st comes back to the 31st.
    """
    step = _STEPS.get(frequency or "")
    if step is None:
        return None
    return anchor + step * index


def advance(value: dt.datetime, frequency: Optional[str]) -> Optional[dt.datetime]:
    return occurrence(value, frequency, 1)


def first_occurrence_after(
    anchor: dt.datetime, frequency: Optional[str], now: dt.datetime
) -> Optional[Tuple[int, dt.datetime]]:
    if not is_recognized(frequency):
        return None
    index = 0
    candidate = anchor
    while candidate <= now:
        index += 1
        candidate = occurrence(anchor, frequency, index)
    return index, candidate
