from __future__ import annotations

import os
from zoneinfo import ZoneInfo


DEFAULT_TIMEZONE = "Asia/Bangkok"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
FREQUENCIES = ("daily", "weekly", "monthly", "yearly")


def reminder_timezone() -> str:
    """Civil timezone every reminder time is interpreted in.

    Daylight-saving transitions and tz database changes are not handled;
    reminder times are stored as wall-clock strings without an offset.
    """
    return os.getenv("REMINDER_TIMEZONE", DEFAULT_TIMEZONE)


def reminder_tzinfo() -> ZoneInfo:
    return ZoneInfo(reminder_timezone())
