# src/tasksync/tasks/snooze.py

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from enum import StrEnum

WAKE_HOUR = 9


class SnoozeMode(StrEnum):
    ONE_HOUR = "1h"
    TOMORROW = "tomorrow"
    NEXT_WEEK = "nextweek"


def _at_wake_hour(now: datetime, days: int) -> datetime:
    day = now.date() + timedelta(days=days)
    if now.tzinfo is None:
        # naive -> local wall clock; astimezone() picks the offset valid on that day
        return datetime.combine(day, time(WAKE_HOUR)).astimezone()
    return datetime.combine(day, time(WAKE_HOUR), tzinfo=now.tzinfo)


def resolve_snooze(mode: str, now: datetime | None = None) -> str:
    """
    Map a snooze directive to an absolute ISO-8601 wake time.

    - "1h"       -> now + 60 minutes
    - "tomorrow" -> next calendar day, 09:00 local time
    - "nextweek" -> +7 calendar days, 09:00 local time
    - anything else is returned unchanged (expected to already be ISO-8601,
      e.g. from a date picker); the server rejects invalid values.

    A naive `now` (the default) is local wall-clock time, so a wake time
    on the other side of a DST change still lands at 09:00.
    """
    if mode == SnoozeMode.ONE_HOUR:
        # elapsed time, not wall-clock time
        base = now if now is not None else datetime.now().astimezone()
        wake = (base.astimezone(timezone.utc) + timedelta(hours=1)).astimezone(base.tzinfo)
    elif mode == SnoozeMode.TOMORROW:
        wake = _at_wake_hour(now if now is not None else datetime.now(), 1)
    elif mode == SnoozeMode.NEXT_WEEK:
        wake = _at_wake_hour(now if now is not None else datetime.now(), 7)
    else:
        return mode

    return wake.isoformat(timespec="milliseconds")
