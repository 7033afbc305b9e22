from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from doorlist.models import Event


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive values are read back from SQLite; they were written as UTC."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def scheduled_end(event: Event, tz: ZoneInfo) -> datetime:
    """End of the event in UTC.

    No end time means the end of the event's day. An end time at or before
    the start time means the event runs past midnight.
    """
    if event.time_end is None:
        end = start_of_day(event.date + timedelta(days=1), tz)
    else:
        end_day = event.date
        if event.time_start is not None and event.time_end <= event.time_start:
            end_day = event.date + timedelta(days=1)
        end = datetime.combine(end_day, event.time_end, tzinfo=tz)
    return end.astimezone(timezone.utc)


def has_ended(event: Event, tz: ZoneInfo, now: datetime) -> bool:
    return as_utc(now) > scheduled_end(event, tz)


def display_time(moment: datetime, tz: ZoneInfo) -> str:
    """12-hour wall-clock time, e.g. ``9:05 PM``."""
    local = as_utc(moment).astimezone(tz)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix}"
