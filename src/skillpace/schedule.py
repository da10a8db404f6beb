"""Weekly recurring plan: one ordered list of blocks per weekday.

Blocks keep insertion order, not time order. Every edit returns a new
schedule mapping; the input mapping is never mutated.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from skillpace.models import ScheduleBlock, Weekday, WeeklySchedule, empty_schedule, new_id

DEFAULT_BLOCK_START = "06:00"
DEFAULT_BLOCK_MINUTES = 30

_HHMM = re.compile(r"([0-9]{2}):([0-9]{2})")

_WEEKDAYS = list(Weekday)


def default_weekly_schedule() -> WeeklySchedule:
    """All seven weekdays, each with no blocks."""
    return empty_schedule()


def weekday_for(day: date | datetime) -> Weekday:
    return _WEEKDAYS[day.weekday()]


def weekday_label(day: Weekday) -> str:
    return day.label


def parse_weekday(value: str) -> Weekday:
    """Accept 'mon', 'Monday', 'MON', ... Raises ValueError otherwise."""
    key = value.strip().lower()[:3]
    try:
        return Weekday(key)
    except ValueError:
        valid = ", ".join(d.value for d in Weekday)
        raise ValueError(f"Unknown weekday '{value}'. Use one of: {valid}") from None


def start_time_to_minutes(start_time: str) -> int:
    """Minutes since midnight for an "HH:MM" string.

    Anything that is not exactly two digits, a colon and two digits within
    a 24h clock counts as midnight (0) instead of failing.
    """
    m = _HHMM.fullmatch(start_time or "")
    if not m:
        return 0
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        return 0
    return hours * 60 + minutes


def _copy(schedule: WeeklySchedule) -> WeeklySchedule:
    out = empty_schedule()
    out.update({day: tuple(blocks) for day, blocks in schedule.items()})
    return out


def add_block(
    schedule: WeeklySchedule,
    day: Weekday,
    start_time: str = DEFAULT_BLOCK_START,
    minutes: int = DEFAULT_BLOCK_MINUTES,
) -> tuple[WeeklySchedule, ScheduleBlock]:
    """Append a fresh block to *day*. Returns (new_schedule, block)."""
    block = ScheduleBlock(id=new_id(), start_time=start_time, minutes=max(0, minutes))
    out = _copy(schedule)
    out[day] = out[day] + (block,)
    return out, block


def update_block(
    schedule: WeeklySchedule,
    day: Weekday,
    block_id: str,
    start_time: str | None = None,
    minutes: int | None = None,
) -> WeeklySchedule:
    """Replace block *block_id* in place (same position). Raises KeyError if absent."""
    blocks = schedule.get(day, ())
    if not any(b.id == block_id for b in blocks):
        raise KeyError(block_id)
    changes: dict = {}
    if start_time is not None:
        changes["start_time"] = start_time
    if minutes is not None:
        changes["minutes"] = max(0, minutes)
    out = _copy(schedule)
    out[day] = tuple(
        ScheduleBlock(
            id=b.id,
            start_time=changes.get("start_time", b.start_time),
            minutes=changes.get("minutes", b.minutes),
        )
        if b.id == block_id
        else b
        for b in blocks
    )
    return out


def delete_block(schedule: WeeklySchedule, day: Weekday, block_id: str) -> WeeklySchedule:
    """Drop block *block_id*; remaining blocks keep their relative order."""
    blocks = schedule.get(day, ())
    if not any(b.id == block_id for b in blocks):
        raise KeyError(block_id)
    out = _copy(schedule)
    out[day] = tuple(b for b in blocks if b.id != block_id)
    return out


def find_block(schedule: WeeklySchedule, block_id: str) -> tuple[Weekday, ScheduleBlock] | None:
    for day in Weekday:
        for b in schedule.get(day, ()):
            if b.id == block_id:
                return day, b
    return None


def planned_minutes(schedule: WeeklySchedule, day: Weekday | None = None) -> int:
    """Total planned minutes for one weekday, or the whole week."""
    days = [day] if day is not None else list(Weekday)
    return sum(b.minutes for d in days for b in schedule.get(d, ()))
