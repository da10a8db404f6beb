"""Local wall-clock helpers.

All day comparisons happen on the local calendar of the machine running
the tracker. Aware timestamps are converted to local time first; naive
timestamps are assumed to already be local.
"""

from __future__ import annotations

from datetime import datetime


def now_local() -> datetime:
    return datetime.now()


def now_iso() -> str:
    """Current moment as an offset-aware ISO 8601 string."""
    return datetime.now().astimezone().isoformat()


def to_local(dt: datetime) -> datetime:
    """Return *dt* as a naive local datetime."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def parse_iso(value: object) -> datetime | None:
    """Parse an ISO timestamp into a naive local datetime, or None if it isn't one."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return to_local(datetime.fromisoformat(value.strip()))
    except (ValueError, OverflowError):
        return None


def start_of_local_day(now: datetime | None = None) -> datetime:
    now = to_local(now or now_local())
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def stamp(now: datetime | None = None) -> str:
    """ISO string for *now* (or the current moment)."""
    if now is None:
        return now_iso()
    return now.isoformat()
