"""Skill, session and snapshot models.

Models are frozen dataclasses: every edit produces a new value via
``dataclasses.replace`` so the snapshot held by the tracker is never
aliased by a pending edit. JSON uses camelCase keys; ``from_dict`` is
lenient and raises ``ValueError`` only when an entry has no identity.
"""

from __future__ import annotations

import enum
import re
import uuid
from dataclasses import dataclass, field, replace
from typing import Any

from skillpace.clock import now_iso

CURRENT_VERSION = 1

_DIGITS = re.compile(r"[0-9]+")


class Weekday(enum.StrEnum):
    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"
    FRI = "fri"
    SAT = "sat"
    SUN = "sun"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Priority(enum.IntEnum):
    CRITICAL = 1
    HIGH = 2
    MEDIUM = 3
    LOW = 4


def new_id() -> str:
    return str(uuid.uuid4())


def _whole_minutes(value: Any, default: int = 0) -> int:
    """Coerce a stored minutes value to a non-negative int."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float) and value.is_integer():
        return max(0, int(value))
    if isinstance(value, str) and _DIGITS.fullmatch(value.strip()):
        return int(value.strip())
    return default


def _priority(value: Any) -> Priority | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    try:
        return Priority(value)
    except ValueError:
        return None


def _goal(value: Any) -> int | None:
    minutes = _whole_minutes(value)
    return minutes if minutes > 0 else None


@dataclass(frozen=True)
class ScheduleBlock:
    """One planned interval inside a weekday's recurring plan."""

    id: str
    start_time: str = "06:00"  # "HH:MM", 24h; malformed values count as midnight
    minutes: int = 30

    def to_dict(self) -> dict:
        return {"id": self.id, "startTime": self.start_time, "minutes": self.minutes}

    @classmethod
    def from_dict(cls, d: dict) -> ScheduleBlock:
        block_id = d.get("id")
        start_time = d.get("startTime")
        return cls(
            id=block_id if isinstance(block_id, str) and block_id else new_id(),
            start_time=start_time if isinstance(start_time, str) else "00:00",
            minutes=_whole_minutes(d.get("minutes")),
        )


WeeklySchedule = dict[Weekday, tuple[ScheduleBlock, ...]]


def empty_schedule() -> WeeklySchedule:
    return {day: () for day in Weekday}


def schedule_to_dict(schedule: WeeklySchedule) -> dict:
    return {day.value: [b.to_dict() for b in schedule.get(day, ())] for day in Weekday}


def schedule_from_dict(raw: Any) -> WeeklySchedule:
    """Read a stored schedule, filling in any missing weekday with no blocks."""
    schedule = empty_schedule()
    if not isinstance(raw, dict):
        return schedule
    for day in Weekday:
        blocks = raw.get(day.value)
        if isinstance(blocks, list):
            schedule[day] = tuple(ScheduleBlock.from_dict(b) for b in blocks if isinstance(b, dict))
    return schedule


@dataclass(frozen=True)
class Skill:
    """A trackable recurring practice goal."""

    id: str
    name: str
    schedule: WeeklySchedule = field(default_factory=empty_schedule)
    priority: Priority | None = None
    daily_goal_minutes: int | None = None
    weekly_goal_minutes: int | None = None
    created_at_iso: str = ""
    updated_at_iso: str = ""

    def patched(self, updated_at_iso: str | None = None, **changes: Any) -> Skill:
        """Return a copy with *changes* applied and the update timestamp refreshed."""
        for frozen_field in ("id", "created_at_iso", "updated_at_iso"):
            if frozen_field in changes:
                raise ValueError(f"Skill field '{frozen_field}' cannot be patched")
        return replace(self, **changes, updated_at_iso=updated_at_iso or now_iso())

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "schedule": schedule_to_dict(self.schedule),
            "createdAtIso": self.created_at_iso,
            "updatedAtIso": self.updated_at_iso,
        }
        if self.priority is not None:
            d["priority"] = int(self.priority)
        if self.daily_goal_minutes is not None:
            d["dailyGoalMinutes"] = self.daily_goal_minutes
        if self.weekly_goal_minutes is not None:
            d["weeklyGoalMinutes"] = self.weekly_goal_minutes
        return d

    @classmethod
    def from_dict(cls, d: dict) -> Skill:
        skill_id = d.get("id")
        if not isinstance(skill_id, str) or not skill_id:
            raise ValueError("skill entry has no id")
        name = d.get("name")
        created = d.get("createdAtIso")
        created = created if isinstance(created, str) and created else now_iso()
        updated = d.get("updatedAtIso")
        return cls(
            id=skill_id,
            name=name if isinstance(name, str) else str(name or ""),
            schedule=schedule_from_dict(d.get("schedule")),
            priority=_priority(d.get("priority")),
            daily_goal_minutes=_goal(d.get("dailyGoalMinutes")),
            weekly_goal_minutes=_goal(d.get("weeklyGoalMinutes")),
            created_at_iso=created,
            updated_at_iso=updated if isinstance(updated, str) and updated else created,
        )


@dataclass(frozen=True)
class Session:
    """An immutable record of time spent on a skill.

    ``skill_id`` is a reference, not ownership: deleting the skill leaves
    its sessions in place.
    """

    id: str
    skill_id: str
    minutes: int
    started_at_iso: str
    created_at_iso: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "skillId": self.skill_id,
            "minutes": self.minutes,
            "startedAtIso": self.started_at_iso,
            "createdAtIso": self.created_at_iso,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Session:
        session_id = d.get("id")
        skill_id = d.get("skillId")
        started = d.get("startedAtIso")
        if not isinstance(session_id, str) or not session_id:
            raise ValueError("session entry has no id")
        if not isinstance(skill_id, str) or not skill_id:
            raise ValueError(f"session {session_id} has no skillId")
        if not isinstance(started, str) or not started:
            raise ValueError(f"session {session_id} has no startedAtIso")
        minutes = _whole_minutes(d.get("minutes"))
        if minutes <= 0:
            raise ValueError(f"session {session_id} has no positive minutes")
        created = d.get("createdAtIso")
        return cls(
            id=session_id,
            skill_id=skill_id,
            minutes=minutes,
            started_at_iso=started,
            created_at_iso=created if isinstance(created, str) and created else started,
        )


@dataclass(frozen=True)
class AppPayload:
    """Aggregate root: skills and sessions, both newest-first."""

    skills: tuple[Skill, ...] = ()
    sessions: tuple[Session, ...] = ()
    overrides: tuple[Any, ...] = ()  # reserved for one-off schedule exceptions; never interpreted
    extras: dict[str, Any] = field(default_factory=dict)  # unknown keys carried through untouched

    def skill(self, skill_id: str) -> Skill | None:
        return next((s for s in self.skills if s.id == skill_id), None)

    def sessions_for(self, skill_id: str) -> list[Session]:
        return [s for s in self.sessions if s.skill_id == skill_id]

    def to_dict(self) -> dict:
        d = dict(self.extras)
        d["skills"] = [s.to_dict() for s in self.skills]
        d["sessions"] = [s.to_dict() for s in self.sessions]
        d["overrides"] = list(self.overrides)
        return d


@dataclass(frozen=True)
class AppData:
    """The persisted snapshot."""

    updated_at_iso: str
    payload: AppPayload = field(default_factory=AppPayload)
    version: int = CURRENT_VERSION

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "updatedAtIso": self.updated_at_iso,
            "payload": self.payload.to_dict(),
        }
