"""Derived completion status: planned-so-far vs logged-today.

Nothing here is cached or persisted. Every call recomputes from the
schedule, the ledger and the wall clock.
"""

from __future__ import annotations

import enum
import locale
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from skillpace.clock import now_local, parse_iso, start_of_local_day, to_local
from skillpace.models import AppPayload, Session, Skill, WeeklySchedule
from skillpace.schedule import start_time_to_minutes, weekday_for


class SkillStatus(enum.StrEnum):
    IDLE = "idle"
    ON_TRACK = "onTrack"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class SkillProgress:
    skill: Skill
    expected_minutes_by_now: int
    today_minutes: int
    status: SkillStatus

    @property
    def remaining_minutes(self) -> int:
        return max(0, self.expected_minutes_by_now - self.today_minutes)


def expected_minutes_by_now(schedule: WeeklySchedule, now: datetime | None = None) -> int:
    """Sum of today's planned minutes whose block has already started.

    A block starting exactly now counts. Block order is irrelevant.
    """
    now = to_local(now or now_local())
    current = now.hour * 60 + now.minute
    blocks = schedule.get(weekday_for(now), ())
    return sum(b.minutes for b in blocks if start_time_to_minutes(b.start_time) <= current)


def today_minutes(sessions: Iterable[Session], skill_id: str, now: datetime | None = None) -> int:
    """Minutes logged for *skill_id* from local midnight up to, not including, *now*."""
    now = to_local(now or now_local())
    day_start = start_of_local_day(now)
    total = 0
    for s in sessions:
        if s.skill_id != skill_id:
            continue
        started = parse_iso(s.started_at_iso)
        if started is not None and day_start <= started < now:
            total += s.minutes
    return total


def derive_status(expected: int, logged: int) -> SkillStatus:
    if expected == 0:
        return SkillStatus.IDLE
    if logged >= expected:
        return SkillStatus.ON_TRACK
    return SkillStatus.OVERDUE


def evaluate_skill(payload: AppPayload, skill: Skill, now: datetime | None = None) -> SkillProgress:
    now = now or now_local()
    expected = expected_minutes_by_now(skill.schedule, now)
    logged = today_minutes(payload.sessions, skill.id, now)
    return SkillProgress(
        skill=skill,
        expected_minutes_by_now=expected,
        today_minutes=logged,
        status=derive_status(expected, logged),
    )


def _sort_key(skill: Skill) -> tuple:
    rank = float("inf") if skill.priority is None else int(skill.priority)
    return (rank, locale.strxfrm(skill.name))


def sort_skills(skills: Iterable[Skill]) -> list[Skill]:
    """Ascending priority (unranked last), then name."""
    return sorted(skills, key=_sort_key)


def evaluate_all(payload: AppPayload, now: datetime | None = None) -> list[SkillProgress]:
    """Progress for every skill, in display order."""
    now = now or now_local()
    return [evaluate_skill(payload, s, now) for s in sort_skills(payload.skills)]
