"""Append-only session ledger with local-calendar-day filtering."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from skillpace.clock import now_local, parse_iso, to_local
from skillpace.models import AppPayload, Session


def is_same_local_day(started_at_iso: str, now: datetime | None = None) -> bool:
    """True if the timestamp falls on the same local calendar date as *now*.

    This is a calendar comparison, not a rolling 24h window: 00:05 today
    and 23:55 yesterday are different days.
    """
    started = parse_iso(started_at_iso)
    if started is None:
        return False
    return started.date() == to_local(now or now_local()).date()


def add_session(payload: AppPayload, session: Session) -> AppPayload:
    """Return a payload with *session* prepended (newest first)."""
    return replace(payload, sessions=(session, *payload.sessions))


def delete_session(payload: AppPayload, session_id: str) -> AppPayload:
    if not any(s.id == session_id for s in payload.sessions):
        raise KeyError(session_id)
    return replace(payload, sessions=tuple(s for s in payload.sessions if s.id != session_id))


def sessions_today_for_skill(
    payload: AppPayload, skill_id: str, now: datetime | None = None
) -> list[Session]:
    """Today's sessions for a skill, newest first."""
    todays = [
        s for s in payload.sessions
        if s.skill_id == skill_id and is_same_local_day(s.started_at_iso, now)
    ]
    return sorted(todays, key=lambda s: parse_iso(s.started_at_iso), reverse=True)


def minutes_today_for_skill(payload: AppPayload, skill_id: str, now: datetime | None = None) -> int:
    return sum(s.minutes for s in payload.sessions
               if s.skill_id == skill_id and is_same_local_day(s.started_at_iso, now))


def orphaned_sessions(payload: AppPayload) -> list[Session]:
    """Sessions whose skill no longer exists. Skill deletion never removes them."""
    known = {s.id for s in payload.skills}
    return [s for s in payload.sessions if s.skill_id not in known]
