from datetime import datetime

import pytest

from skillpace.models import AppPayload, Session, Skill
from skillpace.sessions import (
    add_session,
    delete_session,
    minutes_today_for_skill,
    orphaned_sessions,
    sessions_today_for_skill,
)


def _session(sid, minutes, started, skill_id="s-1"):
    return Session(id=sid, skill_id=skill_id, minutes=minutes, started_at_iso=started, created_at_iso=started)


def test_add_session_prepends():
    p = add_session(AppPayload(), _session("a", 10, "2026-10-19T08:00:00"))
    p = add_session(p, _session("b", 20, "2026-10-19T09:00:00"))
    assert [s.id for s in p.sessions] == ["b", "a"]


def test_minutes_today_uses_local_calendar_day():
    now = datetime(2026, 10, 19, 0, 30)
    p = AppPayload()
    p = add_session(p, _session("yesterday", 40, "2026-10-18T23:59:00"))
    p = add_session(p, _session("today", 15, "2026-10-19T00:01:00"))
    p = add_session(p, _session("other-skill", 99, "2026-10-19T00:10:00", skill_id="s-2"))
    assert minutes_today_for_skill(p, "s-1", now) == 15


def test_unparsable_timestamps_never_count():
    p = add_session(AppPayload(), _session("bad", 40, "yesterday-ish"))
    assert minutes_today_for_skill(p, "s-1", datetime(2026, 10, 19, 12, 0)) == 0


def test_sessions_today_newest_first():
    now = datetime(2026, 10, 19, 18, 0)
    p = AppPayload(sessions=(
        _session("early", 10, "2026-10-19T07:00:00"),
        _session("late", 10, "2026-10-19T17:00:00"),
        _session("old", 10, "2026-10-17T17:00:00"),
    ))
    assert [s.id for s in sessions_today_for_skill(p, "s-1", now)] == ["late", "early"]


def test_delete_session():
    p = AppPayload(sessions=(_session("a", 10, "2026-10-19T07:00:00"), _session("b", 10, "2026-10-19T08:00:00")))
    assert [s.id for s in delete_session(p, "a").sessions] == ["b"]
    with pytest.raises(KeyError):
        delete_session(p, "zzz")


def test_orphaned_sessions():
    p = AppPayload(
        skills=(Skill(id="s-1", name="SQL"),),
        sessions=(_session("a", 10, "2026-10-19T07:00:00"), _session("b", 10, "2026-10-19T07:00:00", skill_id="gone")),
    )
    assert [s.id for s in orphaned_sessions(p)] == ["b"]


def test_out_of_range_offset_never_counts():
    p = add_session(AppPayload(), _session("edge", 40, "0001-01-01T00:00:00+05:00"))
    assert minutes_today_for_skill(p, "s-1", datetime(2026, 10, 19, 12, 0)) == 0
