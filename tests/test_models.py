from skillpace.models import AppData, AppPayload, Priority, ScheduleBlock, Session, Skill, Weekday, empty_schedule


def test_skill_serialization():
    schedule = empty_schedule()
    schedule[Weekday.TUE] = (ScheduleBlock("b-1", "07:30", 45),)
    s = Skill(
        id="s-1",
        name="Blender",
        schedule=schedule,
        priority=Priority.MEDIUM,
        daily_goal_minutes=30,
        created_at_iso="2026-10-19T08:00:00",
        updated_at_iso="2026-10-19T08:00:00",
    )
    d = s.to_dict()
    assert d["priority"] == 3
    assert d["dailyGoalMinutes"] == 30
    assert "weeklyGoalMinutes" not in d
    assert d["schedule"]["tue"] == [{"id": "b-1", "startTime": "07:30", "minutes": 45}]
    assert set(d["schedule"]) == {"mon", "tue", "wed", "thu", "fri", "sat", "sun"}

    s2 = Skill.from_dict(d)
    assert s2 == s


def test_skill_from_dict_fills_missing_days_and_bad_fields():
    s = Skill.from_dict({
        "id": "s-1",
        "name": "SQL",
        "priority": 9,
        "dailyGoalMinutes": -3,
        "schedule": {"mon": [{"id": "b", "startTime": 630, "minutes": "15"}, "junk"]},
        "createdAtIso": "2026-10-19T08:00:00",
    })
    assert s.priority is None
    assert s.daily_goal_minutes is None
    assert len(s.schedule) == 7
    assert s.schedule[Weekday.SUN] == ()
    assert s.schedule[Weekday.MON] == (ScheduleBlock("b", "00:00", 15),)
    assert s.updated_at_iso == "2026-10-19T08:00:00"


def test_patched_refreshes_timestamp_and_keeps_identity():
    s = Skill(id="s-1", name="SQL", created_at_iso="t0", updated_at_iso="t0")
    s2 = s.patched("t1", name="Postgres")
    assert s2.name == "Postgres"
    assert s2.updated_at_iso == "t1"
    assert s2.created_at_iso == "t0"
    assert s.name == "SQL"


def test_patched_refuses_identity_fields():
    s = Skill(id="s-1", name="SQL")
    try:
        s.patched("t1", id="other")
    except ValueError:
        pass
    else:
        raise AssertionError("patching id should fail")


def test_session_round_trip_and_created_default():
    ss = Session.from_dict({"id": "x", "skillId": "s-1", "minutes": 20, "startedAtIso": "2026-10-19T09:00:00"})
    assert ss.created_at_iso == "2026-10-19T09:00:00"
    assert ss.to_dict()["skillId"] == "s-1"


def test_app_data_shape():
    data = AppData(updated_at_iso="2026-10-19T09:00:00", payload=AppPayload())
    assert data.to_dict() == {
        "version": 1,
        "updatedAtIso": "2026-10-19T09:00:00",
        "payload": {"skills": [], "sessions": [], "overrides": []},
    }
