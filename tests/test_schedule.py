from datetime import date

import pytest

from skillpace.models import Weekday
from skillpace.schedule import (
    add_block,
    default_weekly_schedule,
    delete_block,
    parse_weekday,
    planned_minutes,
    start_time_to_minutes,
    update_block,
    weekday_for,
)


def test_default_schedule_has_all_seven_empty_days():
    schedule = default_weekly_schedule()
    assert list(schedule) == list(Weekday)
    assert all(blocks == () for blocks in schedule.values())


def test_add_block_defaults_and_does_not_mutate_input():
    original = default_weekly_schedule()
    updated, block = add_block(original, Weekday.MON)
    assert block.start_time == "06:00"
    assert block.minutes == 30
    assert updated[Weekday.MON] == (block,)
    assert original[Weekday.MON] == ()


def test_blocks_keep_insertion_order():
    s, late = add_block(default_weekly_schedule(), Weekday.WED, "20:00", 10)
    s, early = add_block(s, Weekday.WED, "05:00", 10)
    assert [b.id for b in s[Weekday.WED]] == [late.id, early.id]


def test_update_block_in_place():
    s, a = add_block(default_weekly_schedule(), Weekday.FRI, "06:00", 30)
    s, b = add_block(s, Weekday.FRI, "07:00", 30)
    s2 = update_block(s, Weekday.FRI, a.id, start_time="08:15")
    assert [x.id for x in s2[Weekday.FRI]] == [a.id, b.id]
    assert s2[Weekday.FRI][0].start_time == "08:15"
    assert s2[Weekday.FRI][0].minutes == 30
    assert s[Weekday.FRI][0].start_time == "06:00"


def test_delete_block_keeps_relative_order():
    s = default_weekly_schedule()
    ids = []
    for t in ("06:00", "07:00", "08:00"):
        s, blk = add_block(s, Weekday.SAT, t, 10)
        ids.append(blk.id)
    s2 = delete_block(s, Weekday.SAT, ids[1])
    assert [b.id for b in s2[Weekday.SAT]] == [ids[0], ids[2]]


def test_missing_block_raises_keyerror():
    with pytest.raises(KeyError):
        delete_block(default_weekly_schedule(), Weekday.SUN, "nope")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("06:00", 360), ("23:59", 1439), ("00:00", 0), ("6:00", 0), ("24:00", 0), ("ab:cd", 0), ("", 0),
        ("06:00 ", 0), ("06:00\n", 0), ("٠٦:٠٠", 0),
    ],
)
def test_start_time_degrades_to_midnight(value, expected):
    assert start_time_to_minutes(value) == expected


def test_weekday_helpers():
    assert weekday_for(date(2026, 10, 19)) == Weekday.MON
    assert weekday_for(date(2026, 10, 25)) == Weekday.SUN
    assert parse_weekday("Thursday") == Weekday.THU
    with pytest.raises(ValueError):
        parse_weekday("someday")


def test_planned_minutes():
    s, _ = add_block(default_weekly_schedule(), Weekday.MON, "06:00", 30)
    s, _ = add_block(s, Weekday.TUE, "06:00", 45)
    assert planned_minutes(s, Weekday.MON) == 30
    assert planned_minutes(s) == 75
