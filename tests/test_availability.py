from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from visit_scheduler.availability import (
    TimeRange,
    WeeklyAvailability,
    Weekday,
    is_available,
    parse_hhmm,
    resolve_weekday,
)

MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)


def test_parse_accepts_legacy_strings_and_range_mappings():
    schedule = WeeklyAvailability.parse(
        {
            "Monday": ["13:00-15:00", "09:00-12:00"],
            "tuesday": [{"start": "10:00", "end": "11:30"}],
        }
    )
    assert schedule.ranges_for(Weekday.MONDAY) == (
        TimeRange(time(9, 0), time(12, 0)),
        TimeRange(time(13, 0), time(15, 0)),
    )
    assert schedule.ranges_for(Weekday.TUESDAY) == (TimeRange(time(10, 0), time(11, 30)),)
    assert schedule.ranges_for(Weekday.FRIDAY) == ()


def test_parse_rejects_overlapping_ranges_in_strict_mode():
    with pytest.raises(ValueError):
        WeeklyAvailability.parse({"monday": ["09:00-12:00", "11:00-13:00"]})


def test_parse_rejects_unknown_weekday_and_bad_times():
    with pytest.raises(ValueError):
        WeeklyAvailability.parse({"funday": ["09:00-12:00"]})
    with pytest.raises(ValueError):
        WeeklyAvailability.parse({"monday": ["9am-noon"]})
    with pytest.raises(ValueError):
        WeeklyAvailability.parse({"monday": ["12:00-09:00"]})


def test_lenient_parse_drops_malformed_days_only():
    schedule = WeeklyAvailability.parse(
        {"monday": ["9am-noon"], "tuesday": ["09:00-10:00"], "friday": "09:00-10:00"},
        strict=False,
    )
    assert schedule.ranges_for(Weekday.MONDAY) == ()
    assert schedule.ranges_for(Weekday.FRIDAY) == ()
    assert schedule.ranges_for(Weekday.TUESDAY) == (TimeRange(time(9, 0), time(10, 0)),)
    assert WeeklyAvailability.parse(["not", "a", "mapping"], strict=False).days == {}


def test_range_endpoints_are_inclusive():
    schedule = WeeklyAvailability.parse({"monday": ["09:00-12:00"]})
    assert is_available(schedule, MONDAY, "09:00") is True
    assert is_available(schedule, MONDAY, "12:00") is True
    assert is_available(schedule, MONDAY, "12:15") is False
    assert is_available(schedule, MONDAY, "08:45") is False


def test_missing_day_means_unavailable():
    schedule = WeeklyAvailability.parse({"monday": ["09:00-12:00"]})
    assert is_available(schedule, TUESDAY, "10:00") is False
    assert is_available(WeeklyAvailability(), MONDAY, "10:00") is False


def test_weekday_of_an_instant_uses_the_scheduling_timezone():
    # 23:30 UTC on Monday is already Tuesday in Warsaw.
    instant = datetime(2026, 10, 19, 23, 30, tzinfo=timezone.utc)
    assert resolve_weekday(instant, ZoneInfo("Europe/Warsaw")) == Weekday.TUESDAY
    assert resolve_weekday(instant, ZoneInfo("America/New_York")) == Weekday.MONDAY
    assert resolve_weekday(MONDAY) == Weekday.MONDAY


def test_parse_hhmm_rejects_garbage():
    assert parse_hhmm("09:05") == time(9, 5)
    for bad in ("9", "24:00", "09:60", "ab:cd", "", "09:5"):
        with pytest.raises(ValueError):
            parse_hhmm(bad)


def test_touching_ranges_are_not_an_overlap():
    schedule = WeeklyAvailability.parse({"monday": ["12:00-15:00", "09:00-12:00"]})
    assert schedule.ranges_for(Weekday.MONDAY) == (
        TimeRange(time(9, 0), time(12, 0)),
        TimeRange(time(12, 0), time(15, 0)),
    )
    assert is_available(schedule, MONDAY, "12:00") is True
    assert is_available(schedule, MONDAY, "14:00") is True
    assert is_available(schedule, MONDAY, "15:15") is False


def test_parse_for_one_weekday_ignores_the_rest_of_the_week():
    raw = {"monday": ["09:00-12:00"], "friday": ["9am-noon"], "funday": ["09:00-10:00"]}
    schedule = WeeklyAvailability.parse(raw, only=Weekday.MONDAY)
    assert schedule.ranges_for(Weekday.MONDAY) == (TimeRange(time(9, 0), time(12, 0)),)
    assert schedule.ranges_for(Weekday.FRIDAY) == ()

    with pytest.raises(ValueError):
        WeeklyAvailability.parse(raw, only=Weekday.FRIDAY)
    with pytest.raises(ValueError):
        WeeklyAvailability.parse(raw)
