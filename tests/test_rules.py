from datetime import date

import pytest

from visit_scheduler.errors import InvalidDate, QuotaExceeded, ZoneConflict
from visit_scheduler.rules import is_weekend, validate_booking, week_bounds

MONDAY = date(2026, 10, 19)
WEDNESDAY = date(2026, 10, 21)
SATURDAY = date(2026, 10, 24)
SUNDAY = date(2026, 10, 25)


def test_week_bounds_start_on_monday():
    assert week_bounds(MONDAY) == (MONDAY, SUNDAY)
    assert week_bounds(WEDNESDAY) == (MONDAY, SUNDAY)
    assert week_bounds(SUNDAY) == (MONDAY, SUNDAY)


def test_is_weekend():
    assert is_weekend(SATURDAY)
    assert is_weekend(SUNDAY)
    assert not is_weekend(MONDAY)


@pytest.mark.parametrize("day", [SATURDAY, SUNDAY])
def test_weekend_is_rejected(day):
    with pytest.raises(InvalidDate):
        validate_booking(day, weekly_visit_count=0, apartment_zone="A", runner_zones_on_date=[])


def test_quota_reached_is_rejected():
    with pytest.raises(QuotaExceeded) as exc_info:
        validate_booking(MONDAY, weekly_visit_count=30, apartment_zone="A", runner_zones_on_date=[])
    assert exc_info.value.details["week_start"] == "2026-10-19"
    assert exc_info.value.details["week_end"] == "2026-10-25"


def test_quota_one_below_limit_passes():
    validate_booking(MONDAY, weekly_visit_count=29, apartment_zone="A", runner_zones_on_date=["A"])


def test_quota_limit_can_be_overridden():
    with pytest.raises(QuotaExceeded):
        validate_booking(MONDAY, weekly_visit_count=3, apartment_zone="A", runner_zones_on_date=[], max_visits_per_week=3)


def test_zone_conflict_names_the_date():
    with pytest.raises(ZoneConflict) as exc_info:
        validate_booking(MONDAY, weekly_visit_count=0, apartment_zone="A", runner_zones_on_date=["A", "B"])
    assert "2026-10-19" in exc_info.value.message
    assert exc_info.value.details["zones"] == ["B"]


def test_checks_run_in_order():
    # A weekend with a full quota and a zone clash reports the weekend first.
    with pytest.raises(InvalidDate):
        validate_booking(SUNDAY, weekly_visit_count=99, apartment_zone="A", runner_zones_on_date=["B"])
    with pytest.raises(QuotaExceeded):
        validate_booking(MONDAY, weekly_visit_count=99, apartment_zone="A", runner_zones_on_date=["B"])
