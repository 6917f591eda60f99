from datetime import date, timedelta
from typing import Iterable

from .config import settings
from .errors import InvalidDate, QuotaExceeded, ZoneConflict


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def week_bounds(day: date) -> tuple[date, date]:
    """Monday and Sunday of the week containing ``day``."""
    week_start = day - timedelta(days=day.weekday())
    return week_start, week_start + timedelta(days=6)


def validate_booking(
    preferred_date: date,
    weekly_visit_count: int,
    apartment_zone: str,
    runner_zones_on_date: Iterable[str],
    max_visits_per_week: int | None = None,
) -> None:
    """Slot-independent preconditions, cheapest first. Raises on the first failure.

    ``runner_zones_on_date`` holds the zone of every apartment the runner already
    visits on ``preferred_date``.
    """
    if is_weekend(preferred_date):
        raise InvalidDate(
            "Cannot schedule visits on weekends",
            details={"date": preferred_date.isoformat()},
        )

    limit = settings.MAX_VISITS_PER_WEEK if max_visits_per_week is None else max_visits_per_week
    if weekly_visit_count >= limit:
        week_start, week_end = week_bounds(preferred_date)
        raise QuotaExceeded(
            "Maximum visits for the week exceeded",
            details={
                "week_start": week_start.isoformat(),
                "week_end": week_end.isoformat(),
                "limit": limit,
            },
        )

    other_zones = sorted({zone for zone in runner_zones_on_date if zone != apartment_zone})
    if other_zones:
        raise ZoneConflict(
            f"Runner already has a visit scheduled in a different zone on {preferred_date.isoformat()}",
            details={"date": preferred_date.isoformat(), "zones": other_zones},
        )
