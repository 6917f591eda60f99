from collections import Counter
from datetime import date
from typing import Iterable

from .availability import WeeklyAvailability, is_available
from .config import settings


def candidate_slots(
    start_hour: int | None = None,
    end_hour: int | None = None,
    step_min: int | None = None,
) -> list[str]:
    """Every slot start in [start_hour:00, end_hour:00), ascending."""
    start_h = settings.VISIT_HOURS_START if start_hour is None else start_hour
    end_h = settings.VISIT_HOURS_END if end_hour is None else end_hour
    step = settings.SLOT_MINUTES if step_min is None else step_min
    if step <= 0:
        raise ValueError("Slot length must be positive")
    return [f"{minute // 60:02d}:{minute % 60:02d}" for minute in range(start_h * 60, end_h * 60, step)]


def _slot_usage(booked_slots: Iterable[str]) -> Counter:
    return Counter(str(slot) for slot in booked_slots)


def open_slots(
    apartment_schedule: WeeklyAvailability,
    runner_schedule: WeeklyAvailability,
    booked_slots: Iterable[str],
    day: date,
    capacity: int | None = None,
) -> list[tuple[str, int]]:
    """Slots both parties can make that still have room, with the seats left in each."""
    limit = settings.SLOT_CAPACITY if capacity is None else capacity
    usage = _slot_usage(booked_slots)
    out: list[tuple[str, int]] = []
    for slot in candidate_slots():
        remaining = limit - usage[slot]
        if remaining <= 0:
            continue
        if not is_available(apartment_schedule, day, slot):
            continue
        if not is_available(runner_schedule, day, slot):
            continue
        out.append((slot, remaining))
    return out


def find_slot(
    apartment_schedule: WeeklyAvailability,
    runner_schedule: WeeklyAvailability,
    booked_slots: Iterable[str],
    day: date,
    capacity: int | None = None,
) -> str | None:
    """Earliest slot on ``day`` with a free seat where apartment and runner are both available.

    ``booked_slots`` is the time slot of every visit already booked for the
    apartment on ``day``.
    """
    limit = settings.SLOT_CAPACITY if capacity is None else capacity
    usage = _slot_usage(booked_slots)
    for slot in candidate_slots():
        if (
            usage[slot] < limit
            and is_available(apartment_schedule, day, slot)
            and is_available(runner_schedule, day, slot)
        ):
            return slot
    return None
