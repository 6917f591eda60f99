from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from zoneinfo import ZoneInfo

from .config import settings


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        return list(cls)[index]


def parse_hhmm(value: str) -> time:
    raw = str(value or "").strip()
    parts = raw.split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts) or len(parts[1]) != 2:
        raise ValueError(f"Invalid time of day: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time of day: {value!r}")
    return time(hour, minute)


def format_hhmm(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


@dataclass(frozen=True)
class TimeRange:
    start: time
    end: time

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Range ends before it starts: {format_hhmm(self.start)}-{format_hhmm(self.end)}")

    @classmethod
    def parse(cls, raw) -> "TimeRange":
        """Accepts ``"09:00-12:00"`` or ``{"start": "09:00", "end": "12:00"}``."""
        if isinstance(raw, str):
            start, sep, end = raw.partition("-")
            if not sep:
                raise ValueError(f"Invalid time range: {raw!r}")
            return cls(parse_hhmm(start), parse_hhmm(end))
        if isinstance(raw, dict):
            return cls(parse_hhmm(raw.get("start")), parse_hhmm(raw.get("end")))
        raise ValueError(f"Invalid time range: {raw!r}")

    def contains(self, moment: time) -> bool:
        # Both ends inclusive: a booking exactly at the closing time is allowed.
        return self.start <= moment <= self.end

    def to_dict(self) -> dict:
        return {"start": format_hhmm(self.start), "end": format_hhmm(self.end)}


def _parse_day(weekday: Weekday, ranges) -> tuple[TimeRange, ...]:
    if not isinstance(ranges, (list, tuple)):
        raise ValueError(f"Ranges for {weekday.value} must be a list")
    parsed = tuple(sorted((TimeRange.parse(r) for r in ranges), key=lambda r: r.start))
    for prev, cur in zip(parsed, parsed[1:]):
        # Touching ranges (12:00-15:00 after 09:00-12:00) are fine.
        if cur.start < prev.end:
            raise ValueError(f"Overlapping ranges on {weekday.value}")
    return parsed


@dataclass(frozen=True)
class WeeklyAvailability:
    days: dict[Weekday, tuple[TimeRange, ...]] = field(default_factory=dict)

    @classmethod
    def parse(cls, raw, strict: bool = True, only: Weekday | None = None) -> "WeeklyAvailability":
        """Build a schedule from stored JSON.

        With ``strict`` a malformed day raises ``ValueError``; without it the day
        is dropped, which reads as "no ranges for that day". ``only`` restricts
        parsing to one weekday and ignores every other key.
        """
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            if strict:
                raise ValueError("Availability must be a mapping of weekday to ranges")
            return cls()

        days: dict[Weekday, tuple[TimeRange, ...]] = {}
        for key, ranges in raw.items():
            try:
                weekday = Weekday(str(key).strip().lower())
            except ValueError:
                if strict and only is None:
                    raise
                continue
            if only is not None and weekday != only:
                continue
            try:
                parsed = _parse_day(weekday, ranges)
            except ValueError:
                if strict:
                    raise
                continue
            if parsed:
                days[weekday] = parsed
        return cls(days=days)

    def ranges_for(self, weekday: Weekday) -> tuple[TimeRange, ...]:
        return self.days.get(weekday, ())

    def to_dict(self) -> dict:
        return {day.value: [r.to_dict() for r in ranges] for day, ranges in self.days.items()}


def scheduling_zone() -> ZoneInfo:
    return ZoneInfo(settings.SCHEDULING_TIMEZONE)


def resolve_weekday(day: date | datetime, tz: ZoneInfo | None = None) -> Weekday:
    """Weekday of a calendar date, or of an instant as seen in the scheduling timezone."""
    if isinstance(day, datetime):
        zone = tz or scheduling_zone()
        local = day.astimezone(zone) if day.tzinfo else day.replace(tzinfo=zone)
        return Weekday.from_index(local.weekday())
    return Weekday.from_index(day.weekday())


def is_available(
    schedule: WeeklyAvailability,
    day: date | datetime,
    time_slot: str | time,
    tz: ZoneInfo | None = None,
) -> bool:
    moment = parse_hhmm(time_slot) if isinstance(time_slot, str) else time_slot
    ranges = schedule.ranges_for(resolve_weekday(day, tz))
    return any(r.contains(moment) for r in ranges)
