# backend/app/services/scheduling/slots.py
"""
Slot generation from business hours.

Business hours are stored per weekday as JSON:

    {"mon": {"start": "09:00", "end": "19:00"}, ..., "sun": null}

A missing or null day means the shop is closed.
"""

from dataclasses import dataclass
from datetime import date

from .config import get_scheduling_config, time_str_to_minutes

WEEKDAY_KEYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

DEFAULT_BUSINESS_HOURS: dict[str, dict | None] = {
    "mon": {"start": "09:00", "end": "19:00"},
    "tue": {"start": "09:00", "end": "19:00"},
    "wed": {"start": "09:00", "end": "19:00"},
    "thu": {"start": "09:00", "end": "19:00"},
    "fri": {"start": "09:00", "end": "19:00"},
    "sat": {"start": "09:00", "end": "18:00"},
    "sun": None,
}


@dataclass(frozen=True)
class BusinessHours:
    opens_at: int
    closes_at: int
    is_open: bool = True

    @classmethod
    def closed(cls) -> "BusinessHours":
        return cls(opens_at=0, closes_at=0, is_open=False)

    def contains(self, start: int, duration: int) -> bool:
        """True if [start, start + duration) lies within opening hours."""
        return self.is_open and self.opens_at <= start and start + duration <= self.closes_at


def generate_slots(
    opens_at: int,
    closes_at: int,
    step_minutes: int | None = None,
) -> list[int]:
    """
    Every multiple of step_minutes t with opens_at <= t < closes_at, ascending.

    Returns an empty list when opens_at >= closes_at.
    """
    step = step_minutes if step_minutes is not None else get_scheduling_config().slot_step_minutes
    if step <= 0:
        raise ValueError(f"step_minutes must be positive, got {step}")

    first = -(-opens_at // step) * step
    return list(range(first, closes_at, step))


def generate_day_slots(hours: BusinessHours, step_minutes: int | None = None) -> list[int]:
    """Candidate start times for a day; empty when the day is closed."""
    if not hours.is_open:
        return []
    return generate_slots(hours.opens_at, hours.closes_at, step_minutes)


def hours_for_date(schedule: dict | None, target_date: date) -> BusinessHours:
    """
    Extract BusinessHours for target_date from a weekly schedule.

    Falls back to DEFAULT_BUSINESS_HOURS only when no schedule is stored;
    a configured week with a missing day is closed on that day.
    Malformed day entries are treated as closed.
    """
    if schedule is None:
        schedule = DEFAULT_BUSINESS_HOURS

    day_data = schedule.get(WEEKDAY_KEYS[target_date.weekday()])
    if not isinstance(day_data, dict):
        return BusinessHours.closed()

    if day_data.get("is_open") is False:
        return BusinessHours.closed()

    start = day_data.get("start")
    end = day_data.get("end")
    if not start or not end:
        return BusinessHours.closed()

    try:
        opens_at = time_str_to_minutes(start)
        closes_at = time_str_to_minutes(end)
    except ValueError:
        return BusinessHours.closed()

    if opens_at >= closes_at:
        return BusinessHours.closed()

    return BusinessHours(opens_at=opens_at, closes_at=closes_at)
