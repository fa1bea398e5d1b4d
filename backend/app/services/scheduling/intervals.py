# backend/app/services/scheduling/intervals.py
"""
Time-interval model.

A booking occupies the half-open interval [start, start + duration)
in minutes of the day. Back-to-back bookings do not overlap.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .config import MINUTES_PER_DAY, get_scheduling_config


@dataclass(frozen=True)
class Interval:
    start_minutes: int
    duration_minutes: int

    def __post_init__(self):
        if not 0 <= self.start_minutes < MINUTES_PER_DAY:
            raise ValueError(f"start_minutes must be in [0, {MINUTES_PER_DAY}), got {self.start_minutes}")
        if self.duration_minutes <= 0:
            raise ValueError(f"duration_minutes must be positive, got {self.duration_minutes}")

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes


def overlaps(a: Interval, b: Interval) -> bool:
    """True if the two half-open intervals share at least one minute."""
    return a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes


def total_duration(
    durations: Iterable[Optional[int]],
    default: Optional[int] = None,
) -> int:
    """
    Sum service durations, substituting the default for missing ones.

    An empty list yields the default as well: a booking with no service
    rows still occupies one default-length block.
    """
    if default is None:
        default = get_scheduling_config().default_duration_minutes

    total = sum(d if d and d > 0 else default for d in durations)
    return total or default
