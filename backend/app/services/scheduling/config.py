# backend/app/services/scheduling/config.py
"""
Scheduling configuration and time-of-day helpers.

All times of day inside the scheduling core are plain integers:
minutes since midnight, 0..1439.
"""

from dataclasses import dataclass
from datetime import time
from functools import lru_cache

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class SchedulingConfig:
    """
    Configuration for the scheduling core.

    Attributes:
        slot_step_minutes: Grid step for candidate start times (15/30/60)
        default_duration_minutes: Duration used when a service record has none
        max_suggestions: How many alternative starts to offer on a conflict
        default_lead_hours: Client cancellation lead time when none is configured
    """
    slot_step_minutes: int = 30  # 15 / 30 / 60
    default_duration_minutes: int = 30
    max_suggestions: int = 6
    default_lead_hours: float = 2

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")
        if self.default_duration_minutes <= 0:
            raise ValueError(f"default_duration_minutes must be positive, got {self.default_duration_minutes}")
        if self.max_suggestions < 0:
            raise ValueError(f"max_suggestions must not be negative, got {self.max_suggestions}")

    def round_up(self, minutes: int) -> int:
        """Round minutes up to the next grid boundary (identity on a boundary)."""
        step = self.slot_step_minutes
        return -(-minutes // step) * step


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" (or "HH:MM:SS") to minutes since midnight."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Time must be in HH:MM format, got {value!r}")
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError(f"Time must be in HH:MM format, got {value!r}") from None
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Time out of range: {value!r}")
    return hour * 60 + minute


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


@lru_cache
def get_scheduling_config() -> SchedulingConfig:
    """
    Get scheduling configuration (singleton).

    Per-shop values (business hours, lead time) come from the settings row;
    this only holds the grid constants.
    """
    return SchedulingConfig()
