# backend/app/services/scheduling/conflicts.py
"""
Conflict validation for a single professional.

On conflict, alternatives are offered starting at the end of the
conflicting booking (rounded up to the grid), stepping through the
grid until closing time.
"""

from datetime import date
from typing import Sequence

from .availability import is_free
from .config import MINUTES_PER_DAY, SchedulingConfig, get_scheduling_config, minutes_to_time_str
from .decisions import Accepted, Decision, Rejected, RejectionKind
from .intervals import Interval, overlaps
from .slots import BusinessHours


def check_business_hours(hours: BusinessHours, start: int, duration: int) -> Decision:
    """Reject requests on closed days or outside opening hours."""
    if not hours.is_open:
        return Rejected(
            kind=RejectionKind.INVALID_INPUT,
            message="The shop is closed on this day",
        )
    if not hours.contains(start, duration):
        return Rejected(
            kind=RejectionKind.INVALID_INPUT,
            message=(
                f"{minutes_to_time_str(start)} for {duration} min is outside business hours "
                f"({minutes_to_time_str(hours.opens_at)}-{minutes_to_time_str(hours.closes_at)})"
            ),
        )
    return Accepted(start_minutes=start)


def suggest_slots(
    after_minutes: int,
    duration: int,
    hours: BusinessHours,
    existing_bookings: Sequence[Interval],
    config: SchedulingConfig | None = None,
) -> list[int]:
    """
    Up to config.max_suggestions free starts at or after after_minutes.

    Each suggestion fits [s, s + duration) inside business hours and
    overlaps none of existing_bookings.
    """
    config = config or get_scheduling_config()
    if not hours.is_open:
        return []

    step = config.slot_step_minutes
    start = max(config.round_up(after_minutes), config.round_up(hours.opens_at))
    suggestions: list[int] = []

    for slot in range(start, min(hours.closes_at, MINUTES_PER_DAY), step):
        if len(suggestions) >= config.max_suggestions:
            break
        if slot + duration > hours.closes_at:
            break
        if is_free(slot, duration, existing_bookings):
            suggestions.append(slot)

    return suggestions


def validate(
    professional_id: int,
    target_date: date,
    requested_start: int,
    requested_duration: int,
    existing_bookings: Sequence[Interval],
    hours: BusinessHours,
    config: SchedulingConfig | None = None,
) -> Decision:
    """
    Check a requested booking against the professional's bookings that day.

    Args:
        professional_id: Professional the booking is for
        target_date: Booking date (informational, bookings are already filtered)
        requested_start: Start, minutes since midnight
        requested_duration: Total duration in minutes
        existing_bookings: Non-terminal bookings of this professional on target_date
        hours: Business hours of target_date, bounds the suggestions

    Returns:
        Accepted(professional_id, start_minutes) or
        Rejected(SCHEDULING_CONFLICT, suggested_slots=...)
    """
    if requested_duration <= 0:
        return Rejected(
            kind=RejectionKind.INVALID_INPUT,
            message=f"Duration must be positive, got {requested_duration}",
        )
    if not 0 <= requested_start < MINUTES_PER_DAY:
        return Rejected(
            kind=RejectionKind.INVALID_INPUT,
            message=f"Start time out of range: {requested_start}",
        )

    requested = Interval(requested_start, requested_duration)

    for booking in sorted(existing_bookings, key=lambda b: b.start_minutes):
        if not overlaps(requested, booking):
            continue

        suggestions = suggest_slots(
            booking.end_minutes, requested_duration, hours, existing_bookings, config
        )
        return Rejected(
            kind=RejectionKind.SCHEDULING_CONFLICT,
            message=(
                f"{minutes_to_time_str(requested_start)} on {target_date.isoformat()} "
                f"is already taken for professional {professional_id}"
            ),
            suggested_slots=tuple(suggestions),
        )

    return Accepted(professional_id=professional_id, start_minutes=requested_start)
