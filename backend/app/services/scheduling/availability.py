# backend/app/services/scheduling/availability.py
"""
Availability filtering.

Removes candidate start times that would overlap an existing booking.
With several professionals, a slot stays available while at least one
of them is free.
"""

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from .intervals import Interval, overlaps


@dataclass(frozen=True)
class SlotAvailability:
    """Result of a shop-wide availability check."""
    available: list[int] = field(default_factory=list)
    occupied: list[int] = field(default_factory=list)


def is_free(start: int, duration: int, bookings: Iterable[Interval]) -> bool:
    """True if [start, start + duration) overlaps none of the bookings."""
    requested = Interval(start, duration)
    return not any(overlaps(requested, booking) for booking in bookings)


def available_slots(
    candidate_slots: Iterable[int],
    existing_bookings: Sequence[Interval],
    required_duration: int,
) -> list[int]:
    """Candidate slots where a required_duration booking fits for one professional."""
    return [
        slot for slot in candidate_slots
        if is_free(slot, required_duration, existing_bookings)
    ]


def available_slots_any(
    candidate_slots: Iterable[int],
    bookings_by_professional: Mapping[int, Sequence[Interval]],
    required_duration: int,
) -> SlotAvailability:
    """
    Split candidate slots into available / occupied across professionals.

    bookings_by_professional must contain every candidate professional,
    with an empty sequence for professionals without bookings.
    """
    result = SlotAvailability()

    for slot in candidate_slots:
        if any(
            is_free(slot, required_duration, bookings)
            for bookings in bookings_by_professional.values()
        ):
            result.available.append(slot)
        else:
            result.occupied.append(slot)

    return result


def free_professionals(
    start: int,
    duration: int,
    bookings_by_professional: Mapping[int, Sequence[Interval]],
) -> list[int]:
    """Professionals free for [start, start + duration), in mapping order."""
    return [
        professional_id
        for professional_id, bookings in bookings_by_professional.items()
        if is_free(start, duration, bookings)
    ]
