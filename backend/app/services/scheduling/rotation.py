# backend/app/services/scheduling/rotation.py
"""
Barber rotation.

Unpinned bookings go to the professional with the fewest bookings on the
target date. Ties go to whoever has waited longest since their last
booking; a professional who was never booked goes first.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping, Optional, Sequence

from .decisions import Accepted, Decision, Rejected, RejectionKind


@dataclass(frozen=True)
class RotationSnapshot:
    """
    Per-request rotation input. Built from fresh data on every request,
    never cached.
    """
    target_date: date
    professional_ids: tuple[int, ...]
    booking_counts: Mapping[int, int] = field(default_factory=dict)
    last_booking_at: Mapping[int, Optional[datetime]] = field(default_factory=dict)

    def select(self, candidates: Optional[Sequence[int]] = None) -> Decision:
        """Run the selector, optionally restricted to a subset of professionals."""
        pool: Sequence[int] = self.professional_ids
        if candidates is not None:
            allowed = set(candidates)
            pool = [p for p in self.professional_ids if p in allowed]
        return select_professional(pool, self.booking_counts, self.last_booking_at)


def _rotation_key(
    professional_id: int,
    booking_counts: Mapping[int, int],
    last_booking_at: Mapping[int, Optional[datetime]],
) -> tuple:
    last = last_booking_at.get(professional_id)
    # (count, has_history, last); never-booked sorts before any timestamp
    return (
        booking_counts.get(professional_id, 0),
        last is not None,
        last.timestamp() if last is not None else 0.0,
    )


def select_professional(
    active_professionals: Sequence[int],
    booking_counts_today: Mapping[int, int],
    last_booking_timestamps: Mapping[int, Optional[datetime]],
) -> Decision:
    """
    Pick the least-loaded professional.

    Sorting is stable: professionals with identical keys keep their
    input order, so the same input always yields the same choice.
    """
    if not active_professionals:
        return Rejected(
            kind=RejectionKind.NO_PROFESSIONAL_AVAILABLE,
            message="No active professional available",
        )

    ranked = sorted(
        active_professionals,
        key=lambda p: _rotation_key(p, booking_counts_today, last_booking_timestamps),
    )
    return Accepted(professional_id=ranked[0])
