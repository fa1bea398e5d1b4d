# backend/app/services/scheduling/cancellation.py
"""
Cancellation window policy.

Clients must cancel at least min_lead_hours before the booking starts.
Staff and the system may cancel at any time. Status is checked before
the policy (see status.check_not_terminal); the policy itself only
reasons about timing.
"""

from datetime import datetime
from enum import Enum

from .decisions import Accepted, Decision, Rejected, RejectionKind
from .status import check_not_terminal


class ActorRole(str, Enum):
    CLIENT = "client"
    BARBER = "barber"
    STAFF = "staff"
    ADMIN = "admin"
    SYSTEM = "system"


OVERRIDE_ROLES = frozenset({
    ActorRole.ADMIN,
    ActorRole.STAFF,
    ActorRole.BARBER,
    ActorRole.SYSTEM,
})


def hours_until(now: datetime, booking_start: datetime) -> float:
    """Signed hours from now to booking_start; negative for past bookings."""
    return (booking_start - now).total_seconds() / 3600


def can_cancel(
    now: datetime,
    booking_start: datetime,
    min_lead_hours: float,
    actor_role: str | ActorRole,
) -> bool:
    try:
        role = ActorRole(actor_role)
    except ValueError:
        role = ActorRole.CLIENT

    if role in OVERRIDE_ROLES:
        return True
    return hours_until(now, booking_start) >= min_lead_hours


def check_cancellation(
    status: str,
    now: datetime,
    booking_start: datetime,
    min_lead_hours: float,
    actor_role: str | ActorRole,
) -> Decision:
    """
    Full cancellation check: terminal status first, then the lead window.

    A late client cancellation carries the computed hours_remaining.
    """
    decision = check_not_terminal(status)
    if not decision.ok:
        return decision

    if not can_cancel(now, booking_start, min_lead_hours, actor_role):
        remaining = hours_until(now, booking_start)
        return Rejected(
            kind=RejectionKind.POLICY_VIOLATION,
            message=(
                f"Cancellation not allowed. Bookings must be cancelled at least "
                f"{min_lead_hours:g}h in advance"
            ),
            hours_remaining=remaining,
        )
    return Accepted()
