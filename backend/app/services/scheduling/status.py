# backend/app/services/scheduling/status.py
"""
Booking status machine.

    scheduled   → confirmed | in_progress | cancelled
    confirmed   → in_progress | cancelled
    in_progress → completed | cancelled
    completed, cancelled: terminal
"""

from enum import Enum

from .decisions import Accepted, Decision, Rejected, RejectionKind


class BookingStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = frozenset({
    BookingStatus.SCHEDULED,
    BookingStatus.CONFIRMED,
    BookingStatus.IN_PROGRESS,
})

TERMINAL_STATUSES = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
})

TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.SCHEDULED: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.IN_PROGRESS,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.IN_PROGRESS,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.IN_PROGRESS: frozenset({
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
    }),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def check_not_terminal(status: str | BookingStatus) -> Decision:
    """Reject any operation on a completed or cancelled booking."""
    current = BookingStatus(status)
    if current in TERMINAL_STATUSES:
        return Rejected(
            kind=RejectionKind.TERMINAL_STATE_VIOLATION,
            message=f"Booking is already {current.value}",
        )
    return Accepted()


def check_transition(current: str | BookingStatus, target: str | BookingStatus) -> Decision:
    """Validate a status change against the transition table."""
    current = BookingStatus(current)
    target = BookingStatus(target)

    decision = check_not_terminal(current)
    if not decision.ok:
        return decision

    if target not in TRANSITIONS[current]:
        return Rejected(
            kind=RejectionKind.INVALID_INPUT,
            message=f"Cannot change status from {current.value} to {target.value}",
        )
    return Accepted()
