# backend/app/services/scheduling/decisions.py
"""
Decision values returned by the scheduling core.

Business outcomes (conflict, fully booked, late cancellation, ...) are
returned as Rejected values, never raised. Callers inspect `kind` and
translate it for their transport.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class RejectionKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    NO_PROFESSIONAL_AVAILABLE = "no_professional_available"
    SCHEDULING_CONFLICT = "scheduling_conflict"
    TERMINAL_STATE_VIOLATION = "terminal_state_violation"
    POLICY_VIOLATION = "policy_violation"


@dataclass(frozen=True)
class Accepted:
    """Positive decision. Fields are filled by the operation that produced it."""
    professional_id: Optional[int] = None
    start_minutes: Optional[int] = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    """
    Negative decision.

    Attributes:
        kind: Which business rule rejected the request
        message: Human-readable explanation
        suggested_slots: Alternative start times (minutes), for conflicts
        hours_remaining: Hours until the booking, for late cancellations
    """
    kind: RejectionKind
    message: str
    suggested_slots: tuple[int, ...] = ()
    hours_remaining: Optional[float] = None

    @property
    def ok(self) -> bool:
        return False


Decision = Union[Accepted, Rejected]
