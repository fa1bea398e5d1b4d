# backend/app/services/scheduling/__init__.py
"""
Scheduling core.

Pure decision functions over immutable snapshots:
- slots: candidate start times from business hours
- availability: free slots given existing bookings
- rotation: least-loaded professional for unpinned bookings
- conflicts: accept / reject with suggestions
- cancellation: lead-time policy and status checks

Nothing here touches the database or the clock; callers fetch,
pass snapshots in and persist the outcome.
"""

from .config import SchedulingConfig, get_scheduling_config, minutes_to_time_str, time_str_to_minutes
from .decisions import Accepted, Decision, Rejected, RejectionKind
from .intervals import Interval, overlaps, total_duration
from .slots import BusinessHours, generate_day_slots, generate_slots, hours_for_date
from .availability import SlotAvailability, available_slots, available_slots_any, free_professionals
from .rotation import RotationSnapshot, select_professional
from .conflicts import check_business_hours, suggest_slots, validate
from .status import ACTIVE_STATUSES, TERMINAL_STATUSES, BookingStatus, check_not_terminal, check_transition
from .cancellation import ActorRole, can_cancel, check_cancellation, hours_until

__all__ = [
    "SchedulingConfig",
    "get_scheduling_config",
    "minutes_to_time_str",
    "time_str_to_minutes",
    "Accepted",
    "Decision",
    "Rejected",
    "RejectionKind",
    "Interval",
    "overlaps",
    "total_duration",
    "BusinessHours",
    "generate_day_slots",
    "generate_slots",
    "hours_for_date",
    "SlotAvailability",
    "available_slots",
    "available_slots_any",
    "free_professionals",
    "RotationSnapshot",
    "select_professional",
    "check_business_hours",
    "suggest_slots",
    "validate",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "BookingStatus",
    "check_not_terminal",
    "check_transition",
    "ActorRole",
    "can_cancel",
    "check_cancellation",
    "hours_until",
]
