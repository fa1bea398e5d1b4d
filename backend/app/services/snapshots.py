# backend/app/services/snapshots.py
"""
Database → scheduling-core snapshots.

This is the ingestion boundary: rows are loaded here and turned into the
immutable values the scheduling core works on. The default service
duration is applied here and nowhere else.
"""

from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..models.generated import (
    Bookings,
    BusinessSettings,
    Professionals,
)
from .scheduling import (
    ACTIVE_STATUSES,
    BookingStatus,
    BusinessHours,
    Interval,
    RotationSnapshot,
    get_scheduling_config,
    hours_for_date,
    total_duration,
)
from .scheduling.config import time_to_minutes

ACTIVE_STATUS_VALUES = [s.value for s in ACTIVE_STATUSES]


# ── Configuration ────────────────────────────────────────────────────────


def get_business_settings(db: Session) -> Optional[BusinessSettings]:
    """The single settings row, or None if the shop was never configured."""
    return db.query(BusinessSettings).order_by(BusinessSettings.id).first()


def get_business_hours(db: Session, target_date: date) -> BusinessHours:
    row = get_business_settings(db)
    schedule = row.business_hours if row else None
    return hours_for_date(schedule, target_date)


def get_cancellation_lead_hours(db: Session) -> float:
    """Configured client lead time; the default when absent or zero."""
    row = get_business_settings(db)
    if row and row.cancellation_lead_hours:
        return float(row.cancellation_lead_hours)
    return get_scheduling_config().default_lead_hours


# ── Professionals ────────────────────────────────────────────────────────


def get_active_professionals(db: Session) -> list[Professionals]:
    """Active professionals ordered by id (the rotation's stable input order)."""
    return (
        db.query(Professionals)
        .filter(Professionals.is_active.is_(True))
        .order_by(Professionals.id)
        .all()
    )


def get_active_professional(db: Session, professional_id: int) -> Optional[Professionals]:
    obj = db.get(Professionals, professional_id)
    if not obj or not obj.is_active:
        return None
    return obj


# ── Bookings ─────────────────────────────────────────────────────────────


def booking_duration(booking: Bookings) -> int:
    """Stored total, or the sum of its service rows with the default fallback."""
    if booking.total_duration_minutes and booking.total_duration_minutes > 0:
        return booking.total_duration_minutes
    return total_duration(bs.duration_minutes for bs in booking.booking_services)


def booking_interval(booking: Bookings) -> Interval:
    return Interval(time_to_minutes(booking.start_time), booking_duration(booking))


def booking_start(booking: Bookings) -> datetime:
    return datetime.combine(booking.date, booking.start_time)


def get_active_bookings(
    db: Session,
    target_date: date,
    professional_ids: Optional[Iterable[int]] = None,
) -> list[Bookings]:
    """Non-terminal bookings on target_date, optionally for some professionals."""
    query = (
        db.query(Bookings)
        .options(selectinload(Bookings.booking_services))
        .filter(
            Bookings.date == target_date,
            Bookings.status.in_(ACTIVE_STATUS_VALUES),
        )
    )
    if professional_ids is not None:
        query = query.filter(Bookings.professional_id.in_(list(professional_ids)))
    return query.order_by(Bookings.start_time).all()


def get_booked_intervals(
    db: Session,
    target_date: date,
    professional_ids: list[int],
) -> dict[int, list[Interval]]:
    """
    Booked intervals per professional on target_date.

    Every requested professional gets a key, with an empty list when free
    all day; iteration order follows professional_ids.
    """
    result: dict[int, list[Interval]] = {pid: [] for pid in professional_ids}
    if not professional_ids:
        return result

    for booking in get_active_bookings(db, target_date, professional_ids):
        result[booking.professional_id].append(booking_interval(booking))
    return result


def get_rotation_snapshot(
    db: Session,
    target_date: date,
    professional_ids: list[int],
) -> RotationSnapshot:
    """
    Booking counts on target_date and most recent booking time per professional.

    Cancelled bookings count for neither.
    """
    counts: dict[int, int] = {}
    last_booking: dict[int, Optional[datetime]] = {pid: None for pid in professional_ids}

    if professional_ids:
        rows = (
            db.query(Bookings.professional_id, func.count(Bookings.id))
            .filter(
                Bookings.date == target_date,
                Bookings.professional_id.in_(professional_ids),
                Bookings.status != BookingStatus.CANCELLED.value,
            )
            .group_by(Bookings.professional_id)
            .all()
        )
        counts = {pid: count for pid, count in rows}

        rows = (
            db.query(Bookings.professional_id, func.max(Bookings.created_at))
            .filter(
                Bookings.professional_id.in_(professional_ids),
                Bookings.status != BookingStatus.CANCELLED.value,
            )
            .group_by(Bookings.professional_id)
            .all()
        )
        for pid, last in rows:
            last_booking[pid] = last

    return RotationSnapshot(
        target_date=target_date,
        professional_ids=tuple(professional_ids),
        booking_counts=counts,
        last_booking_at=last_booking,
    )
