# backend/app/routers/bookings.py
"""
Booking API endpoints.

POST /bookings/                   - create (rotation when no professional given)
GET  /bookings/                   - list, filtered by date / professional / status
GET  /bookings/{id}               - single booking
POST /bookings/{id}/cancel        - cancel within the lead-time policy
POST /bookings/{id}/status        - status transition
POST /bookings/{id}/attendance    - mark show / no-show
PATCH, DELETE                     - 405, bookings are never edited or removed
"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from redis import Redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..database import get_db
from ..errors import raise_for_rejection
from ..models.generated import (
    BookingCancellations as DBBookingCancellations,
    BookingServices as DBBookingServices,
    Bookings as DBBookings,
    Clients as DBClients,
    Professionals as DBProfessionals,
    Services as DBServices,
)
from ..redis_client import get_redis
from ..schemas.bookings import (
    AttendanceUpdate,
    BookingCancel,
    BookingCancelled,
    BookingCreate,
    BookingCreated,
    BookingRead,
    BookingStatusUpdate,
    ServiceSummary,
)
from ..services.booking_lock import BookingLock, LockUnavailable
from ..services.clock import get_now
from ..services.notifications import (
    NotificationKind,
    WebhookDispatcher,
    booking_payload,
    get_dispatcher,
)
from ..services.scheduling import (
    BookingStatus,
    Rejected,
    RejectionKind,
    check_business_hours,
    check_cancellation,
    check_transition,
    free_professionals,
    hours_until,
    time_str_to_minutes,
    total_duration,
    validate,
)
from ..services.scheduling.config import minutes_to_time
from ..services.snapshots import (
    booking_start,
    get_active_professional,
    get_active_professionals,
    get_booked_intervals,
    get_business_hours,
    get_business_settings,
    get_cancellation_lead_hours,
    get_rotation_snapshot,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────

def _get_booking_or_404(db: Session, booking_id: int) -> DBBookings:
    obj = (
        db.query(DBBookings)
        .options(
            selectinload(DBBookings.professional),
            selectinload(DBBookings.booking_services).selectinload(DBBookingServices.service),
        )
        .filter(DBBookings.id == booking_id)
        .first()
    )
    if not obj:
        raise HTTPException(status_code=404, detail="Booking not found")
    return obj


def _load_services(db: Session, service_ids: list[int]) -> list[DBServices]:
    """Active services in request order; 400 when any id is unknown or inactive."""
    rows = (
        db.query(DBServices)
        .filter(DBServices.id.in_(service_ids), DBServices.is_active.is_(True))
        .all()
    )
    by_id = {s.id: s for s in rows}
    missing = [sid for sid in service_ids if sid not in by_id]
    if missing:
        raise_for_rejection(Rejected(
            kind=RejectionKind.INVALID_INPUT,
            message=f"Services not found or inactive: {missing}",
        ))
    return [by_id[sid] for sid in service_ids]


def _resolve_client_id(db: Session, data: BookingCreate) -> Optional[int]:
    """Explicit client_id must exist; otherwise link by phone when known."""
    if data.client_id is not None:
        if not db.get(DBClients, data.client_id):
            raise_for_rejection(Rejected(
                kind=RejectionKind.INVALID_INPUT,
                message=f"Client {data.client_id} not found",
            ))
        return data.client_id

    client = db.query(DBClients).filter(DBClients.phone == data.phone).first()
    return client.id if client else None


def _choose_professional(
    db: Session,
    target_date: date,
    start: int,
    duration: int,
    professional_id: Optional[int],
) -> DBProfessionals:
    """
    Pinned professional, or the rotation's pick.

    Rotation runs over professionals free at the requested time; when
    nobody is free it runs over everyone so the caller gets the chosen
    professional's conflict and suggestions.
    """
    if professional_id is not None:
        professional = get_active_professional(db, professional_id)
        if not professional:
            raise_for_rejection(Rejected(
                kind=RejectionKind.NO_PROFESSIONAL_AVAILABLE,
                message=f"Professional {professional_id} not found or inactive",
            ))
        return professional

    professionals = get_active_professionals(db)
    ids = [p.id for p in professionals]

    free = free_professionals(start, duration, get_booked_intervals(db, target_date, ids))
    snapshot = get_rotation_snapshot(db, target_date, ids)
    decision = snapshot.select(free) if free else snapshot.select()
    if not decision.ok:
        raise_for_rejection(decision)

    logger.info(
        f"Rotation picked professional {decision.professional_id} for "
        f"{target_date} (free: {free})"
    )
    return next(p for p in professionals if p.id == decision.professional_id)


def _notifications_url(db: Session, flag: str) -> Optional[str]:
    """Webhook URL when configured and the given notify_* flag is on."""
    row = get_business_settings(db)
    if row and row.webhook_url and getattr(row, flag):
        return row.webhook_url
    return None


# ──────────────────────────────────────────────────────────────────────────────
# Endpoints
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/", response_model=list[BookingRead])
def list_bookings(
    target_date: Optional[date] = Query(None, alias="date"),
    professional_id: Optional[int] = None,
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    query = db.query(DBBookings).options(selectinload(DBBookings.booking_services))
    if target_date is not None:
        query = query.filter(DBBookings.date == target_date)
    if professional_id is not None:
        query = query.filter(DBBookings.professional_id == professional_id)
    if status_filter is not None:
        query = query.filter(DBBookings.status == status_filter.value)
    return query.order_by(DBBookings.date, DBBookings.start_time, DBBookings.id).all()


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, db: Session = Depends(get_db)):
    return _get_booking_or_404(db, id)


@router.post("/", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
):
    """
    Create a booking.

    Steps:
    1. Validate services and compute total duration / price
    2. Check the time against business hours
    3. Pick the professional (pinned or rotation)
    4. Under the professional's day lock: re-read bookings, validate, insert
    5. Schedule the confirmation webhook (best effort)

    Returns:
        201 with the assigned professional and totals,
        409 with suggested times on a conflict
    """
    services = _load_services(db, data.service_ids)
    duration = total_duration(s.duration_minutes for s in services)
    total_price = float(sum(s.price or 0 for s in services))
    start = time_str_to_minutes(data.time)

    hours = get_business_hours(db, data.date)
    decision = check_business_hours(hours, start, duration)
    if not decision.ok:
        raise_for_rejection(decision)

    client_id = _resolve_client_id(db, data)
    professional = _choose_professional(db, data.date, start, duration, data.professional_id)

    try:
        with BookingLock(redis).hold(professional.id, data.date):
            existing = get_booked_intervals(db, data.date, [professional.id])[professional.id]
            decision = validate(professional.id, data.date, start, duration, existing, hours)
            if not decision.ok:
                logger.info(f"Booking rejected: {decision.message}")
                raise_for_rejection(decision)

            booking = DBBookings(
                professional_id=professional.id,
                client_id=client_id,
                date=data.date,
                start_time=minutes_to_time(start),
                total_duration_minutes=duration,
                client_name=data.client_name,
                phone=data.phone,
                total_price=total_price,
                status=BookingStatus.SCHEDULED.value,
                notes=data.notes,
            )
            booking.booking_services = [
                DBBookingServices(
                    service_id=s.id,
                    price=float(s.price or 0),
                    duration_minutes=s.duration_minutes,
                )
                for s in services
            ]
            db.add(booking)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning(
                    f"Unique slot index rejected booking for professional "
                    f"{professional.id} at {data.date} {data.time}"
                )
                raise_for_rejection(Rejected(
                    kind=RejectionKind.SCHEDULING_CONFLICT,
                    message=f"{data.time} on {data.date.isoformat()} was just taken",
                ))
    except LockUnavailable:
        logger.warning(f"Booking lock timeout for professional {professional.id} on {data.date}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Booking system is busy, please retry",
        )

    db.refresh(booking)
    logger.info(
        f"Booking {booking.id} created: professional={professional.id} "
        f"{data.date} {data.time} ({duration} min)"
    )

    url = _notifications_url(db, "notify_confirmation")
    if url:
        payload = booking_payload(NotificationKind.CONFIRMATION, booking)
        background_tasks.add_task(
            dispatcher.send_detached, booking.id, NotificationKind.CONFIRMATION, payload, url
        )

    return BookingCreated(
        booking_id=booking.id,
        professional_id=professional.id,
        professional_name=professional.name,
        date=booking.date,
        time=data.time,
        total_price=total_price,
        total_duration_minutes=duration,
        services=[ServiceSummary(name=s.name, price=float(s.price or 0)) for s in services],
        status=booking.status,
    )


@router.post("/{id}/cancel", response_model=BookingCancelled)
def cancel_booking(
    id: int,
    data: BookingCancel,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
    now: datetime = Depends(get_now),
):
    """
    Cancel a booking.

    Clients must cancel at least the configured lead time in advance;
    staff roles may cancel at any time. Every cancellation is recorded
    in booking_cancellations.
    """
    booking = _get_booking_or_404(db, id)
    start_at = booking_start(booking)
    lead_hours = get_cancellation_lead_hours(db)

    decision = check_cancellation(booking.status, now, start_at, lead_hours, data.cancelled_by)
    if not decision.ok:
        logger.info(f"Cancellation of booking {id} rejected: {decision.message}")
        raise_for_rejection(decision, lead_hours=lead_hours)

    notice = round(hours_until(now, start_at), 2)

    db.add(DBBookingCancellations(
        booking_id=booking.id,
        cancelled_by=data.cancelled_by.value,
        reason=data.reason,
        hours_notice=notice,
        allowed=True,
    ))
    booking.status = BookingStatus.CANCELLED.value
    booking.attended = False
    booking.updated_at = now
    db.commit()
    db.refresh(booking)

    logger.info(f"Booking {id} cancelled by {data.cancelled_by.value} ({notice}h notice)")

    url = _notifications_url(db, "notify_cancellation")
    if url:
        payload = booking_payload(
            NotificationKind.CANCELLATION,
            booking,
            cancellation={
                "cancelled_by": data.cancelled_by.value,
                "reason": data.reason,
                "hours_notice": notice,
            },
        )
        background_tasks.add_task(
            dispatcher.send_detached, booking.id, NotificationKind.CANCELLATION, payload, url
        )

    return BookingCancelled(
        booking_id=booking.id,
        status=booking.status,
        cancelled_by=data.cancelled_by.value,
        reason=data.reason,
        hours_notice=notice,
        client_name=booking.client_name,
        professional_name=booking.professional.name if booking.professional else None,
        date=booking.date,
        time=booking.start_time.strftime("%H:%M"),
        released_value=float(booking.total_price or 0),
    )


@router.post("/{id}/status", response_model=BookingRead)
def update_booking_status(
    id: int,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Move a booking through the status machine. Use /cancel to cancel."""
    booking = _get_booking_or_404(db, id)

    if data.status == BookingStatus.CANCELLED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Use POST /bookings/{id}/cancel to cancel a booking",
        )

    decision = check_transition(booking.status, data.status)
    if not decision.ok:
        raise_for_rejection(decision)

    previous = booking.status
    booking.status = data.status.value
    booking.updated_at = now
    db.commit()
    db.refresh(booking)

    logger.info(f"Booking {id} status: {previous} -> {booking.status}")
    return booking


@router.post("/{id}/attendance", response_model=BookingRead)
def update_attendance(
    id: int,
    data: AttendanceUpdate,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Record whether the client showed up. Not allowed on cancelled bookings."""
    booking = _get_booking_or_404(db, id)

    if booking.status == BookingStatus.CANCELLED.value:
        raise_for_rejection(Rejected(
            kind=RejectionKind.TERMINAL_STATE_VIOLATION,
            message="Cannot record attendance for a cancelled booking",
        ))

    booking.attended = data.attended
    booking.updated_at = now
    db.commit()
    db.refresh(booking)
    return booking


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
