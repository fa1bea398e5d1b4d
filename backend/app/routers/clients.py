# backend/app/routers/clients.py
"""
Client API endpoints.

GET   /clients/                 - list
GET   /clients/{id}             - single client
POST  /clients/                 - create (phone is unique)
PATCH /clients/{id}             - update
GET   /clients/{phone}/bookings - upcoming bookings with cancellation info
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..database import get_db
from ..models.generated import (
    BookingServices as DBBookingServices,
    Bookings as DBBookings,
    Clients as DBClients,
)
from ..schemas.bookings import normalize_phone
from ..schemas.clients import (
    ClientBookings,
    ClientCreate,
    ClientRead,
    ClientUpdate,
    UpcomingBooking,
)
from ..services.clock import get_now
from ..services.scheduling import ActorRole, can_cancel, hours_until
from ..services.snapshots import (
    ACTIVE_STATUS_VALUES,
    booking_duration,
    booking_start,
    get_cancellation_lead_hours,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["clients"])


def format_time_remaining(minutes: int) -> str:
    """Coarse human-readable countdown: minutes, then hours, then days."""
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    if minutes < 1440:
        hours = minutes // 60
        return f"{hours} hour{'s' if hours > 1 else ''}"
    days = minutes // 1440
    return f"{days} day{'s' if days > 1 else ''}"


def _upcoming(booking: DBBookings, now: datetime, lead_hours: float) -> UpcomingBooking:
    start_at = booking_start(booking)
    allowed = can_cancel(now, start_at, lead_hours, ActorRole.CLIENT)
    minutes = int((start_at - now).total_seconds() // 60)

    return UpcomingBooking(
        id=booking.id,
        date=booking.date,
        start_time=booking.start_time.strftime("%H:%M"),
        status=booking.status,
        professional_name=booking.professional.name if booking.professional else None,
        services=[bs.service.name for bs in booking.booking_services if bs.service],
        total_price=float(booking.total_price or 0),
        total_duration_minutes=booking_duration(booking),
        hours_until=round(hours_until(now, start_at), 2),
        time_remaining=format_time_remaining(minutes),
        can_cancel=allowed,
        cannot_cancel_reason=None if allowed else (
            f"Cancellations must be made at least {lead_hours:g} hours in advance"
        ),
    )


@router.get("/", response_model=list[ClientRead])
def list_clients(db: Session = Depends(get_db)):
    return db.query(DBClients).order_by(DBClients.name).all()


@router.get("/{phone}/bookings", response_model=ClientBookings)
def get_client_bookings(
    phone: str,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Future, non-terminal bookings for a phone number, soonest first."""
    try:
        normalized = normalize_phone(phone)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    rows = (
        db.query(DBBookings)
        .options(
            selectinload(DBBookings.professional),
            selectinload(DBBookings.booking_services).selectinload(DBBookingServices.service),
        )
        .filter(
            DBBookings.phone == normalized,
            DBBookings.status.in_(ACTIVE_STATUS_VALUES),
            DBBookings.date >= now.date(),
        )
        .order_by(DBBookings.date, DBBookings.start_time)
        .all()
    )
    lead_hours = get_cancellation_lead_hours(db)
    upcoming = [_upcoming(b, now, lead_hours) for b in rows if booking_start(b) > now]

    client = db.query(DBClients).filter(DBClients.phone == normalized).first()
    if client:
        client_name = client.name
    else:
        client_name = rows[0].client_name if rows else None

    return ClientBookings(
        phone=normalized,
        client_name=client_name,
        total=len(upcoming),
        next_booking=upcoming[0] if upcoming else None,
        bookings=upcoming,
        cancellation_lead_hours=lead_hours,
    )


@router.get("/{id}", response_model=ClientRead)
def get_client(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBClients, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Client not found")
    return obj


@router.post("/", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
def create_client(
    data: ClientCreate,
    db: Session = Depends(get_db),
):
    obj = DBClients(**data.model_dump())
    db.add(obj)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Client with phone {data.phone} already exists",
        )
    db.refresh(obj)
    return obj


@router.patch("/{id}", response_model=ClientRead)
def update_client(
    id: int,
    data: ClientUpdate,
    db: Session = Depends(get_db),
):
    obj = db.get(DBClients, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Client not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj
