# backend/app/schemas/clients.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .bookings import normalize_phone


class ClientCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: str
    email: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return normalize_phone(v)

    model_config = {"from_attributes": True}


class ClientUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class ClientRead(BaseModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UpcomingBooking(BaseModel):
    """A future booking as seen by the client."""
    id: int
    date: date
    start_time: str  # "HH:MM"
    status: str
    professional_name: Optional[str] = None
    services: list[str]
    total_price: float
    total_duration_minutes: int
    hours_until: float
    time_remaining: str
    can_cancel: bool
    cannot_cancel_reason: Optional[str] = None


class ClientBookings(BaseModel):
    phone: str
    client_name: Optional[str] = None
    total: int
    next_booking: Optional[UpcomingBooking] = None
    bookings: list[UpcomingBooking]
    cancellation_lead_hours: float
