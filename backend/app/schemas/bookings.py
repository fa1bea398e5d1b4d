# backend/app/schemas/bookings.py

import re
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..services.scheduling import ActorRole, BookingStatus


def normalize_phone(value: str) -> str:
    """Keep digits only; reject numbers too short to be real."""
    digits = re.sub(r"\D", "", value)
    if len(digits) < 8:
        raise ValueError("Phone must contain at least 8 digits")
    return digits


class BookingCreate(BaseModel):
    client_name: str = Field(min_length=1)
    phone: str
    date: date
    time: str = Field(description="Start time in HH:MM format")
    service_ids: list[int] = Field(min_length=1)

    # None → rotation picks the professional
    professional_id: Optional[int] = None
    client_id: Optional[int] = None
    notes: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return normalize_phone(v)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not re.match(r"^\d{2}:\d{2}$", v):
            raise ValueError("Time must be in HH:MM format")
        hour, minute = int(v[:2]), int(v[3:])
        if hour > 23 or minute > 59:
            raise ValueError("Time out of range")
        return v

    @field_validator("service_ids")
    @classmethod
    def dedupe_services(cls, v: list[int]) -> list[int]:
        return list(dict.fromkeys(v))


class BookingServiceRead(BaseModel):
    service_id: int
    price: float
    duration_minutes: Optional[int] = None

    model_config = {"from_attributes": True}


class BookingRead(BaseModel):
    id: int

    professional_id: int
    client_id: Optional[int] = None

    date: date
    start_time: time
    total_duration_minutes: int

    client_name: str
    phone: str
    total_price: float

    status: str
    attended: Optional[bool] = None
    notes: Optional[str] = None

    booking_services: list[BookingServiceRead] = []

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ServiceSummary(BaseModel):
    name: str
    price: float


class BookingCreated(BaseModel):
    booking_id: int
    professional_id: int
    professional_name: str
    date: date
    time: str
    total_price: float
    total_duration_minutes: int
    services: list[ServiceSummary]
    status: str = BookingStatus.SCHEDULED.value


class BookingCancel(BaseModel):
    reason: Optional[str] = None
    cancelled_by: ActorRole = ActorRole.CLIENT


class BookingCancelled(BaseModel):
    booking_id: int
    status: str = BookingStatus.CANCELLED.value
    cancelled_by: str
    reason: Optional[str] = None
    hours_notice: float
    client_name: str
    professional_name: Optional[str] = None
    date: date
    time: str
    released_value: float


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class AttendanceUpdate(BaseModel):
    attended: bool
