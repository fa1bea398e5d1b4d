# backend/app/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel


class ProfessionalSummary(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class OccupiedSlot(BaseModel):
    time: str  # "HH:MM"
    reason: str


class SlotsDayResponse(BaseModel):
    """Available start times for a day, across one or all professionals."""
    date: date
    weekday: str
    closed: bool
    fully_booked: bool = False  # open day, no professional free at any slot

    opens_at: Optional[str] = None  # "HH:MM"
    closes_at: Optional[str] = None
    duration_minutes: int
    slot_step_minutes: int

    professionals: list[ProfessionalSummary]
    available: list[str]
    occupied: list[OccupiedSlot]

    total_available: int
    total_occupied: int
