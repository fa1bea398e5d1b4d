# backend/app/schemas/professionals.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ProfessionalCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    specialties: list[str] = []

    model_config = {"from_attributes": True}


class ProfessionalUpdate(BaseModel):
    is_active: Optional[bool] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    specialties: Optional[list[str]] = None

    model_config = {"from_attributes": True}


class ProfessionalRead(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    specialties: list[str] = []
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
