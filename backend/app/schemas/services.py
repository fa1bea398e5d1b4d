# backend/app/schemas/services.py

from typing import Optional
from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    # None → default duration is applied when booking
    duration_minutes: Optional[int] = Field(default=None, gt=0)

    model_config = {"from_attributes": True}


class ServiceUpdate(BaseModel):
    is_active: Optional[bool] = None
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, ge=0)
    duration_minutes: Optional[int] = Field(default=None, gt=0)

    model_config = {"from_attributes": True}


class ServiceRead(BaseModel):
    id: int
    name: str
    price: float
    duration_minutes: Optional[int] = None
    is_active: bool

    model_config = {"from_attributes": True}
