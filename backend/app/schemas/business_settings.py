# backend/app/schemas/business_settings.py

import re
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from ..services.scheduling.slots import WEEKDAY_KEYS

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class DayHours(BaseModel):
    start: str = Field(description="Opening time, HH:MM")
    end: str = Field(description="Closing time, HH:MM")

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not _TIME_RE.match(v):
            raise ValueError("Time must be in HH:MM format")
        return v


def validate_week(value: Optional[dict]) -> Optional[dict]:
    """All seven weekday keys; null means closed; start must precede end."""
    if value is None:
        return None
    unknown = set(value) - set(WEEKDAY_KEYS)
    if unknown:
        raise ValueError(f"Unknown weekday keys: {sorted(unknown)}")
    missing = [day for day in WEEKDAY_KEYS if day not in value]
    if missing:
        raise ValueError(f"Missing weekday keys: {missing} (use null for closed days)")
    for day, hours in value.items():
        if hours is not None and hours.start >= hours.end:
            raise ValueError(f"{day}: opening time must be before closing time")
    return value


class BusinessSettingsUpdate(BaseModel):
    shop_name: Optional[str] = None
    business_hours: Optional[dict[str, Optional[DayHours]]] = None
    webhook_url: Optional[str] = None
    cancellation_lead_hours: Optional[float] = Field(default=None, gt=0)
    notify_confirmation: Optional[bool] = None
    notify_reminder_24h: Optional[bool] = None
    notify_reminder_2h: Optional[bool] = None
    notify_followup_3d: Optional[bool] = None
    notify_followup_21d: Optional[bool] = None
    notify_cancellation: Optional[bool] = None

    @field_validator("business_hours")
    @classmethod
    def validate_business_hours(cls, v):
        return validate_week(v)

    model_config = {"from_attributes": True}


class BusinessSettingsRead(BaseModel):
    shop_name: str
    business_hours: dict[str, Optional[DayHours]]
    webhook_url: Optional[str] = None
    cancellation_lead_hours: float
    notify_confirmation: bool
    notify_reminder_24h: bool
    notify_reminder_2h: bool
    notify_followup_3d: bool
    notify_followup_21d: bool
    notify_cancellation: bool

    model_config = {"from_attributes": True}
