# backend/app/routers/settings.py
# Single-row business configuration. GET creates nothing; PUT upserts.

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import BusinessSettings as DBBusinessSettings
from ..schemas.business_settings import BusinessSettingsRead, BusinessSettingsUpdate
from ..services.scheduling import get_scheduling_config
from ..services.scheduling.slots import DEFAULT_BUSINESS_HOURS
from ..services.snapshots import get_business_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])

DEFAULTS = {
    "shop_name": "Barbershop",
    "webhook_url": None,
    "notify_confirmation": True,
    "notify_reminder_24h": True,
    "notify_reminder_2h": True,
    "notify_followup_3d": False,
    "notify_followup_21d": False,
    "notify_cancellation": True,
}

# null clears these; for the rest null means "leave unchanged"
NULLABLE_FIELDS = {"webhook_url", "business_hours"}


def _default_settings() -> dict:
    return {
        **DEFAULTS,
        "business_hours": dict(DEFAULT_BUSINESS_HOURS),
        "cancellation_lead_hours": get_scheduling_config().default_lead_hours,
    }


def _settings_view(row: Optional[DBBusinessSettings]) -> dict:
    """Stored values over defaults; unset columns fall back to the default."""
    data = _default_settings()
    if row:
        for field in BusinessSettingsRead.model_fields:
            value = getattr(row, field)
            if value is not None:
                data[field] = value
    return data


@router.get("/", response_model=BusinessSettingsRead)
def read_settings(db: Session = Depends(get_db)):
    return _settings_view(get_business_settings(db))


@router.put("/", response_model=BusinessSettingsRead)
def update_settings(data: BusinessSettingsUpdate, db: Session = Depends(get_db)):
    row = get_business_settings(db)
    if not row:
        row = DBBusinessSettings(**_default_settings())
        db.add(row)

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(row, field, value)

    db.commit()
    db.refresh(row)
    logger.info(f"Business settings updated: {sorted(changes)}")
    return _settings_view(row)
