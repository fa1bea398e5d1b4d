# backend/app/routers/slots.py
"""
Slots API endpoints.

GET /slots/available - free start times for a day, for one professional
                       or for the whole shop (any professional free)
"""

import calendar
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import raise_for_rejection
from ..models.generated import Services as DBServices
from ..schemas.slots import OccupiedSlot, ProfessionalSummary, SlotsDayResponse
from ..services.scheduling import (
    Rejected,
    RejectionKind,
    available_slots_any,
    generate_day_slots,
    get_scheduling_config,
    minutes_to_time_str,
    total_duration,
)
from ..services.snapshots import (
    get_active_professional,
    get_active_professionals,
    get_booked_intervals,
    get_business_hours,
)

router = APIRouter(prefix="/slots", tags=["slots"])

ALL_BUSY_REASON = "All professionals are busy"


def parse_id_list(raw: Optional[str]) -> list[int]:
    """Parse "1,2,3" into [1, 2, 3]."""
    if not raw:
        return []
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="service_ids must be a comma-separated list of integers",
        )


def services_duration(db: Session, service_ids: list[int]) -> int:
    """Total duration of the given services; the default when none are given."""
    if not service_ids:
        return get_scheduling_config().default_duration_minutes

    rows = (
        db.query(DBServices.id, DBServices.duration_minutes)
        .filter(DBServices.id.in_(service_ids), DBServices.is_active.is_(True))
        .all()
    )
    durations = {sid: duration for sid, duration in rows}
    missing = [sid for sid in service_ids if sid not in durations]
    if missing:
        raise_for_rejection(Rejected(
            kind=RejectionKind.INVALID_INPUT,
            message=f"Services not found or inactive: {missing}",
        ))
    return total_duration(durations[sid] for sid in service_ids)


@router.get("/available", response_model=SlotsDayResponse)
def get_available_slots(
    target_date: date = Query(..., alias="date"),
    professional_id: Optional[int] = None,
    service_ids: Optional[str] = Query(None, description="Comma-separated service IDs"),
    db: Session = Depends(get_db),
):
    """Get available start times for a day."""
    config = get_scheduling_config()
    weekday = calendar.day_name[target_date.weekday()]
    duration = services_duration(db, parse_id_list(service_ids))
    hours = get_business_hours(db, target_date)

    if not hours.is_open:
        return SlotsDayResponse(
            date=target_date,
            weekday=weekday,
            closed=True,
            duration_minutes=duration,
            slot_step_minutes=config.slot_step_minutes,
            professionals=[],
            available=[],
            occupied=[],
            total_available=0,
            total_occupied=0,
        )

    if professional_id is not None:
        professional = get_active_professional(db, professional_id)
        if not professional:
            raise_for_rejection(Rejected(
                kind=RejectionKind.NO_PROFESSIONAL_AVAILABLE,
                message=f"Professional {professional_id} not found or inactive",
            ))
        professionals = [professional]
    else:
        professionals = get_active_professionals(db)
        if not professionals:
            raise_for_rejection(Rejected(
                kind=RejectionKind.NO_PROFESSIONAL_AVAILABLE,
                message="No active professional found",
            ))

    booked = get_booked_intervals(db, target_date, [p.id for p in professionals])

    # Only starts that finish before closing
    candidates = [
        slot for slot in generate_day_slots(hours, config.slot_step_minutes)
        if hours.contains(slot, duration)
    ]
    result = available_slots_any(candidates, booked, duration)

    return SlotsDayResponse(
        date=target_date,
        weekday=weekday,
        closed=False,
        fully_booked=not result.available,
        opens_at=minutes_to_time_str(hours.opens_at),
        closes_at=minutes_to_time_str(hours.closes_at),
        duration_minutes=duration,
        slot_step_minutes=config.slot_step_minutes,
        professionals=[ProfessionalSummary.model_validate(p) for p in professionals],
        available=[minutes_to_time_str(m) for m in result.available],
        occupied=[
            OccupiedSlot(time=minutes_to_time_str(m), reason=ALL_BUSY_REASON)
            for m in result.occupied
        ],
        total_available=len(result.available),
        total_occupied=len(result.occupied),
    )
