# backend/app/routers/professionals.py
# PATCH = ALLOWED, DELETE = soft-delete (is_active)

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import Professionals as DBProfessionals
from ..schemas.professionals import (
    ProfessionalCreate,
    ProfessionalUpdate,
    ProfessionalRead,
)
from ..schemas.reports import RevenueReport
from ..services.clock import get_now
from ..services.revenue import build_revenue_report, get_month_bookings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/professionals", tags=["professionals"])


@router.get("/", response_model=list[ProfessionalRead])
def list_professionals(include_inactive: bool = False, db: Session = Depends(get_db)):
    query = db.query(DBProfessionals)
    if not include_inactive:
        query = query.filter(DBProfessionals.is_active.is_(True))
    return query.order_by(DBProfessionals.id).all()


@router.get("/{id}", response_model=ProfessionalRead)
def get_professional(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBProfessionals, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Professional not found")
    return obj


@router.post("/", response_model=ProfessionalRead, status_code=status.HTTP_201_CREATED)
def create_professional(
    data: ProfessionalCreate,
    db: Session = Depends(get_db),
):
    obj = DBProfessionals(**data.model_dump(), is_active=True)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info(f"Professional {obj.id} created: {obj.name}")
    return obj


@router.patch("/{id}", response_model=ProfessionalRead)
def update_professional(
    id: int,
    data: ProfessionalUpdate,
    db: Session = Depends(get_db),
):
    obj = db.get(DBProfessionals, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Professional not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_professional(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBProfessionals, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Professional not found")

    # Existing bookings stay; inactive professionals leave the rotation
    obj.is_active = False
    db.commit()
    logger.info(f"Professional {id} deactivated")


@router.get("/{id}/revenue", response_model=RevenueReport)
def get_professional_revenue(
    id: int,
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Monthly revenue report. Defaults to the current month."""
    professional = db.get(DBProfessionals, id)
    if not professional:
        raise HTTPException(status_code=404, detail="Professional not found")

    month = month or now.month
    year = year or now.year

    bookings = get_month_bookings(db, professional.id, year, month)
    return build_revenue_report(professional, bookings, year, month)
