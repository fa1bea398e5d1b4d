# backend/app/routers/services.py
"""
Service catalogue.

Prices and durations are copied into booking_services when a booking is
made, so editing or deactivating a service never changes past bookings.
DELETE is a soft delete (is_active = false).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import Services as DBServices
from ..schemas.services import ServiceCreate, ServiceRead, ServiceUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["services"])


def _service_or_404(db: Session, service_id: int) -> DBServices:
    service = db.get(DBServices, service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return service


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    """Active services must have distinct names (case-insensitive)."""
    query = db.query(DBServices.id).filter(
        func.lower(DBServices.name) == name.strip().lower(),
        DBServices.is_active.is_(True),
    )
    if exclude_id is not None:
        query = query.filter(DBServices.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"An active service named {name!r} already exists",
        )


@router.get("/", response_model=list[ServiceRead])
def list_services(include_inactive: bool = False, db: Session = Depends(get_db)):
    query = db.query(DBServices)
    if not include_inactive:
        query = query.filter(DBServices.is_active.is_(True))
    return query.order_by(DBServices.name).all()


@router.get("/{id}", response_model=ServiceRead)
def get_service(id: int, db: Session = Depends(get_db)):
    return _service_or_404(db, id)


@router.post("/", response_model=ServiceRead, status_code=status.HTTP_201_CREATED)
def create_service(data: ServiceCreate, db: Session = Depends(get_db)):
    _ensure_unique_name(db, data.name)

    service = DBServices(**data.model_dump(), is_active=True)
    db.add(service)
    db.commit()
    db.refresh(service)
    logger.info(f"Service {service.id} created: {service.name} ({service.price})")
    return service


@router.patch("/{id}", response_model=ServiceRead)
def update_service(id: int, data: ServiceUpdate, db: Session = Depends(get_db)):
    service = _service_or_404(db, id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name"):
        _ensure_unique_name(db, changes["name"], exclude_id=service.id)

    for field, value in changes.items():
        setattr(service, field, value)

    db.commit()
    db.refresh(service)
    return service


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_service(id: int, db: Session = Depends(get_db)):
    service = _service_or_404(db, id)
    service.is_active = False
    db.commit()
    logger.info(f"Service {id} deactivated")
