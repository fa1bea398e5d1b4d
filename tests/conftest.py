"""Shared test fixtures for the booking API tests."""

import os

# Settings are read at import time; point them at a throwaway database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "development"

from datetime import date, datetime, time
from typing import Generator, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.database import get_db
from backend.app.main import app
from backend.app.models.generated import (
    Base,
    BookingServices,
    Bookings,
    BusinessSettings,
    Professionals,
    Services,
)
from backend.app.redis_client import get_redis
from backend.app.services.clock import get_now
from backend.app.services.notifications import DeliveryResult, get_dispatcher

# Monday 6 January 2025, 08:00 shop time
FIXED_NOW = datetime(2025, 1, 6, 8, 0)
MONDAY = date(2025, 1, 6)
TUESDAY = date(2025, 1, 7)
SUNDAY = date(2025, 1, 12)


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads (TestClient runs handlers in a pool)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def mock_redis() -> MagicMock:
    """Redis stand-in; lock.acquire() returns a truthy mock."""
    return MagicMock()


@pytest.fixture
def mock_dispatcher() -> MagicMock:
    dispatcher = MagicMock()
    dispatcher.send.return_value = DeliveryResult(ok=True)
    return dispatcher


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def client(db_session, mock_redis, mock_dispatcher, now) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: mock_redis
    app.dependency_overrides[get_dispatcher] = lambda: mock_dispatcher
    app.dependency_overrides[get_now] = lambda: now

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ── Factories ────────────────────────────────────────────────────────────


@pytest.fixture
def make_professional(db_session):
    def _make(name: str = "Barber", is_active: bool = True) -> Professionals:
        obj = Professionals(name=name, is_active=is_active, specialties=[])
        db_session.add(obj)
        db_session.commit()
        return obj
    return _make


@pytest.fixture
def make_service(db_session):
    def _make(
        name: str = "Haircut",
        price: float = 40.0,
        duration_minutes: Optional[int] = 30,
        is_active: bool = True,
    ) -> Services:
        obj = Services(
            name=name,
            price=price,
            duration_minutes=duration_minutes,
            is_active=is_active,
        )
        db_session.add(obj)
        db_session.commit()
        return obj
    return _make


@pytest.fixture
def make_booking(db_session):
    def _make(
        professional: Professionals,
        day: date,
        start: str,
        duration: int = 30,
        status: str = "scheduled",
        services: tuple = (),
        client_name: str = "Client",
        phone: str = "11999990000",
        attended: Optional[bool] = None,
        created_at: Optional[datetime] = None,
    ) -> Bookings:
        hour, minute = map(int, start.split(":"))
        obj = Bookings(
            professional_id=professional.id,
            date=day,
            start_time=time(hour, minute),
            total_duration_minutes=duration,
            client_name=client_name,
            phone=phone,
            status=status,
            attended=attended,
            total_price=float(sum(s.price for s in services)),
            created_at=created_at or FIXED_NOW,
        )
        obj.booking_services = [
            BookingServices(service_id=s.id, price=s.price, duration_minutes=s.duration_minutes)
            for s in services
        ]
        db_session.add(obj)
        db_session.commit()
        return obj
    return _make


@pytest.fixture
def business_settings(db_session) -> BusinessSettings:
    """Configured shop with a webhook and every notification enabled."""
    row = BusinessSettings(
        shop_name="Test Barbershop",
        business_hours={
            "mon": {"start": "09:00", "end": "19:00"},
            "tue": {"start": "09:00", "end": "19:00"},
            "wed": {"start": "09:00", "end": "19:00"},
            "thu": {"start": "09:00", "end": "19:00"},
            "fri": {"start": "09:00", "end": "19:00"},
            "sat": {"start": "09:00", "end": "18:00"},
            "sun": None,
        },
        webhook_url="https://hooks.example.com/barbershop",
        cancellation_lead_hours=2,
        notify_confirmation=True,
        notify_reminder_24h=True,
        notify_reminder_2h=True,
        notify_followup_3d=True,
        notify_followup_21d=True,
        notify_cancellation=True,
    )
    db_session.add(row)
    db_session.commit()
    return row
