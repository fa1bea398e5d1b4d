"""
backend/app/services/notifications.py

Webhook notifications (N8N → WhatsApp).

Each notification is a single best-effort POST. The outcome, success or
failure, is recorded in sent_notifications; delivery errors are logged
and never propagated to the request that triggered them.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import httpx
from sqlalchemy.orm import Session

from ..config import settings
from ..database import SessionLocal
from ..models.generated import Bookings, SentNotifications
from .snapshots import booking_duration

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    CONFIRMATION = "confirmation"
    CANCELLATION = "cancellation"
    REMINDER_24H = "reminder_24h"
    REMINDER_2H = "reminder_2h"
    FOLLOWUP_3D = "followup_3d"
    FOLLOWUP_21D = "followup_21d"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


@dataclass
class DeliveryResult:
    ok: bool
    response: Any = None
    error: Optional[str] = None

    @property
    def status(self) -> DeliveryStatus:
        return DeliveryStatus.SENT if self.ok else DeliveryStatus.FAILED


class WebhookDispatcher:
    """POSTs JSON payloads to the configured webhook and records the outcome."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.webhook_timeout_seconds
        self._transport = transport

    def post(self, url: str, payload: dict) -> DeliveryResult:
        """Single POST attempt. Transport errors become a failed result."""
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Webhook POST to {url} failed: {e}")
            return DeliveryResult(ok=False, error=str(e) or type(e).__name__)

        if not resp.is_success:
            logger.warning(f"Webhook POST to {url} returned HTTP {resp.status_code}")
            return DeliveryResult(ok=False, error=f"HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError:
            body = None
        return DeliveryResult(ok=True, response=body)

    def send(
        self,
        db: Session,
        booking_id: int,
        kind: NotificationKind,
        payload: dict,
        url: str,
    ) -> DeliveryResult:
        """POST the payload and record it in sent_notifications."""
        result = self.post(url, payload)

        db.add(SentNotifications(
            booking_id=booking_id,
            kind=kind.value,
            status=result.status.value,
            payload=payload,
            response=result.response,
            error=result.error,
            webhook_url=url,
        ))
        db.commit()

        logger.info(
            f"Notification {kind.value} for booking={booking_id}: {result.status.value}"
        )
        return result

    def send_detached(
        self,
        booking_id: int,
        kind: NotificationKind,
        payload: dict,
        url: str,
    ) -> None:
        """Background-task entry point: uses its own session and never raises."""
        db = SessionLocal()
        try:
            self.send(db, booking_id, kind, payload, url)
        except Exception:
            logger.exception(f"Failed to dispatch {kind.value} for booking {booking_id}")
        finally:
            db.close()


webhook_dispatcher = WebhookDispatcher()


# FastAPI dependency
def get_dispatcher() -> WebhookDispatcher:
    return webhook_dispatcher


# ── Payloads ─────────────────────────────────────────────────────────────


def booking_payload(kind: NotificationKind, booking: Bookings, **extra: Any) -> dict:
    """
    Common payload shape for booking notifications.

    Built while the booking is still attached to its session; the result
    is plain JSON and safe to hand to a background task.
    """
    payload = {
        "kind": kind.value,
        "booking_id": booking.id,
        "client": {
            "name": booking.client_name,
            "phone": booking.phone,
        },
        "booking": {
            "date": booking.date.isoformat(),
            "time": booking.start_time.strftime("%H:%M"),
            "barber": booking.professional.name if booking.professional else None,
            "services": [
                bs.service.name for bs in booking.booking_services if bs.service
            ],
            "total_price": booking.total_price,
            "total_duration": booking_duration(booking),
        },
    }
    payload.update(extra)
    return payload


def followup_payload(kind: NotificationKind, booking: Bookings) -> dict:
    messages = {
        NotificationKind.FOLLOWUP_3D: "Feedback request about the last visit",
        NotificationKind.FOLLOWUP_21D: "Time to book the next visit",
    }
    return {
        "kind": kind.value,
        "booking_id": booking.id,
        "client": {
            "name": booking.client_name,
            "phone": booking.phone,
        },
        "barber": booking.professional.name if booking.professional else None,
        "message": messages.get(kind, ""),
    }
