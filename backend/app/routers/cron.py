# backend/app/routers/cron.py
"""
Cron endpoints, called by an external scheduler (hourly, business hours).

In production requests must carry "Authorization: Bearer <CRON_SECRET>".
"""

import logging
import secrets
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..services.clock import get_now
from ..services.notifications import WebhookDispatcher, get_dispatcher
from ..services.reminders import run_reminders

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    if not settings.is_production:
        return

    expected = f"Bearer {settings.cron_secret}"
    if not authorization or not secrets.compare_digest(authorization, expected):
        logger.warning("Cron endpoint called without a valid secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


@router.get("/reminders", dependencies=[Depends(verify_cron_secret)])
def trigger_reminders(
    db: Session = Depends(get_db),
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
    now: datetime = Depends(get_now),
):
    """Run one reminder / follow-up pass and report what was sent."""
    report = run_reminders(db, now, dispatcher)
    if report is None:
        return {
            "success": False,
            "message": "Webhook URL not configured",
            "timestamp": now.isoformat(),
        }

    return {
        "success": True,
        "timestamp": now.isoformat(),
        "sent": report.as_dict(),
    }
