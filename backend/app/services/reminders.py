"""
Booking reminder dispatcher.

Triggered externally (cron hitting GET /cron/reminders, hourly during
business hours). Each pass:

- reminder_24h: bookings tomorrow, still scheduled/confirmed
- reminder_2h:  bookings today starting in 120..130 minutes
- followup_3d:  completed + attended bookings from 3 days ago
- followup_21d: completed + attended bookings from 21 days ago

Each kind is gated by its settings flag. A reminder is sent once per
booking (a "sent" record blocks it); a follow-up is attempted once
(any record blocks it).
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from sqlalchemy.orm import Session, selectinload

from ..models.generated import BookingServices, Bookings, BusinessSettings, SentNotifications
from .notifications import (
    DeliveryStatus,
    NotificationKind,
    WebhookDispatcher,
    booking_payload,
    followup_payload,
)
from .scheduling import BookingStatus
from .snapshots import get_business_settings

logger = logging.getLogger(__name__)

REMINDER_2H_WINDOW = (120, 130)  # minutes before start, inclusive

REMINDABLE_STATUSES = frozenset({BookingStatus.SCHEDULED, BookingStatus.CONFIRMED})

REMINDER_KINDS = frozenset({NotificationKind.REMINDER_24H, NotificationKind.REMINDER_2H})

FOLLOWUP_DAYS = {
    NotificationKind.FOLLOWUP_3D: 3,
    NotificationKind.FOLLOWUP_21D: 21,
}


@dataclass
class ReminderReport:
    reminder_24h: int = 0
    reminder_2h: int = 0
    followup_3d: int = 0
    followup_21d: int = 0
    errors: list[str] = field(default_factory=list)

    def count(self, kind: NotificationKind) -> None:
        setattr(self, kind.value, getattr(self, kind.value) + 1)

    def as_dict(self) -> dict:
        return {
            "reminder_24h": self.reminder_24h,
            "reminder_2h": self.reminder_2h,
            "followup_3d": self.followup_3d,
            "followup_21d": self.followup_21d,
            "errors": list(self.errors),
        }


# ── Planning (pure) ──────────────────────────────────────────────────────


def minutes_until_start(now: datetime, booking_date: date, start_time: time) -> int:
    """Whole minutes from now (truncated to the minute) to the booking start."""
    start = datetime.combine(booking_date, start_time)
    current = now.replace(second=0, microsecond=0)
    return int((start - current).total_seconds() // 60)


def is_due(
    kind: NotificationKind,
    now: datetime,
    booking_date: date,
    start_time: time,
    status: str,
    attended: Optional[bool],
) -> bool:
    """Whether a booking is due for the given notification kind at `now`."""
    today = now.date()

    if kind == NotificationKind.REMINDER_24H:
        return (
            booking_date == today + timedelta(days=1)
            and status in {s.value for s in REMINDABLE_STATUSES}
        )

    if kind == NotificationKind.REMINDER_2H:
        if booking_date != today or status not in {s.value for s in REMINDABLE_STATUSES}:
            return False
        low, high = REMINDER_2H_WINDOW
        return low <= minutes_until_start(now, booking_date, start_time) <= high

    if kind in FOLLOWUP_DAYS:
        return (
            booking_date == today - timedelta(days=FOLLOWUP_DAYS[kind])
            and status == BookingStatus.COMPLETED.value
            and attended is True
        )

    return False


def enabled_kinds(row: BusinessSettings) -> list[NotificationKind]:
    flags = [
        (NotificationKind.REMINDER_24H, row.notify_reminder_24h),
        (NotificationKind.REMINDER_2H, row.notify_reminder_2h),
        (NotificationKind.FOLLOWUP_3D, row.notify_followup_3d),
        (NotificationKind.FOLLOWUP_21D, row.notify_followup_21d),
    ]
    return [kind for kind, enabled in flags if enabled]


def target_date(kind: NotificationKind, now: datetime) -> date:
    today = now.date()
    if kind == NotificationKind.REMINDER_24H:
        return today + timedelta(days=1)
    if kind in FOLLOWUP_DAYS:
        return today - timedelta(days=FOLLOWUP_DAYS[kind])
    return today


def plan_reminders(
    now: datetime,
    kinds: Iterable[NotificationKind],
    candidates: Iterable[Bookings],
) -> list[tuple[NotificationKind, Bookings]]:
    """
    Pair each candidate booking with the notification kinds it is due for.

    Pure: only booking attributes are read, nothing is sent or queried.
    """
    kinds = list(kinds)
    plan = []
    for booking in candidates:
        for kind in kinds:
            if is_due(kind, now, booking.date, booking.start_time, booking.status, booking.attended):
                plan.append((kind, booking))
    return plan


# ── Dispatch ─────────────────────────────────────────────────────────────


def run_reminders(
    db: Session,
    now: datetime,
    dispatcher: WebhookDispatcher,
) -> Optional[ReminderReport]:
    """
    Run one reminder pass.

    Returns None when no webhook URL is configured.
    """
    row = get_business_settings(db)
    if not row or not row.webhook_url:
        logger.info("Reminder pass skipped: webhook URL not configured")
        return None

    report = ReminderReport()
    kinds = enabled_kinds(row)
    logger.info(f"Reminder pass started: {[k.value for k in kinds]}")

    candidates = _candidate_bookings(db, kinds, now)
    for kind, booking in plan_reminders(now, kinds, candidates):
        try:
            _process_single_booking(db, booking, kind, row.webhook_url, dispatcher, report)
        except Exception:
            db.rollback()
            logger.exception(
                f"Error processing booking {booking.id} for {kind.value}"
            )
            report.errors.append(f"{kind.value}: booking {booking.id}")

    logger.info(f"Reminder pass finished: {report.as_dict()}")
    return report


def _candidate_bookings(
    db: Session,
    kinds: Iterable[NotificationKind],
    now: datetime,
) -> list[Bookings]:
    dates = {target_date(kind, now) for kind in kinds}
    if not dates:
        return []
    return (
        db.query(Bookings)
        .options(
            selectinload(Bookings.professional),
            selectinload(Bookings.booking_services).selectinload(BookingServices.service),
        )
        .filter(Bookings.date.in_(dates))
        .order_by(Bookings.date, Bookings.start_time, Bookings.id)
        .all()
    )


def _already_notified(db: Session, booking_id: int, kind: NotificationKind) -> bool:
    query = db.query(SentNotifications.id).filter(
        SentNotifications.booking_id == booking_id,
        SentNotifications.kind == kind.value,
    )
    if kind in REMINDER_KINDS:
        query = query.filter(SentNotifications.status == DeliveryStatus.SENT.value)
    return query.first() is not None


def _process_single_booking(
    db: Session,
    booking: Bookings,
    kind: NotificationKind,
    webhook_url: str,
    dispatcher: WebhookDispatcher,
    report: ReminderReport,
) -> None:
    """Send one notification unless the booking was already notified."""
    if _already_notified(db, booking.id, kind):
        return

    if kind in REMINDER_KINDS:
        payload = booking_payload(kind, booking)
    else:
        payload = followup_payload(kind, booking)

    result = dispatcher.send(db, booking.id, kind, payload, webhook_url)
    if result.ok:
        report.count(kind)
    else:
        report.errors.append(f"{kind.value} failed for {booking.client_name}")
