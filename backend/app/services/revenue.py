# backend/app/services/revenue.py
"""
Monthly revenue report for a professional.

Gross revenue counts every non-cancelled booking of the month;
confirmed revenue only those where the client showed up.
"""

import calendar
from collections import Counter, defaultdict
from datetime import date
from typing import Iterable

from sqlalchemy.orm import Session, selectinload

from ..models.generated import BookingServices, Bookings, Professionals
from .scheduling import BookingStatus

TOP_SERVICES_LIMIT = 5


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of the month. Raises ValueError on a bad month."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def booking_value(booking: Bookings) -> float:
    """Sum of service prices, or the stored total for bookings without service rows."""
    if booking.booking_services:
        return float(sum(bs.price or 0 for bs in booking.booking_services))
    return float(booking.total_price or 0)


def get_month_bookings(
    db: Session,
    professional_id: int,
    year: int,
    month: int,
) -> list[Bookings]:
    first, last = month_bounds(year, month)
    return (
        db.query(Bookings)
        .options(selectinload(Bookings.booking_services).selectinload(BookingServices.service))
        .filter(
            Bookings.professional_id == professional_id,
            Bookings.status != BookingStatus.CANCELLED.value,
            Bookings.date >= first,
            Bookings.date <= last,
        )
        .order_by(Bookings.date, Bookings.start_time)
        .all()
    )


def build_revenue_report(
    professional: Professionals,
    bookings: Iterable[Bookings],
    year: int,
    month: int,
) -> dict:
    first, last = month_bounds(year, month)
    bookings = list(bookings)

    details = []
    daily: dict[date, dict] = defaultdict(lambda: {
        "bookings": 0, "gross": 0.0, "confirmed": 0.0, "completed": 0, "attended": 0,
    })
    quantities: Counter = Counter()
    totals: dict[str, float] = defaultdict(float)

    for booking in bookings:
        value = booking_value(booking)
        services = [
            {
                "name": bs.service.name if bs.service else f"Service {bs.service_id}",
                "price": float(bs.price or 0),
                "duration_minutes": bs.duration_minutes,
            }
            for bs in booking.booking_services
        ]
        details.append({
            "id": booking.id,
            "date": booking.date,
            "start_time": booking.start_time.strftime("%H:%M"),
            "status": booking.status,
            "client_name": booking.client_name,
            "phone": booking.phone,
            "attended": booking.attended,
            "services": services,
            "total": value,
        })

        day = daily[booking.date]
        day["bookings"] += 1
        day["gross"] += value
        if booking.attended is True:
            day["confirmed"] += value
            day["attended"] += 1
        if booking.status == BookingStatus.COMPLETED.value:
            day["completed"] += 1

        for service in services:
            quantities[service["name"]] += 1
            totals[service["name"]] += service["price"]

    total_bookings = len(details)
    gross = sum(d["total"] for d in details)
    confirmed = sum(d["total"] for d in details if d["attended"] is True)
    attended = sum(1 for d in details if d["attended"] is True)
    no_shows = sum(1 for d in details if d["attended"] is False)
    completed = sum(1 for d in details if d["status"] == BookingStatus.COMPLETED.value)

    # most_common keeps first-seen order among equal counts
    top_services = [
        {"name": name, "quantity": qty, "total": totals[name]}
        for name, qty in quantities.most_common(TOP_SERVICES_LIMIT)
    ]

    return {
        "professional": {
            "id": professional.id,
            "name": professional.name,
            "phone": professional.phone,
        },
        "period": {
            "month": month,
            "year": year,
            "month_name": calendar.month_name[month],
            "start_date": first,
            "end_date": last,
        },
        "revenue": {
            "gross": gross,
            "confirmed": confirmed,
            "lost": gross - confirmed,
        },
        "stats": {
            "total_bookings": total_bookings,
            "completed": completed,
            "attended": attended,
            "no_shows": no_shows,
            "attendance_rate": round(attended / total_bookings * 100, 1) if total_bookings else 0.0,
        },
        "daily": [
            {"date": day, **values}
            for day, values in sorted(daily.items())
        ],
        "top_services": top_services,
        "bookings": details,
    }
