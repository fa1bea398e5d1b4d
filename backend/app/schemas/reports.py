# backend/app/schemas/reports.py

from datetime import date
from typing import Optional
from pydantic import BaseModel


class ReportProfessional(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None


class ReportPeriod(BaseModel):
    month: int
    year: int
    month_name: str
    start_date: date
    end_date: date


class RevenueTotals(BaseModel):
    gross: float
    confirmed: float  # attended bookings only
    lost: float


class RevenueStats(BaseModel):
    total_bookings: int
    completed: int
    attended: int
    no_shows: int
    attendance_rate: float  # percent


class DailyRevenue(BaseModel):
    date: date
    bookings: int
    gross: float
    confirmed: float
    completed: int
    attended: int


class TopService(BaseModel):
    name: str
    quantity: int
    total: float


class ReportService(BaseModel):
    name: str
    price: float
    duration_minutes: Optional[int] = None


class ReportBooking(BaseModel):
    id: int
    date: date
    start_time: str
    status: str
    client_name: str
    phone: str
    attended: Optional[bool] = None
    services: list[ReportService]
    total: float


class RevenueReport(BaseModel):
    professional: ReportProfessional
    period: ReportPeriod
    revenue: RevenueTotals
    stats: RevenueStats
    daily: list[DailyRevenue]
    top_services: list[TopService]
    bookings: list[ReportBooking]
