from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    Time,
    false,
    text,
    true,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata

LIVE_STATUS_CLAUSE = "status IN ('scheduled', 'confirmed', 'in_progress')"


class Professionals(Base):
    __tablename__ = 'professionals'

    name = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    phone = Column(Text)
    specialties = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, server_default=true())
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    bookings = relationship('Bookings', back_populates='professional')


class Services(Base):
    __tablename__ = 'services'

    name = Column(Text, nullable=False)
    price = Column(Float, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    duration_minutes = Column(Integer)
    is_active = Column(Boolean, nullable=False, server_default=true())

    booking_services = relationship('BookingServices', back_populates='service')


class Clients(Base):
    __tablename__ = 'clients'

    name = Column(Text, nullable=False)
    phone = Column(Text, nullable=False, unique=True)
    id = Column(Integer, primary_key=True)
    email = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    bookings = relationship('Bookings', back_populates='client')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        # One live booking per professional/date/start. Terminal rows free the slot.
        Index(
            'uq_bookings_professional_slot',
            'professional_id', 'date', 'start_time',
            unique=True,
            postgresql_where=text(LIVE_STATUS_CLAUSE),
            sqlite_where=text(LIVE_STATUS_CLAUSE),
        ),
        Index('ix_bookings_date', 'date'),
        Index('ix_bookings_phone', 'phone'),
    )

    professional_id = Column(ForeignKey('professionals.id'), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    total_duration_minutes = Column(Integer, nullable=False)
    client_name = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'scheduled'"))
    id = Column(Integer, primary_key=True)
    client_id = Column(ForeignKey('clients.id', ondelete='SET NULL'))
    total_price = Column(Float, nullable=False, server_default=text('0'))
    attended = Column(Boolean)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    professional = relationship('Professionals', back_populates='bookings')
    client = relationship('Clients', back_populates='bookings')
    booking_services = relationship(
        'BookingServices', back_populates='booking', cascade='all, delete-orphan'
    )
    cancellations = relationship('BookingCancellations', back_populates='booking')
    notifications = relationship('SentNotifications', back_populates='booking')


class BookingServices(Base):
    __tablename__ = 'booking_services'

    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    id = Column(Integer, primary_key=True)
    price = Column(Float, nullable=False, server_default=text('0'))
    duration_minutes = Column(Integer)

    booking = relationship('Bookings', back_populates='booking_services')
    service = relationship('Services', back_populates='booking_services')


class BusinessSettings(Base):
    __tablename__ = 'business_settings'

    id = Column(Integer, primary_key=True)
    shop_name = Column(Text, nullable=False, server_default=text("'Barbershop'"))
    business_hours = Column(JSON)
    webhook_url = Column(Text)
    cancellation_lead_hours = Column(Float, nullable=False, server_default=text('2'))
    notify_confirmation = Column(Boolean, nullable=False, server_default=true())
    notify_reminder_24h = Column(Boolean, nullable=False, server_default=true())
    notify_reminder_2h = Column(Boolean, nullable=False, server_default=true())
    notify_followup_3d = Column(Boolean, nullable=False, server_default=false())
    notify_followup_21d = Column(Boolean, nullable=False, server_default=false())
    notify_cancellation = Column(Boolean, nullable=False, server_default=true())
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))


class BookingCancellations(Base):
    __tablename__ = 'booking_cancellations'

    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False)
    cancelled_by = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    reason = Column(Text)
    hours_notice = Column(Float, nullable=False, server_default=text('0'))
    allowed = Column(Boolean, nullable=False, server_default=true())
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    booking = relationship('Bookings', back_populates='cancellations')


class SentNotifications(Base):
    __tablename__ = 'sent_notifications'
    __table_args__ = (
        Index('ix_sent_notifications_booking_kind', 'booking_id', 'kind'),
    )

    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False)
    kind = Column(Text, nullable=False)
    status = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    payload = Column(JSON)
    response = Column(JSON)
    error = Column(Text)
    webhook_url = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    booking = relationship('Bookings', back_populates='notifications')
