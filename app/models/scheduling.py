"""Scheduling models for the service catalog, working hours and appointments.

Service, Provider, WorkingInterval and DayOff are configured by external
collaborators and are read-only to the booking engine. Appointment rows are
owned by the appointment ledger and are only ever written by the booking
coordinator (insert) or the status-transition path (update).
"""

from datetime import date, time
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin


class Service(Base, TimestampMixin):
    """A bookable service with duration and buffer rules."""

    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="positive_duration"),
        CheckConstraint(
            "buffer_before_minutes >= 0 AND buffer_after_minutes >= 0",
            name="non_negative_buffers",
        ),
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    duration_minutes: Mapped[int] = mapped_column(
        Integer,
        default=60,
        nullable=False,
    )
    # Buffers widen the occupied window used for conflict checks only
    buffer_before_minutes: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    buffer_after_minutes: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        default=Decimal("0.00"),
        nullable=False,
    )
    active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Service {self.id} {self.name} {self.duration_minutes}min>"


class Provider(Base, TimestampMixin):
    """A staff member who delivers services and owns a calendar."""

    __tablename__ = "providers"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    # IANA timezone name; all slot arithmetic happens in this zone
    timezone: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        index=True,
    )

    working_intervals: Mapped[list["WorkingInterval"]] = relationship(
        "WorkingInterval",
        back_populates="provider",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Provider {self.id} {self.name}>"


class DayOfWeek(int, Enum):
    """Day of week for recurring working hours (matches date.weekday())."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


class WorkingInterval(Base):
    """Recurring weekly open period for a provider."""

    __tablename__ = "working_intervals"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="start_before_end"),
        CheckConstraint("weekday >= 0 AND weekday <= 6", name="valid_weekday"),
        Index("ix_working_intervals_provider_day", "provider_id", "weekday", "is_active"),
    )

    provider_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
    )
    weekday: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    start_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )
    end_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    provider: Mapped["Provider"] = relationship(
        "Provider",
        back_populates="working_intervals",
    )

    def __repr__(self) -> str:
        return f"<WorkingInterval {self.weekday} {self.start_time}-{self.end_time}>"


class DayOff(Base):
    """Dated closure for a provider (holidays, leave). Inclusive range."""

    __tablename__ = "days_off"
    __table_args__ = (
        CheckConstraint("date_start <= date_end", name="ordered_range"),
        Index("ix_days_off_provider_dates", "provider_id", "date_start", "date_end"),
    )

    provider_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
    )
    date_start: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    date_end: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<DayOff provider={self.provider_id} {self.date_start}..{self.date_end}>"


class AppointmentStatus(str, Enum):
    """Status of an appointment."""

    PENDING = "pending"
    APPROVED = "approved"
    CANCELED = "canceled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# Allowed status transitions; statuses missing from the map are terminal
STATUS_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.APPROVED,
        AppointmentStatus.CANCELED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.APPROVED: frozenset({
        AppointmentStatus.CANCELED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
    }),
}


class Appointment(Base, TimestampMixin):
    """A booked appointment between a customer and a provider.

    Rows are never deleted; cancellation is a status change. Non-canceled
    rows of one provider never overlap, buffers included.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_provider_date", "provider_id", "booking_date"),
        # Storage-level guard against two live rows on the same start time
        Index(
            "uq_appointments_provider_slot_active",
            "provider_id",
            "booking_date",
            "start_time",
            unique=True,
            postgresql_where=text("status <> 'canceled'"),
            sqlite_where=text("status <> 'canceled'"),
        ),
    )

    service_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("services.id", ondelete="RESTRICT"),
        nullable=False,
    )
    provider_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("providers.id", ondelete="RESTRICT"),
        nullable=False,
    )
    customer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # Wall-clock date and times in the provider's timezone
    booking_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    start_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )
    end_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )
    status: Mapped[AppointmentStatus] = mapped_column(
        String(20),
        default=AppointmentStatus.PENDING,
        nullable=False,
        index=True,
    )
    customer_notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    service: Mapped["Service"] = relationship(
        "Service",
        lazy="joined",
    )

    def __repr__(self) -> str:
        return (
            f"<Appointment {self.id} provider={self.provider_id} "
            f"{self.booking_date} {self.start_time}-{self.end_time} status={self.status}>"
        )
