"""Database models for the booking engine."""

from app.models.customer import Customer
from app.models.payment import Payment, PaymentStatus
from app.models.scheduling import (
    STATUS_TRANSITIONS,
    Appointment,
    AppointmentStatus,
    DayOff,
    DayOfWeek,
    Provider,
    Service,
    WorkingInterval,
)

__all__ = [
    # Catalog
    "Service",
    "Provider",
    "WorkingInterval",
    "DayOff",
    "DayOfWeek",
    # Ledger
    "Appointment",
    "AppointmentStatus",
    "STATUS_TRANSITIONS",
    # Collaborators
    "Customer",
    "Payment",
    "PaymentStatus",
]
