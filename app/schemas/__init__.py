"""Pydantic schemas for request/response validation."""

from app.schemas.scheduling import (
    AppointmentResponse,
    AvailableDatesResponse,
    AvailableSlotsResponse,
    BookingResponse,
    CreateBookingRequest,
    NextAvailableDateResponse,
    SlotResponse,
    UpdateAppointmentStatusRequest,
)

__all__ = [
    "SlotResponse",
    "AvailableSlotsResponse",
    "AvailableDatesResponse",
    "NextAvailableDateResponse",
    "CreateBookingRequest",
    "BookingResponse",
    "AppointmentResponse",
    "UpdateAppointmentStatusRequest",
]
