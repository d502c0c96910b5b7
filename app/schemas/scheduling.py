"""Pydantic schemas for availability and booking endpoints."""

from datetime import date, datetime, time

from pydantic import BaseModel, EmailStr, Field, field_serializer

from app.models.scheduling import AppointmentStatus


class SlotResponse(BaseModel):
    """A free slot, as wall-clock times in the provider's timezone."""

    start: str = Field(description="HH:MM")
    end: str = Field(description="HH:MM")


class AvailableSlotsResponse(BaseModel):
    """Free slots for one date."""

    date: str
    slots: list[SlotResponse]


class AvailableDatesResponse(BaseModel):
    """Dates in a month with at least one free slot."""

    month: str
    dates: list[str]


class NextAvailableDateResponse(BaseModel):
    """First date with a free slot, if any within the horizon."""

    date: str | None


class CreateBookingRequest(BaseModel):
    """Request to book a slot."""

    service_id: int = Field(gt=0)
    provider_id: int = Field(gt=0)
    date: str = Field(description="YYYY-MM-DD")
    time: str = Field(description="HH:MM")
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=2000)


class SideEffectFailureResponse(BaseModel):
    """A post-commit step that failed; the booking itself stands."""

    handler: str
    detail: str


class BookingResponse(BaseModel):
    """Created booking."""

    appointment_id: int
    status: str
    date: str
    start: str
    end: str
    side_effect_failures: list[SideEffectFailureResponse] = []


class AppointmentResponse(BaseModel):
    """Appointment as stored in the ledger."""

    id: int
    service_id: int
    provider_id: int
    customer_id: int
    booking_date: date
    start_time: time
    end_time: time
    status: str
    customer_notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_serializer("start_time", "end_time")
    def serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")


class UpdateAppointmentStatusRequest(BaseModel):
    """Request to change an appointment's status."""

    status: AppointmentStatus
