"""Booking creation endpoint; the sole entry point to the booking coordinator."""

import logging

from fastapi import APIRouter, status

from app.api.deps import Coordinator, RequestId
from app.schemas.scheduling import (
    BookingResponse,
    CreateBookingRequest,
    SideEffectFailureResponse,
)
from app.services.booking import BookingRequest
from app.services.customers import CustomerIdentity

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a slot",
)
async def create_booking(
    request: CreateBookingRequest,
    coordinator: Coordinator,
    request_id: RequestId,
) -> BookingResponse:
    """Book a slot for a customer.

    Responds 409 when the slot was taken or closed since availability was
    fetched; the client should re-fetch availability. Post-commit failures
    (payment record, notifications) are listed in the response and do not
    affect the booking.
    """
    result = await coordinator.book(
        BookingRequest(
            service_id=request.service_id,
            provider_id=request.provider_id,
            date=request.date,
            time=request.time,
            customer=CustomerIdentity(
                first_name=request.first_name,
                last_name=request.last_name,
                email=request.email,
                phone=request.phone,
            ),
            notes=request.notes,
        )
    )

    if result.side_effect_failures:
        logger.warning(
            f"Booking {result.appointment_id} committed with "
            f"{len(result.side_effect_failures)} failed side effect(s)",
            extra={"request_id": request_id, "appointment_id": result.appointment_id},
        )

    return BookingResponse(
        appointment_id=result.appointment_id,
        status=result.status.value,
        date=result.booking_date.isoformat(),
        start=result.start_time.strftime("%H:%M"),
        end=result.end_time.strftime("%H:%M"),
        side_effect_failures=[
            SideEffectFailureResponse(handler=failure.handler, detail=str(failure.cause))
            for failure in result.side_effect_failures
        ],
    )
