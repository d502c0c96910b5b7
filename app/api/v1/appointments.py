"""Appointment ledger endpoints: listing and status transitions."""

from datetime import date

from fastapi import APIRouter, Query

from app.api.deps import Ledger
from app.models.scheduling import AppointmentStatus
from app.schemas.scheduling import AppointmentResponse, UpdateAppointmentStatusRequest

router = APIRouter()


@router.get(
    "",
    response_model=list[AppointmentResponse],
)
async def list_appointments(
    ledger: Ledger,
    provider_id: int | None = Query(None, gt=0),
    status: AppointmentStatus | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[AppointmentResponse]:
    """List appointments, newest first."""
    appointments = await ledger.list_appointments(
        provider_id=provider_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
    )

    return [AppointmentResponse.model_validate(a) for a in appointments]


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentResponse,
)
async def update_appointment_status(
    appointment_id: int,
    request: UpdateAppointmentStatusRequest,
    ledger: Ledger,
) -> AppointmentResponse:
    """Change an appointment's status (approve, cancel, complete, no-show)."""
    appointment = await ledger.update_status(appointment_id, request.status)

    return AppointmentResponse.model_validate(appointment)
