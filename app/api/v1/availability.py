"""Availability endpoints: free slots per date and open dates per month."""

from fastapi import APIRouter, Query

from app.api.deps import Availability
from app.schemas.scheduling import (
    AvailableDatesResponse,
    AvailableSlotsResponse,
    NextAvailableDateResponse,
    SlotResponse,
)

router = APIRouter()


@router.get(
    "",
    response_model=AvailableSlotsResponse,
    summary="Free slots for a date",
)
async def get_availability(
    availability: Availability,
    service_id: int = Query(..., gt=0),
    provider_id: int = Query(..., gt=0),
    date: str = Query(..., description="YYYY-MM-DD"),
) -> AvailableSlotsResponse:
    """Return the free slots of a provider for a service on a date.

    An empty list means the day is closed, past or fully booked.
    """
    slots = await availability.get_available_slots(service_id, provider_id, date)

    return AvailableSlotsResponse(
        date=date,
        slots=[SlotResponse(**slot) for slot in slots],
    )


@router.get(
    "/dates",
    response_model=AvailableDatesResponse,
    summary="Dates with free slots in a month",
)
async def get_available_dates(
    availability: Availability,
    service_id: int = Query(..., gt=0),
    provider_id: int = Query(..., gt=0),
    month: str = Query(..., description="YYYY-MM"),
) -> AvailableDatesResponse:
    """Return the dates in a month that have at least one free slot."""
    dates = await availability.get_available_dates(service_id, provider_id, month)

    return AvailableDatesResponse(month=month, dates=dates)


@router.get(
    "/next",
    response_model=NextAvailableDateResponse,
    summary="Next date with a free slot",
)
async def get_next_available_date(
    availability: Availability,
    service_id: int = Query(..., gt=0),
    provider_id: int = Query(..., gt=0),
    days_ahead: int | None = Query(None, gt=0, le=366),
) -> NextAvailableDateResponse:
    """Return the first date from today with a free slot, or null."""
    next_date = await availability.get_next_available_date(
        service_id, provider_id, days_ahead=days_ahead
    )

    return NextAvailableDateResponse(date=next_date)
