"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.session import get_db, get_session_factory
from app.services.availability import AvailabilityService
from app.services.booking import BookingCoordinator
from app.services.ledger import AppointmentLedger


def get_request_id(request: Request) -> str | None:
    """Extract request ID from headers.

    Args:
        request: FastAPI request

    Returns:
        Request ID or None
    """
    return request.headers.get("X-Request-ID")


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
RequestId = Annotated[str | None, Depends(get_request_id)]


def get_availability_service(session: DbSession) -> AvailabilityService:
    """Availability queries bound to the request session."""
    return AvailabilityService(session)


def get_booking_coordinator(session_factory: SessionFactory) -> BookingCoordinator:
    """Booking coordinator; opens its own sessions per booking step."""
    return BookingCoordinator(session_factory)


def get_ledger(session: DbSession) -> AppointmentLedger:
    """Appointment ledger bound to the request session."""
    return AppointmentLedger(session)


Availability = Annotated[AvailabilityService, Depends(get_availability_service)]
Coordinator = Annotated[BookingCoordinator, Depends(get_booking_coordinator)]
Ledger = Annotated[AppointmentLedger, Depends(get_ledger)]
