"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from app.api.v1 import appointments, availability, bookings, health

api_router = APIRouter()

# Health check
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"],
)

# Availability queries
api_router.include_router(
    availability.router,
    prefix="/availability",
    tags=["availability"],
)

# Booking creation
api_router.include_router(
    bookings.router,
    prefix="/bookings",
    tags=["bookings"],
)

# Appointment ledger
api_router.include_router(
    appointments.router,
    prefix="/appointments",
    tags=["appointments"],
)
