"""Business logic services."""

from app.services.availability import AvailabilityService
from app.services.booking import BookingCoordinator, BookingRequest, BookingResult
from app.services.catalog import CatalogReader
from app.services.customers import CustomerDirectory, CustomerIdentity
from app.services.events import BookingCreatedEvent, BookingEventDispatcher
from app.services.ledger import AppointmentLedger

__all__ = [
    "AvailabilityService",
    "BookingCoordinator",
    "BookingRequest",
    "BookingResult",
    "CatalogReader",
    "CustomerDirectory",
    "CustomerIdentity",
    "BookingCreatedEvent",
    "BookingEventDispatcher",
    "AppointmentLedger",
]
