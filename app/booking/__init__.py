"""Booking module: slot generation, conflict filtering and engine errors."""

from app.booking.conflicts import filter_conflicts, windows_overlap
from app.booking.errors import (
    BookingEngineError,
    BookingTimeout,
    DownstreamSideEffectFailure,
    InvalidInput,
    PersistenceFailure,
    SlotUnavailable,
)
from app.booking.slots import ServiceTiming, Slot, generate_slots

__all__ = [
    "generate_slots",
    "filter_conflicts",
    "windows_overlap",
    "ServiceTiming",
    "Slot",
    "BookingEngineError",
    "InvalidInput",
    "SlotUnavailable",
    "BookingTimeout",
    "PersistenceFailure",
    "DownstreamSideEffectFailure",
]
