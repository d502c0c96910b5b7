"""Error kinds raised by the availability and booking engine.

Every error derives from BookingEngineError so the HTTP layer can map the
whole family in one place.
"""


class BookingEngineError(Exception):
    """Base class for availability and booking errors."""

    pass


class InvalidInput(BookingEngineError):
    """Raised for malformed or missing parameters, or inactive service/provider.

    Always safe to retry after correcting the input. Raised before any
    transaction or lock is taken.
    """

    pass


class AppointmentNotFound(InvalidInput):
    """Raised when an appointment id does not exist in the ledger."""

    pass


class SlotUnavailable(BookingEngineError):
    """Raised when the requested slot is taken or no longer offered.

    The client must re-fetch availability rather than retry the same slot.
    """

    pass


class BookingTimeout(BookingEngineError):
    """Raised when the booking critical section exceeds its time bound.

    No row was written, so the attempt is safe to retry.
    """

    pass


class PersistenceFailure(BookingEngineError):
    """Raised when the storage layer fails on write.

    The transaction was rolled back; no partial appointment exists.
    """

    pass


class DownstreamSideEffectFailure(BookingEngineError):
    """A post-commit side effect (payment, notification, profile refresh) failed.

    Never raised out of a booking: the appointment stays valid and the
    failure is reported alongside the booking result for independent retry.
    It has no HTTP mapping; if one ever reaches the API error handler it
    falls through to a generic 500.
    """

    def __init__(self, handler: str, appointment_id: int, cause: BaseException):
        self.handler = handler
        self.appointment_id = appointment_id
        self.cause = cause
        super().__init__(
            f"Side effect {handler!r} failed for appointment {appointment_id}: {cause}"
        )
