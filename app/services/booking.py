"""Booking transaction coordinator.

Turns a chosen slot into a durable appointment without double booking:

1. Validate input, catalog state and that the slot is offered (no lock held).
2. Re-check the slot's occupied window against the ledger inside a
   per-provider critical section and a single database transaction.
3. Insert the pending appointment in that same transaction and commit.
4. Run post-commit side effects; their failures are reported, never undone.

Steps 2 and 3 are serialized per provider by an in-process lock plus a
provider row lock, so no other booking for the same provider can observe the
state between the check and the insert. Bookings for different providers do
not wait on each other.
"""

import asyncio
import logging
import weakref
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.booking.conflicts import has_conflict
from app.booking.errors import (
    BookingTimeout,
    DownstreamSideEffectFailure,
    InvalidInput,
    PersistenceFailure,
    SlotUnavailable,
)
from app.booking.slots import Slot, find_slot
from app.core.config import Settings, settings as default_settings
from app.core.logging import booking_logger
from app.models.scheduling import Appointment, AppointmentStatus
from app.services.availability import AvailabilityContext, AvailabilityService
from app.services.customers import CustomerDirectory, CustomerIdentity
from app.services.events import (
    BookingCreatedEvent,
    BookingEventDispatcher,
    build_default_dispatcher,
)
from app.services.ledger import AppointmentLedger
from app.utils.time import parse_iso_date, parse_time_of_day, utc_now

logger = logging.getLogger(__name__)

SLOT_UNAVAILABLE_MESSAGE = (
    "This time slot is no longer available. Please refresh availability and choose another time."
)


@dataclass(frozen=True)
class BookingRequest:
    """A customer's request to book one slot."""

    service_id: int
    provider_id: int
    date: str
    time: str
    customer: CustomerIdentity
    notes: str | None = None


@dataclass
class BookingResult:
    """Outcome of a committed booking."""

    appointment_id: int
    status: AppointmentStatus
    booking_date: date
    start_time: time
    end_time: time
    customer_id: int
    event: BookingCreatedEvent
    side_effect_failures: list[DownstreamSideEffectFailure] = field(default_factory=list)


class ProviderLockRegistry:
    """One asyncio.Lock per provider id.

    Locks are held weakly and disappear once no booking references them.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def lock_for(self, provider_id: int) -> asyncio.Lock:
        lock = self._locks.get(provider_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[provider_id] = lock
        return lock


# Process-wide registry for coordinators built without their own
provider_locks = ProviderLockRegistry()


class BookingCoordinator:
    """Validates, re-checks and commits bookings."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: BookingEventDispatcher | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
        locks: ProviderLockRegistry | None = None,
    ):
        self.session_factory = session_factory
        self.dispatcher = dispatcher or build_default_dispatcher(session_factory)
        self.settings = settings or default_settings
        self.clock = clock
        self.locks = locks if locks is not None else provider_locks

    async def book(self, request: BookingRequest) -> BookingResult:
        """Book a slot.

        Raises:
            InvalidInput: Malformed request or inactive service/provider
            SlotUnavailable: Slot not offered, or taken by a concurrent booking
            BookingTimeout: Critical section exceeded booking_timeout_seconds
            PersistenceFailure: Storage error while writing the appointment
        """
        booking_date, start_time = self._parse_request(request)

        ctx, slot, customer_id = await self._validate(request, booking_date, start_time)

        try:
            appointment = await asyncio.wait_for(
                self._reserve(ctx, slot, booking_date, customer_id, request.notes),
                timeout=self.settings.booking_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            booking_logger.log(
                action="booking_timeout",
                provider_id=request.provider_id,
                metadata={"date": request.date, "time": request.time},
            )
            raise BookingTimeout(
                f"Booking for provider {request.provider_id} timed out, please retry"
            ) from exc

        booking_logger.log(
            action="booking_committed",
            provider_id=appointment.provider_id,
            appointment_id=appointment.id,
            metadata={
                "service_id": appointment.service_id,
                "date": booking_date.isoformat(),
                "time": start_time.strftime("%H:%M"),
            },
        )

        event = BookingCreatedEvent(
            appointment_id=appointment.id,
            service_id=appointment.service_id,
            provider_id=appointment.provider_id,
            customer_id=customer_id,
            booking_date=booking_date,
            start_time=appointment.start_time,
            price=ctx.service.price,
            customer=request.customer,
        )
        failures = await self.dispatcher.dispatch(event)

        return BookingResult(
            appointment_id=appointment.id,
            status=AppointmentStatus(appointment.status),
            booking_date=booking_date,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            customer_id=customer_id,
            event=event,
            side_effect_failures=failures,
        )

    async def retry_side_effects(self, result: BookingResult) -> list[DownstreamSideEffectFailure]:
        """Re-run the side effects that failed for ``result``.

        Returns the failures that remain; ``result`` is updated in place.
        """
        if not result.side_effect_failures:
            return []
        names = [failure.handler for failure in result.side_effect_failures]
        result.side_effect_failures = await self.dispatcher.dispatch(result.event, only=names)
        return result.side_effect_failures

    def _parse_request(self, request: BookingRequest) -> tuple[date, time]:
        if not isinstance(request.service_id, int) or request.service_id <= 0:
            raise InvalidInput("service_id must be a positive integer")
        if not isinstance(request.provider_id, int) or request.provider_id <= 0:
            raise InvalidInput("provider_id must be a positive integer")

        customer = request.customer
        if not (customer.first_name and customer.last_name and customer.email):
            raise InvalidInput("first_name, last_name and email are required")

        try:
            booking_date = parse_iso_date(request.date)
            start_time = parse_time_of_day(request.time)
        except ValueError as exc:
            raise InvalidInput(str(exc)) from exc
        return booking_date, start_time

    async def _validate(
        self,
        request: BookingRequest,
        booking_date: date,
        start_time: time,
    ) -> tuple[AvailabilityContext, Slot, int]:
        """Catalog checks, slot offer check and customer resolution."""
        async with self.session_factory() as session:
            availability = AvailabilityService(session, self.settings, self.clock)
            ctx = await availability.load_context(request.service_id, request.provider_id)

            closed = await availability.catalog.get_closed_dates(
                ctx.provider.id, booking_date, booking_date
            )
            candidates = availability.candidate_slots(
                ctx, booking_date, self.clock(), closed=booking_date in closed
            )
            slot = find_slot(candidates, start_time)
            if slot is None:
                booking_logger.log(
                    action="booking_rejected",
                    provider_id=request.provider_id,
                    metadata={"reason": "not_offered", "date": request.date, "time": request.time},
                )
                raise SlotUnavailable(SLOT_UNAVAILABLE_MESSAGE)

            try:
                customer, _ = await CustomerDirectory(session).get_or_create(request.customer)
            except SQLAlchemyError as exc:
                logger.exception("Failed to resolve booking customer")
                raise PersistenceFailure("Could not record customer details") from exc

        return ctx, slot, customer.id

    async def _reserve(
        self,
        ctx: AvailabilityContext,
        slot: Slot,
        booking_date: date,
        customer_id: int,
        notes: str | None,
    ) -> Appointment:
        """Re-check and insert inside the provider's critical section."""
        provider_id = ctx.provider.id

        async with self.locks.lock_for(provider_id):
            async with self.session_factory() as session:
                try:
                    async with session.begin():
                        ledger = AppointmentLedger(session)
                        await ledger.lock_provider(provider_id)

                        busy = await ledger.busy_windows(provider_id, booking_date, ctx.tz)
                        if has_conflict(slot.occupied, busy):
                            booking_logger.log(
                                action="booking_rejected",
                                provider_id=provider_id,
                                metadata={
                                    "reason": "conflict",
                                    "date": booking_date.isoformat(),
                                    "time": slot.start.strftime("%H:%M"),
                                },
                            )
                            raise SlotUnavailable(SLOT_UNAVAILABLE_MESSAGE)

                        appointment = await ledger.insert(
                            service_id=ctx.service.id,
                            provider_id=provider_id,
                            customer_id=customer_id,
                            booking_date=booking_date,
                            start_time=slot.start.time(),
                            end_time=slot.end.time(),
                            customer_notes=notes,
                        )
                except IntegrityError as exc:
                    booking_logger.log(
                        action="booking_rejected",
                        provider_id=provider_id,
                        metadata={"reason": "integrity", "date": booking_date.isoformat()},
                    )
                    raise SlotUnavailable(SLOT_UNAVAILABLE_MESSAGE) from exc
                except SQLAlchemyError as exc:
                    logger.exception(f"Failed to write appointment for provider {provider_id}")
                    raise PersistenceFailure("Could not save the appointment") from exc

        return appointment
