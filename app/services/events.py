"""Post-commit booking events and their best-effort handlers.

Handlers run only after the appointment row is durably committed. A failing
handler is logged and reported, never propagated, so it cannot undo the
booking; failed handlers can be re-run by name.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.booking.errors import DownstreamSideEffectFailure
from app.core.logging import booking_logger
from app.services.customers import CustomerDirectory, CustomerIdentity
from app.services.payments import PaymentService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingCreatedEvent:
    """Emitted once per committed booking."""

    appointment_id: int
    service_id: int
    provider_id: int
    customer_id: int
    booking_date: date
    start_time: time
    price: Decimal
    customer: CustomerIdentity | None = None

    name = "booking.created"


SideEffectHandler = Callable[[BookingCreatedEvent], Awaitable[None]]


class BookingEventDispatcher:
    """Runs named side-effect handlers for a booking event, in registration order."""

    def __init__(self) -> None:
        self._handlers: dict[str, SideEffectHandler] = {}

    def register(self, name: str, handler: SideEffectHandler) -> None:
        """Register (or replace) a handler under ``name``."""
        self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        """Remove a handler if registered."""
        self._handlers.pop(name, None)

    @property
    def handler_names(self) -> list[str]:
        return list(self._handlers)

    async def dispatch(
        self,
        event: BookingCreatedEvent,
        only: Iterable[str] | None = None,
    ) -> list[DownstreamSideEffectFailure]:
        """Run handlers for ``event``.

        Args:
            event: The committed booking
            only: Restrict to these handler names (used for retries)

        Returns:
            One DownstreamSideEffectFailure per failed handler
        """
        selected = set(only) if only is not None else None
        failures: list[DownstreamSideEffectFailure] = []

        for name, handler in self._handlers.items():
            if selected is not None and name not in selected:
                continue
            try:
                await handler(event)
            except Exception as exc:
                logger.exception(
                    f"Side effect {name} failed for appointment {event.appointment_id}",
                    extra={
                        "action": event.name,
                        "provider_id": event.provider_id,
                        "appointment_id": event.appointment_id,
                    },
                )
                failures.append(DownstreamSideEffectFailure(name, event.appointment_id, exc))

        return failures


def build_default_dispatcher(
    session_factory: async_sessionmaker[AsyncSession],
) -> BookingEventDispatcher:
    """Dispatcher with the standard post-commit handlers.

    - ``customer_profile``: refresh name/phone of the booking customer
    - ``payment_record``: pending payment for priced services
    - ``notifications``: hand the event to the notification channel
    """
    dispatcher = BookingEventDispatcher()

    async def refresh_customer_profile(event: BookingCreatedEvent) -> None:
        if event.customer is None:
            return
        async with session_factory() as session:
            await CustomerDirectory(session).refresh_profile(event.customer_id, event.customer)

    async def record_payment(event: BookingCreatedEvent) -> None:
        if event.price <= 0:
            return
        async with session_factory() as session:
            await PaymentService(session).create_pending_payment(event.appointment_id, event.price)

    async def notify(event: BookingCreatedEvent) -> None:
        booking_logger.log(
            action=event.name,
            provider_id=event.provider_id,
            appointment_id=event.appointment_id,
            metadata={
                "service_id": event.service_id,
                "customer_id": event.customer_id,
                "date": event.booking_date.isoformat(),
                "time": event.start_time.strftime("%H:%M"),
            },
        )

    dispatcher.register("customer_profile", refresh_customer_profile)
    dispatcher.register("payment_record", record_payment)
    dispatcher.register("notifications", notify)
    return dispatcher
