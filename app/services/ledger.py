"""Appointment ledger: the only component that reads and writes appointment rows."""

import logging
from datetime import date, time, timedelta
from typing import Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from app.booking.conflicts import appointment_window
from app.booking.errors import AppointmentNotFound, InvalidInput
from app.booking.slots import OccupiedWindow
from app.core.logging import booking_logger
from app.models.scheduling import (
    STATUS_TRANSITIONS,
    Appointment,
    AppointmentStatus,
    Provider,
)

logger = logging.getLogger(__name__)


class AppointmentLedger:
    """Durable store of appointments per provider."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_appointments(
        self,
        provider_id: int,
        start_date: date,
        end_date: date,
    ) -> Sequence[Appointment]:
        """Get non-canceled appointments for a provider in a date range.

        Served by the ``(provider_id, booking_date)`` index.
        """
        result = await self.session.execute(
            select(Appointment)
            .where(
                Appointment.provider_id == provider_id,
                Appointment.booking_date >= start_date,
                Appointment.booking_date <= end_date,
                Appointment.status != AppointmentStatus.CANCELED.value,
            )
            .order_by(Appointment.booking_date, Appointment.start_time)
        )
        return result.scalars().all()

    async def busy_windows_by_date(
        self,
        provider_id: int,
        start_date: date,
        end_date: date,
        tz: ZoneInfo,
    ) -> dict[date, list[OccupiedWindow]]:
        """Occupied windows of live appointments, grouped by booking date."""
        windows: dict[date, list[OccupiedWindow]] = {}
        for appointment in await self.get_active_appointments(provider_id, start_date, end_date):
            windows.setdefault(appointment.booking_date, []).append(
                appointment_window(
                    appointment.booking_date,
                    appointment.start_time,
                    appointment.end_time,
                    appointment.service.buffer_before_minutes,
                    appointment.service.buffer_after_minutes,
                    tz,
                )
            )
        return windows

    async def busy_windows(
        self,
        provider_id: int,
        day: date,
        tz: ZoneInfo,
    ) -> list[OccupiedWindow]:
        """Occupied windows that can reach into ``day``.

        Neighbouring days are included so buffers crossing midnight count.
        """
        by_date = await self.busy_windows_by_date(
            provider_id, day - timedelta(days=1), day + timedelta(days=1), tz
        )
        return [window for windows in by_date.values() for window in windows]

    async def lock_provider(self, provider_id: int) -> None:
        """Take a row lock on the provider for the current transaction.

        Serializes bookings of one provider across processes on backends with
        ``SELECT ... FOR UPDATE``. SQLite has no row locks, so there the
        database write lock is taken instead; call this before any other
        statement in the transaction.
        """
        if self.session.get_bind().dialect.name == "sqlite":
            await self.session.execute(text("BEGIN IMMEDIATE"))
            return

        await self.session.execute(
            select(Provider.id).where(Provider.id == provider_id).with_for_update()
        )

    async def insert(
        self,
        service_id: int,
        provider_id: int,
        customer_id: int,
        booking_date: date,
        start_time: time,
        end_time: time,
        customer_notes: str | None = None,
    ) -> Appointment:
        """Insert a pending appointment and flush it to obtain its id.

        The caller owns the transaction.
        """
        appointment = Appointment(
            service_id=service_id,
            provider_id=provider_id,
            customer_id=customer_id,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            status=AppointmentStatus.PENDING.value,
            customer_notes=customer_notes,
        )
        self.session.add(appointment)
        await self.session.flush()
        return appointment

    async def get(self, appointment_id: int) -> Appointment | None:
        """Get a single appointment by ID."""
        result = await self.session.execute(
            select(Appointment).where(Appointment.id == appointment_id)
        )
        return result.scalar_one_or_none()

    async def list_appointments(
        self,
        provider_id: int | None = None,
        status: AppointmentStatus | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[Appointment]:
        """List appointments, newest first, with optional filters."""
        query = select(Appointment)

        if provider_id is not None:
            query = query.where(Appointment.provider_id == provider_id)
        if status is not None:
            query = query.where(Appointment.status == status.value)
        if date_from is not None:
            query = query.where(Appointment.booking_date >= date_from)
        if date_to is not None:
            query = query.where(Appointment.booking_date <= date_to)

        query = query.order_by(
            Appointment.booking_date.desc(), Appointment.start_time.desc()
        )

        result = await self.session.execute(query)
        return result.scalars().all()

    async def update_status(
        self,
        appointment_id: int,
        new_status: AppointmentStatus,
    ) -> Appointment:
        """Move an appointment to a new status.

        Raises:
            AppointmentNotFound: If the appointment does not exist
            InvalidInput: If the transition is not allowed
        """
        appointment = await self.get(appointment_id)
        if not appointment:
            raise AppointmentNotFound(f"Appointment {appointment_id} not found")

        current = AppointmentStatus(appointment.status)
        if new_status == current:
            return appointment

        allowed = STATUS_TRANSITIONS.get(current, frozenset())
        if new_status not in allowed:
            raise InvalidInput(
                f"Cannot change appointment status from {current.value} to {new_status.value}"
            )

        appointment.status = new_status.value
        await self.session.commit()
        await self.session.refresh(appointment)

        booking_logger.log(
            action="status_changed",
            provider_id=appointment.provider_id,
            appointment_id=appointment.id,
            metadata={"from": current.value, "to": new_status.value},
        )
        return appointment
