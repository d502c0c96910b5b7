"""Tests for the appointment ledger: queries, status transitions and constraints."""

from datetime import time
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.booking.errors import AppointmentNotFound, InvalidInput
from app.models.scheduling import STATUS_TRANSITIONS, AppointmentStatus
from app.services.ledger import AppointmentLedger
from conftest import MONDAY, TUESDAY

NEW_YORK = ZoneInfo("America/New_York")


class TestActiveAppointments:
    """Reads used by availability and the booking re-check."""

    @pytest.mark.asyncio
    async def test_excludes_canceled(
        self, async_session: AsyncSession, consultation, provider, customer, make_appointment
    ) -> None:
        await make_appointment(consultation, provider, customer, MONDAY, time(9), time(10))
        await make_appointment(
            consultation,
            provider,
            customer,
            MONDAY,
            time(10),
            time(11),
            status=AppointmentStatus.CANCELED,
        )

        appointments = await AppointmentLedger(async_session).get_active_appointments(
            provider.id, MONDAY, MONDAY
        )

        assert [a.start_time for a in appointments] == [time(9)]

    @pytest.mark.asyncio
    async def test_busy_windows_grouped_by_date(
        self, async_session: AsyncSession, consultation, provider, customer, make_appointment
    ) -> None:
        await make_appointment(consultation, provider, customer, MONDAY, time(9), time(10))
        await make_appointment(consultation, provider, customer, TUESDAY, time(11), time(12))

        by_date = await AppointmentLedger(async_session).busy_windows_by_date(
            provider.id, MONDAY, TUESDAY, NEW_YORK
        )

        assert set(by_date) == {MONDAY, TUESDAY}
        assert by_date[TUESDAY][0].start.time() == time(11)

    @pytest.mark.asyncio
    async def test_busy_windows_include_neighbouring_days(
        self, async_session: AsyncSession, consultation, provider, customer, make_appointment
    ) -> None:
        await make_appointment(consultation, provider, customer, MONDAY, time(16), time(17))

        windows = await AppointmentLedger(async_session).busy_windows(
            provider.id, TUESDAY, NEW_YORK
        )

        assert len(windows) == 1


class TestStatusTransitions:
    """Lifecycle changes after booking."""

    @pytest.mark.asyncio
    async def test_pending_to_approved_to_completed(
        self, async_session: AsyncSession, consultation, provider, customer, make_appointment
    ) -> None:
        appointment = await make_appointment(
            consultation, provider, customer, MONDAY, time(9), time(10)
        )
        ledger = AppointmentLedger(async_session)

        approved = await ledger.update_status(appointment.id, AppointmentStatus.APPROVED)
        assert approved.status == AppointmentStatus.APPROVED.value

        completed = await ledger.update_status(appointment.id, AppointmentStatus.COMPLETED)
        assert completed.status == AppointmentStatus.COMPLETED.value

    @pytest.mark.asyncio
    async def test_terminal_status_cannot_change(
        self, async_session: AsyncSession, consultation, provider, customer, make_appointment
    ) -> None:
        appointment = await make_appointment(
            consultation,
            provider,
            customer,
            MONDAY,
            time(9),
            time(10),
            status=AppointmentStatus.CANCELED,
        )

        with pytest.raises(InvalidInput):
            await AppointmentLedger(async_session).update_status(
                appointment.id, AppointmentStatus.APPROVED
            )

    @pytest.mark.asyncio
    async def test_same_status_is_noop(
        self, async_session: AsyncSession, consultation, provider, customer, make_appointment
    ) -> None:
        appointment = await make_appointment(
            consultation, provider, customer, MONDAY, time(9), time(10)
        )

        result = await AppointmentLedger(async_session).update_status(
            appointment.id, AppointmentStatus.PENDING
        )

        assert result.status == AppointmentStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_unknown_appointment(self, async_session: AsyncSession) -> None:
        with pytest.raises(AppointmentNotFound):
            await AppointmentLedger(async_session).update_status(
                12345, AppointmentStatus.CANCELED
            )

    def test_terminal_statuses_have_no_transitions(self) -> None:
        for status in (
            AppointmentStatus.CANCELED,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.NO_SHOW,
        ):
            assert status not in STATUS_TRANSITIONS


class TestListAppointments:
    """Filtering for the appointments endpoint."""

    @pytest.mark.asyncio
    async def test_filters(
        self, async_session: AsyncSession, consultation, provider, customer, make_appointment
    ) -> None:
        await make_appointment(consultation, provider, customer, MONDAY, time(9), time(10))
        await make_appointment(
            consultation,
            provider,
            customer,
            TUESDAY,
            time(9),
            time(10),
            status=AppointmentStatus.APPROVED,
        )
        ledger = AppointmentLedger(async_session)

        everything = await ledger.list_appointments(provider_id=provider.id)
        approved = await ledger.list_appointments(status=AppointmentStatus.APPROVED)
        monday_only = await ledger.list_appointments(date_from=MONDAY, date_to=MONDAY)

        assert [a.booking_date for a in everything] == [TUESDAY, MONDAY]
        assert [a.booking_date for a in approved] == [TUESDAY]
        assert [a.booking_date for a in monday_only] == [MONDAY]


class TestStorageConstraint:
    """The partial unique index on live appointments."""

    @pytest.mark.asyncio
    async def test_duplicate_live_start_rejected(
        self, async_session: AsyncSession, consultation, provider, customer, make_appointment
    ) -> None:
        await make_appointment(consultation, provider, customer, MONDAY, time(9), time(10))

        with pytest.raises(IntegrityError):
            await make_appointment(consultation, provider, customer, MONDAY, time(9), time(10))

    @pytest.mark.asyncio
    async def test_canceled_row_does_not_block(
        self, async_session: AsyncSession, consultation, provider, customer, make_appointment
    ) -> None:
        await make_appointment(
            consultation,
            provider,
            customer,
            MONDAY,
            time(9),
            time(10),
            status=AppointmentStatus.CANCELED,
        )

        appointment = await make_appointment(
            consultation, provider, customer, MONDAY, time(9), time(10)
        )

        assert appointment.id is not None
