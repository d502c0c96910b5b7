"""Availability queries: free slots for a date and open dates for a month.

Reads are side-effect free and re-read the ledger on every call; nothing is
cached across requests.
"""

import calendar
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Sequence
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from app.booking.conflicts import filter_conflicts
from app.booking.errors import InvalidInput
from app.booking.slots import OccupiedWindow, ServiceTiming, Slot, find_slot, generate_slots
from app.core.config import Settings, settings as default_settings
from app.models.scheduling import Provider, Service
from app.services.catalog import CatalogReader, provider_timezone
from app.services.ledger import AppointmentLedger
from app.utils.time import local_now, parse_iso_date, parse_month, parse_time_of_day, utc_now


@dataclass
class AvailabilityContext:
    """Catalog data needed to compute slots for one (service, provider) pair."""

    service: Service
    provider: Provider
    timing: ServiceTiming
    tz: ZoneInfo
    weekly_hours: dict[int, list[tuple[time, time]]]


def _coerce_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc


class AvailabilityService:
    """Composes slot generation and conflict filtering over live ledger data."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session = session
        self.settings = settings or default_settings
        self.clock = clock
        self.catalog = CatalogReader(session)
        self.ledger = AppointmentLedger(session)

    async def load_context(self, service_id: int, provider_id: int) -> AvailabilityContext:
        """Load and validate service, provider and weekly hours.

        Raises:
            InvalidInput: If the service or provider is missing or inactive
        """
        service = await self.catalog.get_active_service(service_id)
        provider = await self.catalog.get_active_provider(provider_id)

        return AvailabilityContext(
            service=service,
            provider=provider,
            timing=ServiceTiming.from_service(service),
            tz=provider_timezone(provider),
            weekly_hours=await self.catalog.get_weekly_hours(provider.id),
        )

    def candidate_slots(
        self,
        ctx: AvailabilityContext,
        day: date,
        now: datetime,
        closed: bool = False,
    ) -> list[Slot]:
        """Slot Generator output for ``day`` before conflict filtering."""
        if closed:
            return []
        return generate_slots(
            timing=ctx.timing,
            intervals=ctx.weekly_hours.get(day.weekday(), []),
            day=day,
            tz=ctx.tz,
            now=now,
            granularity_minutes=self.settings.slot_granularity_minutes,
            min_notice_minutes=self.settings.min_booking_notice_minutes,
        )

    async def available_slots_for_dates(
        self,
        ctx: AvailabilityContext,
        dates: Sequence[date],
    ) -> dict[date, list[Slot]]:
        """Free slots for each date, with one ledger query for the whole span."""
        if not dates:
            return {}

        now = self.clock()
        first, last = min(dates), max(dates)
        closed = await self.catalog.get_closed_dates(ctx.provider.id, first, last)
        busy_by_date = await self.ledger.busy_windows_by_date(
            ctx.provider.id,
            first - timedelta(days=1),
            last + timedelta(days=1),
            ctx.tz,
        )

        result: dict[date, list[Slot]] = {}
        for day in dates:
            candidates = self.candidate_slots(ctx, day, now, closed=day in closed)
            if not candidates:
                result[day] = []
                continue
            busy: list[OccupiedWindow] = []
            for offset in (-1, 0, 1):
                busy.extend(busy_by_date.get(day + timedelta(days=offset), []))
            result[day] = filter_conflicts(candidates, busy)
        return result

    async def get_available_slots(
        self,
        service_id: int,
        provider_id: int,
        day: date | str,
    ) -> list[dict[str, str]]:
        """Free ``{start, end}`` pairs (``HH:MM``) for a date.

        Returns an empty list when the day is closed, past or fully booked.

        Raises:
            InvalidInput: Malformed date, or missing/inactive service or provider
        """
        booking_date = _coerce_date(day)
        ctx = await self.load_context(service_id, provider_id)
        slots = await self.available_slots_for_dates(ctx, [booking_date])
        return [slot.as_dict() for slot in slots[booking_date]]

    async def get_available_dates(
        self,
        service_id: int,
        provider_id: int,
        month: str,
    ) -> list[str]:
        """ISO dates in ``month`` (``YYYY-MM``) that have at least one free slot."""
        try:
            year, month_num = parse_month(month)
        except ValueError as exc:
            raise InvalidInput(str(exc)) from exc

        ctx = await self.load_context(service_id, provider_id)

        today = local_now(ctx.tz, self.clock()).date()
        days_in_month = calendar.monthrange(year, month_num)[1]
        dates = [
            date(year, month_num, day_num)
            for day_num in range(1, days_in_month + 1)
            if date(year, month_num, day_num) >= today
        ]

        slots_by_date = await self.available_slots_for_dates(ctx, dates)
        return [day.isoformat() for day in dates if slots_by_date[day]]

    async def get_next_available_date(
        self,
        service_id: int,
        provider_id: int,
        days_ahead: int | None = None,
    ) -> str | None:
        """First date from today (provider timezone) with a free slot, or None."""
        horizon = (
            days_ahead if days_ahead is not None else self.settings.next_available_days_ahead
        )
        if horizon <= 0:
            raise InvalidInput("days_ahead must be positive")

        ctx = await self.load_context(service_id, provider_id)
        today = local_now(ctx.tz, self.clock()).date()
        dates = [today + timedelta(days=offset) for offset in range(horizon)]

        slots_by_date = await self.available_slots_for_dates(ctx, dates)
        for day in dates:
            if slots_by_date[day]:
                return day.isoformat()
        return None

    async def is_slot_available(
        self,
        service_id: int,
        provider_id: int,
        day: date | str,
        start: time | str,
    ) -> bool:
        """Whether ``start`` is one of the free slot starts on ``day``."""
        booking_date = _coerce_date(day)
        if isinstance(start, str):
            try:
                start = parse_time_of_day(start)
            except ValueError as exc:
                raise InvalidInput(str(exc)) from exc

        ctx = await self.load_context(service_id, provider_id)
        slots = await self.available_slots_for_dates(ctx, [booking_date])
        return find_slot(slots[booking_date], start) is not None
