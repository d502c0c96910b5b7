"""Read-only access to the service catalog, providers and working hours."""

from collections import defaultdict
from datetime import date, time, timedelta
from typing import Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.booking.errors import InvalidInput
from app.core.config import settings
from app.models.scheduling import DayOff, Provider, Service, WorkingInterval
from app.utils.time import resolve_timezone


class CatalogReader:
    """Query contract over catalog and provider configuration.

    The engine never writes through this class.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_service(self, service_id: int) -> Service | None:
        """Get a service by ID."""
        result = await self.session.execute(
            select(Service).where(Service.id == service_id)
        )
        return result.scalar_one_or_none()

    async def get_active_service(self, service_id: int) -> Service:
        """Get a bookable service or raise InvalidInput."""
        if not isinstance(service_id, int) or service_id <= 0:
            raise InvalidInput("service_id must be a positive integer")

        service = await self.get_service(service_id)
        if not service:
            raise InvalidInput(f"Service {service_id} not found")
        if not service.active:
            raise InvalidInput(f"Service {service_id} is not active")
        return service

    async def get_provider(self, provider_id: int) -> Provider | None:
        """Get a provider by ID."""
        result = await self.session.execute(
            select(Provider).where(Provider.id == provider_id)
        )
        return result.scalar_one_or_none()

    async def get_active_provider(self, provider_id: int) -> Provider:
        """Get an active provider or raise InvalidInput."""
        if not isinstance(provider_id, int) or provider_id <= 0:
            raise InvalidInput("provider_id must be a positive integer")

        provider = await self.get_provider(provider_id)
        if not provider:
            raise InvalidInput(f"Provider {provider_id} not found")
        if not provider.active:
            raise InvalidInput(f"Provider {provider_id} is not active")
        return provider

    async def get_working_intervals(
        self,
        provider_id: int,
        weekday: int | None = None,
    ) -> Sequence[WorkingInterval]:
        """Get active working intervals for a provider, ordered by start time."""
        query = select(WorkingInterval).where(
            WorkingInterval.provider_id == provider_id,
            WorkingInterval.is_active == True,
        )

        if weekday is not None:
            query = query.where(WorkingInterval.weekday == weekday)

        query = query.order_by(WorkingInterval.weekday, WorkingInterval.start_time)

        result = await self.session.execute(query)
        return result.scalars().all()

    async def get_weekly_hours(self, provider_id: int) -> dict[int, list[tuple[time, time]]]:
        """Get working intervals grouped by weekday as ``(start, end)`` pairs."""
        by_weekday: dict[int, list[tuple[time, time]]] = defaultdict(list)
        for interval in await self.get_working_intervals(provider_id):
            by_weekday[interval.weekday].append((interval.start_time, interval.end_time))
        return dict(by_weekday)

    async def get_days_off(
        self,
        provider_id: int,
        start_date: date,
        end_date: date,
    ) -> Sequence[DayOff]:
        """Get day-off ranges that intersect ``[start_date, end_date]``."""
        result = await self.session.execute(
            select(DayOff).where(
                DayOff.provider_id == provider_id,
                DayOff.date_start <= end_date,
                DayOff.date_end >= start_date,
            )
        )
        return result.scalars().all()

    async def get_closed_dates(
        self,
        provider_id: int,
        start_date: date,
        end_date: date,
    ) -> set[date]:
        """Get the dates within ``[start_date, end_date]`` covered by a day off."""
        closed: set[date] = set()
        for day_off in await self.get_days_off(provider_id, start_date, end_date):
            current = max(day_off.date_start, start_date)
            last = min(day_off.date_end, end_date)
            while current <= last:
                closed.add(current)
                current += timedelta(days=1)
        return closed


def provider_timezone(provider: Provider) -> ZoneInfo:
    """Timezone all of a provider's slot arithmetic happens in."""
    return resolve_timezone(provider.timezone, settings.default_timezone)
