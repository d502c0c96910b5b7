"""Pytest configuration and fixtures."""

import os

# Must be set before the app (and its settings/engine) is imported
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.api.deps import (
    DbSession,
    SessionFactory,
    get_availability_service,
    get_booking_coordinator,
)
from app.core.config import Settings
from app.db.base import Base
from app.db.session import get_db, get_session_factory
from app.main import app
from app.models.customer import Customer
from app.models.scheduling import (
    Appointment,
    AppointmentStatus,
    DayOfWeek,
    Provider,
    Service,
    WorkingInterval,
)
from app.services.availability import AvailabilityService
from app.services.booking import BookingCoordinator, ProviderLockRegistry

# Saturday noon UTC; the Monday below is in the future
FIXED_NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)
MONDAY = date(2030, 6, 3)
TUESDAY = date(2030, 6, 4)
SATURDAY = date(2030, 6, 8)


def fixed_clock() -> datetime:
    """Clock used by every test that needs a stable 'now'."""
    return FIXED_NOW


@pytest.fixture
def test_settings() -> Settings:
    """Hourly grid, no notice, short booking timeout."""
    return Settings(
        env="test",
        default_timezone="America/New_York",
        slot_granularity_minutes=60,
        min_booking_notice_minutes=0,
        next_available_days_ahead=30,
        booking_timeout_seconds=2.0,
    )


@pytest.fixture(scope="function")
async def async_engine(tmp_path):
    """Create async test database engine.

    File-backed SQLite with NullPool so concurrent sessions use separate
    connections, as they would against a real server.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture(scope="function")
async def async_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def lock_registry() -> ProviderLockRegistry:
    """Fresh per-provider lock registry so tests never share locks."""
    return ProviderLockRegistry()


@pytest.fixture
def coordinator(
    session_factory: async_sessionmaker[AsyncSession],
    test_settings: Settings,
    lock_registry: ProviderLockRegistry,
) -> BookingCoordinator:
    """Booking coordinator on the test database with a fixed clock."""
    return BookingCoordinator(
        session_factory,
        settings=test_settings,
        clock=fixed_clock,
        locks=lock_registry,
    )


@pytest.fixture(scope="function")
def client(
    session_factory: async_sessionmaker[AsyncSession],
    test_settings: Settings,
) -> Generator[TestClient, None, None]:
    """Create FastAPI test client with overridden dependencies."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    def override_get_session_factory() -> async_sessionmaker[AsyncSession]:
        return session_factory

    def override_availability(session: DbSession) -> AvailabilityService:
        return AvailabilityService(session, test_settings, clock=fixed_clock)

    def override_coordinator(factory: SessionFactory) -> BookingCoordinator:
        return BookingCoordinator(
            factory,
            settings=test_settings,
            clock=fixed_clock,
            locks=ProviderLockRegistry(),
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = override_get_session_factory
    app.dependency_overrides[get_availability_service] = override_availability
    app.dependency_overrides[get_booking_coordinator] = override_coordinator

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
async def consultation(async_session: AsyncSession) -> Service:
    """60-minute service with no buffers and no price."""
    service = Service(
        name="Consultation",
        duration_minutes=60,
        buffer_before_minutes=0,
        buffer_after_minutes=0,
        price=Decimal("0.00"),
        active=True,
    )
    async_session.add(service)
    await async_session.commit()
    await async_session.refresh(service)
    return service


@pytest.fixture
async def provider(async_session: AsyncSession) -> Provider:
    """Active provider in New York."""
    provider = Provider(
        name="Dana Reyes",
        email="dana@example.com",
        timezone="America/New_York",
        active=True,
    )
    async_session.add(provider)
    await async_session.commit()
    await async_session.refresh(provider)
    return provider


@pytest.fixture
async def weekday_hours(async_session: AsyncSession, provider: Provider) -> list[WorkingInterval]:
    """Monday to Friday, 09:00-17:00."""
    intervals = [
        WorkingInterval(
            provider_id=provider.id,
            weekday=weekday.value,
            start_time=time(9, 0),
            end_time=time(17, 0),
        )
        for weekday in (
            DayOfWeek.MONDAY,
            DayOfWeek.TUESDAY,
            DayOfWeek.WEDNESDAY,
            DayOfWeek.THURSDAY,
            DayOfWeek.FRIDAY,
        )
    ]
    async_session.add_all(intervals)
    await async_session.commit()
    return intervals


@pytest.fixture
async def customer(async_session: AsyncSession) -> Customer:
    """Existing customer used for seeded appointments."""
    customer = Customer(
        first_name="Sam",
        last_name="Taylor",
        email="sam@example.com",
    )
    async_session.add(customer)
    await async_session.commit()
    await async_session.refresh(customer)
    return customer


@pytest.fixture
def make_appointment(
    async_session: AsyncSession,
) -> Callable[..., Awaitable[Appointment]]:
    """Factory that writes an appointment row directly to the ledger."""

    async def _make(
        service: Service,
        provider: Provider,
        customer: Customer,
        booking_date: date,
        start: time,
        end: time,
        status: AppointmentStatus = AppointmentStatus.PENDING,
    ) -> Appointment:
        appointment = Appointment(
            service_id=service.id,
            provider_id=provider.id,
            customer_id=customer.id,
            booking_date=booking_date,
            start_time=start,
            end_time=end,
            status=status.value,
        )
        async_session.add(appointment)
        await async_session.commit()
        await async_session.refresh(appointment)
        return appointment

    return _make
