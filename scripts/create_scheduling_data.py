"""Create demo scheduling data (services, a provider and weekly working hours).

Usage:
    python scripts/create_scheduling_data.py [--timezone Europe/London]
"""

import argparse
import asyncio
from datetime import time
from decimal import Decimal

from sqlalchemy import select

from app.db.init_db import create_tables
from app.db.session import AsyncSessionLocal, engine
from app.models.scheduling import DayOfWeek, Provider, Service, WorkingInterval

DEMO_SERVICES = [
    {
        "name": "Consultation",
        "description": "First meeting to scope the work",
        "duration_minutes": 60,
        "buffer_before_minutes": 0,
        "buffer_after_minutes": 15,
        "price": Decimal("0.00"),
    },
    {
        "name": "Follow-up Session",
        "description": "Regular session",
        "duration_minutes": 45,
        "buffer_before_minutes": 0,
        "buffer_after_minutes": 15,
        "price": Decimal("80.00"),
    },
]

# Monday-Friday, split around lunch
WEEKDAY_HOURS = [(time(9, 0), time(12, 0)), (time(13, 0), time(17, 0))]


async def create_scheduling_data(timezone_name: str) -> None:
    """Create demo services, a provider and working intervals if missing."""
    await create_tables(engine)

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(Service).limit(1))
        if result.scalar_one_or_none():
            print("Services already exist, skipping...")
        else:
            for data in DEMO_SERVICES:
                session.add(Service(**data))
            print(f"Created {len(DEMO_SERVICES)} services")

        result = await session.execute(
            select(Provider).where(Provider.email == "provider@example.com")
        )
        provider = result.scalar_one_or_none()

        if not provider:
            provider = Provider(
                name="Demo Provider",
                email="provider@example.com",
                timezone=timezone_name,
            )
            session.add(provider)
            await session.flush()

            intervals_created = 0
            for weekday in (
                DayOfWeek.MONDAY,
                DayOfWeek.TUESDAY,
                DayOfWeek.WEDNESDAY,
                DayOfWeek.THURSDAY,
                DayOfWeek.FRIDAY,
            ):
                for start, end in WEEKDAY_HOURS:
                    session.add(
                        WorkingInterval(
                            provider_id=provider.id,
                            weekday=weekday.value,
                            start_time=start,
                            end_time=end,
                        )
                    )
                    intervals_created += 1
            print(f"Created provider {provider.id} with {intervals_created} working intervals")
        else:
            print(f"Provider already exists: {provider.id}")

        await session.commit()

        print("\n=== Summary ===")
        print(f"Provider ID: {provider.id}")
        print("Scheduling data setup complete!")

    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--timezone", default="America/New_York")
    args = parser.parse_args()
    asyncio.run(create_scheduling_data(args.timezone))
