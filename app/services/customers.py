"""Customer directory: resolves booking identities to customer records."""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.customer import Customer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerIdentity:
    """Identity fields submitted with a booking."""

    first_name: str
    last_name: str
    email: str
    phone: str | None = None

    @property
    def normalized_email(self) -> str:
        return self.email.strip().lower()


class CustomerDirectory:
    """Get-or-create and profile refresh for customers, keyed by email."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Customer | None:
        """Get a customer by (normalized) email."""
        result = await self.session.execute(
            select(Customer).where(Customer.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, identity: CustomerIdentity) -> tuple[Customer, bool]:
        """Return the customer for ``identity``, creating it when missing.

        A concurrent insert of the same email loses on the unique constraint
        and falls back to the winner's row.

        Returns:
            ``(customer, created)``
        """
        existing = await self.get_by_email(identity.email)
        if existing:
            return existing, False

        customer = Customer(
            first_name=identity.first_name,
            last_name=identity.last_name,
            email=identity.normalized_email,
            phone=identity.phone,
        )
        self.session.add(customer)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            existing = await self.get_by_email(identity.email)
            if existing is None:
                raise
            return existing, False

        await self.session.refresh(customer)
        logger.info(f"Created customer {customer.id}")
        return customer, True

    async def refresh_profile(self, customer_id: int, identity: CustomerIdentity) -> bool:
        """Update name and phone from the latest booking.

        Returns:
            True if anything changed
        """
        result = await self.session.execute(
            select(Customer).where(Customer.id == customer_id)
        )
        customer = result.scalar_one_or_none()
        if not customer:
            return False

        changed = False
        for field_name in ("first_name", "last_name", "phone"):
            value = getattr(identity, field_name)
            if value and getattr(customer, field_name) != value:
                setattr(customer, field_name, value)
                changed = True

        if changed:
            await self.session.commit()
        return changed
