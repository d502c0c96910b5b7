"""Payment records for priced services."""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payment import Payment, PaymentStatus

logger = logging.getLogger(__name__)


class PaymentService:
    """Creates the pending payment that follows a committed booking."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_for_appointment(self, appointment_id: int) -> Payment | None:
        """Get the payment record of an appointment."""
        result = await self.session.execute(
            select(Payment).where(Payment.appointment_id == appointment_id)
        )
        return result.scalar_one_or_none()

    async def create_pending_payment(
        self,
        appointment_id: int,
        amount: Decimal,
        gateway: str = "on_site",
    ) -> Payment:
        """Create a pending payment, or return the one already recorded.

        Re-running after a partial failure never creates a second record.
        """
        existing = await self.get_for_appointment(appointment_id)
        if existing:
            return existing

        payment = Payment(
            appointment_id=appointment_id,
            amount=amount,
            status=PaymentStatus.PENDING.value,
            gateway=gateway,
        )
        self.session.add(payment)
        await self.session.commit()
        await self.session.refresh(payment)

        logger.info(f"Recorded pending payment of {amount} for appointment {appointment_id}")
        return payment
