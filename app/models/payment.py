"""Payment records created after a booking commits."""

from decimal import Decimal
from enum import Enum

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class PaymentStatus(str, Enum):
    """Status of a payment record."""

    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class Payment(Base, TimestampMixin):
    """Amount due for an appointment of a priced service."""

    __tablename__ = "payments"

    # One payment per appointment makes the post-commit handler safe to re-run
    appointment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("appointments.id", ondelete="RESTRICT"),
        unique=True,
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        String(20),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    gateway: Mapped[str] = mapped_column(
        String(50),
        default="on_site",
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Payment appointment={self.appointment_id} {self.amount} status={self.status}>"
