"""
Gateway payment transaction: one order produced by the payment collaborator.
"""

from typing import Optional

from sqlalchemy import Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from studentnest.models.base import TimestampModel
from studentnest.models.enums import TransactionStatus

__all__ = ["PaymentTransaction"]


class PaymentTransaction(TimestampModel):
    """Order/payment pair reported by the gateway, amount in paise."""

    __tablename__ = "payment_transactions"

    order_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    payment_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    signature: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    amount: Mapped[int] = mapped_column(Integer, nullable=False, comment="Amount in paise")
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")

    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus),
        nullable=False,
        default=TransactionStatus.CREATED,
        index=True,
    )

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    booking_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    error_code: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    error_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<PaymentTransaction(order_id={self.order_id}, status={self.status.value})>"
