"""
Payment order and verification schemas.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from studentnest.models.enums import BookingStatus, TransactionStatus
from studentnest.schemas.base import BaseSchema

__all__ = [
    "PaymentOrderCreate",
    "PaymentOrderResponse",
    "PaymentVerificationRequest",
    "PaymentVerificationResponse",
]


class PaymentOrderCreate(BaseSchema):
    """Order already created at the gateway, registered against a booking."""

    order_id: str = Field(..., min_length=1, max_length=100)
    amount: int = Field(..., gt=0, description="Amount in paise")
    currency: str = Field("INR", min_length=3, max_length=3)
    booking_id: Optional[str] = None


class PaymentOrderResponse(BaseSchema):
    transaction_id: str = Field(..., validation_alias="id")
    order_id: str
    amount: int
    currency: str
    status: TransactionStatus


class PaymentVerificationRequest(BaseSchema):
    order_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)
    booking_id: Optional[str] = None


class PaymentVerificationResponse(BaseSchema):
    transaction_id: str
    order_id: str
    payment_id: str
    status: TransactionStatus
    amount: int
    currency: str
    booking_id: Optional[str] = None
    booking_status: Optional[BookingStatus] = None
    booking_confirmed: bool = Field(
        False,
        description="True only for the call that moved the booking out of pending",
    )
