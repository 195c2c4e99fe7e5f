"""
Persisted models for the negotiation, booking and payment flows.
"""

from studentnest.models.base import BaseModel, TimestampModel
from studentnest.models.booking import Booking
from studentnest.models.enums import (
    BookingStatus,
    NegotiationAction,
    NegotiationStatus,
    NotificationKind,
    PaymentMethod,
    PaymentStatus,
    TransactionStatus,
    UserRole,
)
from studentnest.models.listing import Listing
from studentnest.models.negotiation import Negotiation
from studentnest.models.payment_transaction import PaymentTransaction
from studentnest.models.price_ledger import PriceLedger

__all__ = [
    "BaseModel",
    "TimestampModel",
    "Booking",
    "BookingStatus",
    "Listing",
    "Negotiation",
    "NegotiationAction",
    "NegotiationStatus",
    "NotificationKind",
    "PaymentMethod",
    "PaymentStatus",
    "PaymentTransaction",
    "PriceLedger",
    "TransactionStatus",
    "UserRole",
]
