"""
Enumerations shared by the persisted models and the API schemas.
"""

import enum


class NegotiationStatus(str, enum.Enum):
    """Negotiation lifecycle status."""
    PENDING = "pending"
    COUNTERED = "countered"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"

    @classmethod
    def open_statuses(cls):
        return (cls.PENDING, cls.COUNTERED)

    @classmethod
    def terminal_statuses(cls):
        return (cls.ACCEPTED, cls.REJECTED, cls.WITHDRAWN)

    @property
    def is_terminal(self) -> bool:
        return self in self.terminal_statuses()


class NegotiationAction(str, enum.Enum):
    """Owner responses to a negotiation."""
    ACCEPT = "accept"
    REJECT = "reject"
    COUNTER = "counter"


class BookingStatus(str, enum.Enum):
    """Booking lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"

    @classmethod
    def occupying_statuses(cls):
        """Statuses that count towards the one-active-booking rule."""
        return (cls.PENDING, cls.CONFIRMED, cls.ACTIVE)


class PaymentStatus(str, enum.Enum):
    """Payment state recorded on a booking."""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    FAILED = "failed"


class PaymentMethod(str, enum.Enum):
    ONLINE = "online"
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"


class TransactionStatus(str, enum.Enum):
    """Gateway transaction status."""
    CREATED = "created"
    CAPTURED = "captured"
    FAILED = "failed"


class NotificationKind(str, enum.Enum):
    NEGOTIATION_PROPOSED = "negotiation_proposed"
    NEGOTIATION_ACCEPTED = "negotiation_accepted"
    NEGOTIATION_REJECTED = "negotiation_rejected"
    NEGOTIATION_COUNTERED = "negotiation_countered"
    NEGOTIATION_WITHDRAWN = "negotiation_withdrawn"
    BOOKING_CREATED = "booking_created"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_DECLINED = "booking_declined"
    PAYMENT_RECEIVED = "payment_received"


class UserRole(str, enum.Enum):
    STUDENT = "student"
    OWNER = "owner"
