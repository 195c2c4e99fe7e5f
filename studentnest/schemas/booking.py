"""
Booking request/response schemas.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from studentnest.models.enums import BookingStatus, PaymentMethod, PaymentStatus
from studentnest.schemas.base import BaseDBSchema, BaseSchema, PaginationInfo

__all__ = [
    "BookingCreate",
    "BookingStatusUpdate",
    "BookingNotesUpdate",
    "BookingResponse",
    "BookingList",
]


class BookingCreate(BaseSchema):
    """Student booking request, optionally tied to an accepted negotiation."""

    listing_id: str = Field(..., min_length=1)
    move_in_date: date
    duration: int = Field(..., ge=1, description="Stay length in months")
    negotiation_id: Optional[str] = None
    security_deposit: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    maintenance_charges: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    notes: Optional[str] = Field(None, max_length=1000)


class BookingStatusUpdate(BaseSchema):
    """Owner status change."""

    status: BookingStatus
    cancellation_reason: Optional[str] = Field(None, max_length=500)


class BookingNotesUpdate(BaseSchema):
    """Caller's own note on a booking; blank clears it."""

    notes: Optional[str] = Field(None, max_length=1000)


class BookingResponse(BaseDBSchema):
    listing_id: str
    student_id: str
    owner_id: str
    negotiation_id: Optional[str] = None
    move_in_date: date
    move_out_date: date
    duration: int
    monthly_rent: Decimal
    security_deposit: Decimal
    maintenance_charges: Decimal
    total_amount: Decimal
    status: BookingStatus
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    student_notes: Optional[str] = None
    owner_notes: Optional[str] = None


class BookingList(BaseSchema):
    bookings: List[BookingResponse]
    pagination: PaginationInfo
