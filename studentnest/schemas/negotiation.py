"""
Negotiation request/response schemas.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, model_validator

from studentnest.models.enums import NegotiationStatus, UserRole
from studentnest.schemas.base import BaseDBSchema, BaseSchema, PaginationInfo

__all__ = [
    "NegotiationCreate",
    "NegotiationUpdate",
    "NegotiationResponse",
    "NegotiationDetail",
    "NegotiationList",
]


class NegotiationCreate(BaseSchema):
    """Student's opening offer on a listing."""

    listing_id: str = Field(..., min_length=1, description="Listing being negotiated")
    proposed_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    message: Optional[str] = Field(None, max_length=500)


class NegotiationUpdate(BaseSchema):
    """
    PATCH body: owner accept/reject/counter, student withdraw or
    accept of a counter-offer.
    """

    action: str = Field(..., pattern=r"^(accept|reject|counter|withdraw)$")
    counter_offer: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    owner_response: Optional[str] = Field(None, max_length=500)
    counter_message: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def require_counter_amount(self) -> "NegotiationUpdate":
        if self.action == "counter" and self.counter_offer is None:
            raise ValueError("Valid counter offer amount is required")
        return self


class NegotiationResponse(BaseDBSchema):
    listing_id: str
    student_id: str
    owner_id: str
    original_price: Decimal
    proposed_price: Decimal
    counter_offer: Optional[Decimal] = None
    final_price: Optional[Decimal] = None
    status: NegotiationStatus
    message: Optional[str] = None
    owner_response: Optional[str] = None
    counter_message: Optional[str] = None
    response_date: Optional[datetime] = None
    expires_at: datetime


class NegotiationDetail(NegotiationResponse):
    """Negotiation as seen by one of its two participants."""

    user_role: UserRole
    is_expired: bool
    discount_percentage: int
    savings_amount: Decimal


class NegotiationList(BaseSchema):
    negotiations: List[NegotiationResponse]
    pagination: PaginationInfo
