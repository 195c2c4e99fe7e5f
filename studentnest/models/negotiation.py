"""
Negotiation model: a price exchange between a student and a listing owner.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studentnest.models.base import TimestampModel
from studentnest.models.enums import NegotiationStatus
from studentnest.models.listing import Listing
from studentnest.models.price_ledger import PriceLedger

__all__ = ["Negotiation"]


class Negotiation(TimestampModel):
    """
    Proposed-price / counter-offer exchange for one listing.

    Status moves only through NegotiationService; version_id makes a
    concurrent second transition on the same row fail instead of
    overwriting the first.
    """

    __tablename__ = "negotiations"
    __table_args__ = (
        CheckConstraint("proposed_price > 0", name="ck_negotiation_proposed_positive"),
        CheckConstraint("proposed_price < original_price", name="ck_negotiation_proposed_below_original"),
        Index("ix_negotiation_student_listing", "student_id", "listing_id"),
    )

    listing_id: Mapped[str] = mapped_column(
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    # Price ledger
    original_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Listing price snapshot at proposal time",
    )
    proposed_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    counter_offer: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    final_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Set only on acceptance",
    )

    status: Mapped[NegotiationStatus] = mapped_column(
        Enum(NegotiationStatus),
        nullable=False,
        default=NegotiationStatus.PENDING,
        index=True,
    )

    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    counter_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    response_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    listing: Mapped[Listing] = relationship(Listing, lazy="joined")

    @property
    def ledger(self) -> PriceLedger:
        return PriceLedger(
            original_price=self.original_price,
            proposed_price=self.proposed_price,
            counter_offer=self.counter_offer,
            final_price=self.final_price,
            expires_at=self.expires_at,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def is_expired(self, now: datetime) -> bool:
        return self.ledger.is_expired(now)

    def __repr__(self) -> str:
        return f"<Negotiation(id={self.id}, status={self.status.value})>"
