"""
Listing model: a rentable room/PG/apartment and its unit inventory.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from studentnest.models.base import TimestampModel

__all__ = ["Listing"]


class Listing(TimestampModel):
    """
    Rentable unit with a base price and an available-unit counter.

    available_rooms is only ever changed through the conditional updates
    in ListingRepository, never by assigning the attribute.
    """

    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint("available_rooms >= 0", name="ck_listing_available_non_negative"),
        CheckConstraint("available_rooms <= total_rooms", name="ck_listing_available_within_total"),
        CheckConstraint("price > 0", name="ck_listing_price_positive"),
    )

    owner_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="Owner user id from the external user store",
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Monthly rent",
    )

    security_deposit: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
    )

    maintenance_charges: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
    )

    total_rooms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Configured number of units",
    )

    available_rooms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Units still bookable",
    )

    is_available: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, available={self.available_rooms}/{self.total_rooms})>"
