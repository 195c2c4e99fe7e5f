"""
Booking model: an occupancy agreement for one listing unit.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studentnest.models.base import TimestampModel
from studentnest.models.enums import BookingStatus, PaymentMethod, PaymentStatus
from studentnest.models.listing import Listing

__all__ = ["Booking"]


class Booking(TimestampModel):
    """
    Booking created from a listing, optionally through an accepted negotiation.

    Attributes:
        monthly_rent: Negotiated final price, else the listing price
        total_amount: monthly_rent + security_deposit + maintenance_charges
        inventory_reserved: True while this booking holds one listing unit
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("duration >= 1", name="ck_booking_duration_positive"),
        CheckConstraint("move_out_date > move_in_date", name="ck_booking_dates_ordered"),
        Index("ix_booking_student_status", "student_id", "status"),
    )

    listing_id: Mapped[str] = mapped_column(
        ForeignKey("listings.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    negotiation_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("negotiations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    move_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    move_out_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, comment="Months")

    # Financial snapshot (precision: 10, scale: 2)
    monthly_rent: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    security_deposit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    maintenance_charges: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_method: Mapped[Optional[PaymentMethod]] = mapped_column(
        Enum(PaymentMethod),
        nullable=True,
    )

    inventory_reserved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    student_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    listing: Mapped[Listing] = relationship(Listing, lazy="joined")

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, status={self.status.value}, payment={self.payment_status.value})>"
