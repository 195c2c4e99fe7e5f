"""
Inventory guard: the only writer of a listing's available-unit counter.

Reservations run inside the caller's unit of work; the guard never
commits. The decrement itself is a conditional UPDATE so two requests
racing for the last unit cannot both succeed.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from studentnest.core.exceptions import (
    ActiveBookingExistsError,
    InvalidStateError,
    ListingNotFoundError,
    RoomUnavailableError,
)
from studentnest.core.logging import get_logger
from studentnest.models.listing import Listing
from studentnest.repositories.booking_repository import BookingRepository
from studentnest.repositories.listing_repository import ListingRepository

logger = get_logger(__name__)


@dataclass
class ReservationToken:
    """Proof that one unit of a listing was taken; good for one booking."""

    listing_id: str
    student_id: str
    reserved_at: datetime
    listing: Listing
    _consumed: bool = field(default=False, repr=False)

    @property
    def consumed(self) -> bool:
        return self._consumed

    def consume(self) -> None:
        if self._consumed:
            raise InvalidStateError("reuse", "consumed reservation")
        self._consumed = True


class InventoryGuard:
    """Availability check, active-booking check and atomic reserve/release."""

    def __init__(self, db: Session):
        self.listings = ListingRepository(db)
        self.bookings = BookingRepository(db)

    def check_and_reserve(self, listing_id: str, student_id: str, now: datetime) -> ReservationToken:
        """
        Take one unit of the listing for this student.

        Raises:
            ListingNotFoundError: listing does not exist
            RoomUnavailableError: no unit left, including losing a race for the last one
            ActiveBookingExistsError: student already holds a blocking booking
        """
        listing = self.listings.get_availability(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        if listing.available_rooms <= 0:
            raise RoomUnavailableError(listing_id)

        self.ensure_no_active_booking(student_id, now.date())

        if not self.listings.reserve_unit(listing_id):
            logger.info(
                "Lost race for last unit",
                extra={"listing_id": listing_id, "student_id": student_id},
            )
            raise RoomUnavailableError(listing_id)

        listing = self.listings.get_availability(listing_id)
        logger.info(
            "Reserved listing unit",
            extra={
                "listing_id": listing_id,
                "student_id": student_id,
                "available_rooms": listing.available_rooms,
            },
        )
        return ReservationToken(
            listing_id=listing_id,
            student_id=student_id,
            reserved_at=now,
            listing=listing,
        )

    def ensure_no_active_booking(self, student_id: str, today: date) -> None:
        active = self.bookings.find_active_for_student(student_id, today)
        if active is not None:
            raise ActiveBookingExistsError(active.id, active.move_out_date)

    def release(self, listing_id: str) -> bool:
        """Return one unit, never above total_rooms."""
        released = self.listings.release_unit(listing_id)
        if released:
            logger.info("Released listing unit", extra={"listing_id": listing_id})
        else:
            logger.warning(
                "Release skipped: listing already at full availability",
                extra={"listing_id": listing_id},
            )
        return released

    def current_availability(self, listing_id: str) -> Optional[int]:
        listing = self.listings.get_availability(listing_id)
        return listing.available_rooms if listing else None
