"""
Listing repository: availability reads and atomic inventory counters.
"""

from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from studentnest.models.listing import Listing
from studentnest.repositories.base_repository import BaseRepository


class ListingRepository(BaseRepository[Listing]):
    """
    Inventory mutations are single conditional UPDATE statements so the
    database, not the application, serializes concurrent reservations.
    """

    def __init__(self, db: Session):
        super().__init__(Listing, db)

    def get_availability(self, listing_id: str) -> Optional[Listing]:
        """Re-read the listing row from the database, bypassing the identity map."""
        return self.find_by_id_fresh(listing_id)

    def reserve_unit(self, listing_id: str) -> bool:
        """
        Decrement available_rooms by one iff at least one unit is left.

        Returns:
            True when a unit was taken, False when none was available
        """
        result = self.db.execute(
            update(Listing)
            .where(Listing.id == listing_id, Listing.available_rooms > 0)
            .values(
                available_rooms=Listing.available_rooms - 1,
                is_available=Listing.available_rooms > 1,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def release_unit(self, listing_id: str) -> bool:
        """
        Increment available_rooms by one, never above total_rooms.

        Returns:
            True when a unit was returned, False when the listing was already full
        """
        result = self.db.execute(
            update(Listing)
            .where(Listing.id == listing_id, Listing.available_rooms < Listing.total_rooms)
            .values(
                available_rooms=Listing.available_rooms + 1,
                is_available=True,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
