"""
Booking repository: active-booking lookups and the guarded payment transition.
"""

from datetime import date, datetime
from typing import Optional, Sequence

from sqlalchemy import update
from sqlalchemy.orm import Session

from studentnest.models.booking import Booking
from studentnest.models.enums import BookingStatus, PaymentMethod, PaymentStatus
from studentnest.repositories.base_repository import BaseRepository, PaginatedResult


class BookingRepository(BaseRepository[Booking]):

    def __init__(self, db: Session):
        super().__init__(Booking, db)

    def find_active_for_student(self, student_id: str, today: date) -> Optional[Booking]:
        """
        Booking that blocks a new one for this student: status pending,
        confirmed or active, move-out still in the future, payment not failed.
        """
        return (
            self.db.query(Booking)
            .filter(
                Booking.student_id == student_id,
                Booking.status.in_(BookingStatus.occupying_statuses()),
                Booking.move_out_date > today,
                Booking.payment_status != PaymentStatus.FAILED,
            )
            .order_by(Booking.created_at.desc())
            .first()
        )

    def list_for_user(
        self,
        user_id: str,
        as_owner: bool = False,
        statuses: Optional[Sequence[BookingStatus]] = None,
        page: int = 1,
        limit: int = 10,
    ) -> PaginatedResult[Booking]:
        column = Booking.owner_id if as_owner else Booking.student_id
        query = self.db.query(Booking).filter(column == user_id)
        if statuses:
            query = query.filter(Booking.status.in_(list(statuses)))
        query = query.order_by(Booking.created_at.desc())
        return self.paginate_query(query, page=page, limit=limit)

    def confirm_if_pending(
        self,
        booking_id: str,
        confirmed_at: datetime,
        payment_method: PaymentMethod = PaymentMethod.ONLINE,
    ) -> bool:
        """
        Move a booking from pending to confirmed/paid in one conditional write.

        Returns:
            True only for the call that performed the transition
        """
        result = self.db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == BookingStatus.PENDING)
            .values(
                status=BookingStatus.CONFIRMED,
                payment_status=PaymentStatus.PAID,
                payment_method=payment_method,
                confirmed_at=confirmed_at,
                updated_at=confirmed_at,
                version_id=Booking.version_id + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
