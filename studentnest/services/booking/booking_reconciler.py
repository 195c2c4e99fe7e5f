"""
Booking reconciler: turns a listing (and optionally an accepted
negotiation) into a pending booking, and applies owner status changes.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studentnest.config.settings import Settings, settings as default_settings
from studentnest.core.exceptions import (
    BaseAppException,
    BookingNotFoundError,
    InvalidDurationError,
    InvalidStateError,
    NegotiationNotAcceptedError,
    NegotiationNotFoundError,
    NegotiationNotOwnedError,
    NegotiationRoomMismatchError,
    PastMoveInDateError,
    UnauthorizedActionError,
    ValidationError,
)
from studentnest.models.booking import Booking
from studentnest.models.enums import BookingStatus, NegotiationStatus, NotificationKind, PaymentStatus
from studentnest.models.listing import Listing
from studentnest.models.negotiation import Negotiation
from studentnest.repositories.base_repository import PaginatedResult
from studentnest.repositories.booking_repository import BookingRepository
from studentnest.repositories.negotiation_repository import NegotiationRepository
from studentnest.services.base import BaseService, ServiceResult
from studentnest.services.booking.inventory_guard import InventoryGuard
from studentnest.services.negotiation.negotiation_service import to_money
from studentnest.services.notification import NotificationDispatcher, NotificationPriority
from studentnest.utils.datetime_utils import Clock, DateTimeHelper

ALLOWED_TRANSITIONS: Dict[BookingStatus, Sequence[BookingStatus]] = {
    BookingStatus.PENDING: (BookingStatus.CONFIRMED, BookingStatus.REJECTED, BookingStatus.CANCELLED),
    BookingStatus.CONFIRMED: (BookingStatus.ACTIVE, BookingStatus.CANCELLED),
    BookingStatus.ACTIVE: (BookingStatus.COMPLETED, BookingStatus.CANCELLED),
}

RELEASING_STATUSES = (BookingStatus.CANCELLED, BookingStatus.REJECTED)

BOOKING_NOTES_MAX_LENGTH = 1000


def coerce_status(value: Any) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown booking status: {value}", field="status")


class BookingReconciler(BaseService[BookingRepository]):
    """
    Creates bookings and moves them through the owner-driven lifecycle.

    Each call is one transaction: validation failures and a lost
    inventory race leave no partial writes behind.
    """

    def __init__(
        self,
        db_session: Session,
        notifications: Optional[NotificationDispatcher] = None,
        clock: Optional[Clock] = None,
        config: Optional[Settings] = None,
    ):
        super().__init__(BookingRepository(db_session), db_session, clock)
        self.negotiations = NegotiationRepository(db_session)
        self.inventory = InventoryGuard(db_session)
        self.notifications = notifications or NotificationDispatcher()
        self.config = config or default_settings

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate_dates(self, move_in_date: date, duration: int) -> None:
        if DateTimeHelper.is_past(move_in_date, self.now().date()):
            raise PastMoveInDateError(move_in_date)
        if duration < 1 or duration > self.config.MAX_BOOKING_DURATION_MONTHS:
            raise InvalidDurationError(duration, self.config.MAX_BOOKING_DURATION_MONTHS)

    def _load_accepted_negotiation(
        self,
        negotiation_id: str,
        student_id: str,
        listing_id: str,
    ) -> Negotiation:
        negotiation = self.negotiations.find_by_id_fresh(negotiation_id)
        if negotiation is None:
            raise NegotiationNotFoundError(negotiation_id)
        if negotiation.student_id != student_id:
            raise NegotiationNotOwnedError(negotiation_id)
        if negotiation.listing_id != listing_id:
            raise NegotiationRoomMismatchError(negotiation_id, listing_id)
        if negotiation.status != NegotiationStatus.ACCEPTED:
            raise NegotiationNotAcceptedError(negotiation_id, negotiation.status.value)
        return negotiation

    @staticmethod
    def _resolve_charges(
        listing: Listing,
        monthly_rent: Decimal,
        security_deposit: Any,
        maintenance_charges: Any,
    ):
        if security_deposit is not None:
            deposit = to_money(security_deposit, "security_deposit")
        elif listing.security_deposit is not None:
            deposit = listing.security_deposit
        else:
            deposit = monthly_rent

        if maintenance_charges is not None:
            maintenance = to_money(maintenance_charges, "maintenance_charges")
        elif listing.maintenance_charges is not None:
            maintenance = listing.maintenance_charges
        else:
            maintenance = Decimal("0.00")
        for field, amount in (("security_deposit", deposit), ("maintenance_charges", maintenance)):
            if amount < 0:
                raise ValidationError(f"{field} cannot be negative", field=field)
        return deposit, maintenance

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def create_from_listing(
        self,
        student_id: str,
        listing_id: str,
        move_in_date: date,
        duration: int,
        negotiation_id: Optional[str] = None,
        security_deposit: Any = None,
        maintenance_charges: Any = None,
        notes: Optional[str] = None,
    ) -> ServiceResult[Booking]:
        """
        Create a pending booking, consuming exactly one inventory unit.

        Rent is the negotiation's final price when one is given, else the
        listing price. The owner is notified once the booking is committed.
        """
        operation = "create booking"
        try:
            with self.transaction():
                self._validate_dates(move_in_date, duration)

                negotiation = None
                if negotiation_id:
                    negotiation = self._load_accepted_negotiation(negotiation_id, student_id, listing_id)

                token = self.inventory.check_and_reserve(listing_id, student_id, self.now())
                listing = token.listing
                if listing.owner_id == student_id:
                    raise UnauthorizedActionError("Owners cannot book their own listing", action="book")

                monthly_rent = negotiation.final_price if negotiation is not None else listing.price
                deposit, maintenance = self._resolve_charges(
                    listing, monthly_rent, security_deposit, maintenance_charges
                )

                token.consume()
                booking = self.repository.create(
                    Booking(
                        listing_id=listing.id,
                        student_id=student_id,
                        owner_id=listing.owner_id,
                        negotiation_id=negotiation.id if negotiation is not None else None,
                        move_in_date=move_in_date,
                        move_out_date=DateTimeHelper.add_months(move_in_date, duration),
                        duration=duration,
                        monthly_rent=monthly_rent,
                        security_deposit=deposit,
                        maintenance_charges=maintenance,
                        total_amount=monthly_rent + deposit + maintenance,
                        status=BookingStatus.PENDING,
                        payment_status=PaymentStatus.PENDING,
                        inventory_reserved=True,
                        student_notes=notes,
                    )
                )
        except BaseAppException as e:
            return self._failure(e, operation, listing_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, listing_id)

        self._log_operation(operation, booking.id, {
            "listing_id": listing_id,
            "student_id": student_id,
            "negotiation_id": negotiation_id,
            "total_amount": str(booking.total_amount),
        })
        self.notifications.dispatch(
            booking.owner_id,
            NotificationKind.BOOKING_CREATED,
            title="New Booking Request",
            message=f"New booking request for \"{listing.title}\"",
            data={"booking_id": booking.id, "listing_id": listing.id},
            priority=NotificationPriority.HIGH,
        )
        return ServiceResult.success(booking, message="Booking created successfully")

    def update_status(
        self,
        booking_id: str,
        actor_id: str,
        new_status: BookingStatus,
        cancellation_reason: Optional[str] = None,
    ) -> ServiceResult[Booking]:
        """
        Owner-driven status change.

        Cancelling or rejecting a booking that still holds a unit returns
        it to the listing exactly once.
        """
        operation = "update booking status"
        try:
            with self.transaction():
                new_status = coerce_status(new_status)
                operation = f"update booking status to {new_status.value}"
                booking = self.repository.find_by_id_fresh(booking_id)
                if booking is None:
                    raise BookingNotFoundError(booking_id)
                if booking.owner_id != actor_id:
                    raise UnauthorizedActionError(
                        "Only the listing owner can update this booking", action="update_status"
                    )
                if new_status not in ALLOWED_TRANSITIONS.get(booking.status, ()):
                    raise InvalidStateError(f"move to {new_status.value}", booking.status.value)

                now = self.now()
                booking.status = new_status
                if new_status == BookingStatus.CONFIRMED:
                    booking.confirmed_at = now
                elif new_status in RELEASING_STATUSES:
                    booking.cancelled_at = now
                    booking.cancellation_reason = cancellation_reason
                    if booking.inventory_reserved:
                        self.inventory.release(booking.listing_id)
                        booking.inventory_reserved = False
        except BaseAppException as e:
            return self._failure(e, operation, booking_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, booking_id)

        self._log_operation(operation, booking_id, {"listing_id": booking.listing_id})
        self._notify_student_of_status(booking)
        return ServiceResult.success(booking, message=f"Booking {new_status.value}")

    def _notify_student_of_status(self, booking: Booking) -> None:
        data = {"booking_id": booking.id, "listing_id": booking.listing_id}
        if booking.status == BookingStatus.CONFIRMED:
            self.notifications.dispatch(
                booking.student_id,
                NotificationKind.BOOKING_CONFIRMED,
                title="Booking Confirmed!",
                message="Your booking has been confirmed by the owner",
                data=data,
                priority=NotificationPriority.HIGH,
            )
        elif booking.status in RELEASING_STATUSES:
            self.notifications.dispatch(
                booking.student_id,
                NotificationKind.BOOKING_DECLINED,
                title="Booking Update",
                message=booking.cancellation_reason or f"Your booking was {booking.status.value}",
                data=data,
            )

    def get_for_participant(self, booking_id: str, user_id: str) -> ServiceResult[Booking]:
        """Only the booking's student or the listing owner may read it."""
        operation = "get booking"
        try:
            booking = self._load_for_participant(booking_id, user_id, "view")
        except BaseAppException as e:
            return self._failure(e, operation, booking_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, booking_id)
        return ServiceResult.success(booking)

    def update_notes(self, booking_id: str, actor_id: str, notes: Optional[str]) -> ServiceResult[Booking]:
        """
        Set the caller's own note: owners write owner_notes, students
        student_notes. A blank note clears it. Status is never touched.
        """
        operation = "update booking notes"
        try:
            with self.transaction():
                booking = self._load_for_participant(booking_id, actor_id, "update_notes")
                notes = (notes or "").strip() or None
                if notes is not None and len(notes) > BOOKING_NOTES_MAX_LENGTH:
                    raise ValidationError(
                        f"notes must be at most {BOOKING_NOTES_MAX_LENGTH} characters", field="notes"
                    )
                if actor_id == booking.owner_id:
                    booking.owner_notes = notes
                else:
                    booking.student_notes = notes
        except BaseAppException as e:
            return self._failure(e, operation, booking_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, booking_id)

        self._log_operation(operation, booking_id, {"actor_id": actor_id})
        return ServiceResult.success(booking, message="Booking updated successfully")

    def _load_for_participant(self, booking_id: str, user_id: str, action: str) -> Booking:
        booking = self.repository.find_by_id_fresh(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        if user_id not in (booking.student_id, booking.owner_id):
            raise UnauthorizedActionError("Not authorized to access this booking", action=action)
        return booking

    def list_bookings(
        self,
        user_id: str,
        as_owner: bool = False,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ServiceResult[PaginatedResult[Booking]]:
        """List a student's or owner's bookings; status "active" means confirmed or active."""
        try:
            if status == "active":
                statuses = (BookingStatus.CONFIRMED, BookingStatus.ACTIVE)
            elif status:
                statuses = (coerce_status(status),)
            else:
                statuses = None
            return ServiceResult.success(
                self.repository.list_for_user(
                    user_id, as_owner=as_owner, statuses=statuses, page=page, limit=limit
                )
            )
        except BaseAppException as e:
            return self._failure(e, "list bookings", user_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, "list bookings", user_id)
