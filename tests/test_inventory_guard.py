"""
Tests for the inventory guard: conditional reserve/release and the
one-active-booking rule.
"""

from datetime import date
from decimal import Decimal

import pytest

from studentnest.core.exceptions import (
    ActiveBookingExistsError,
    InvalidStateError,
    ListingNotFoundError,
    RoomUnavailableError,
)
from studentnest.models.booking import Booking
from studentnest.models.enums import BookingStatus, PaymentStatus
from studentnest.models.listing import Listing
from studentnest.repositories.listing_repository import ListingRepository
from studentnest.services.booking import InventoryGuard

from tests.helpers import OWNER_ID, STUDENT_ID


@pytest.fixture
def guard(db_session):
    return InventoryGuard(db_session)


def add_booking(db_session, listing, student_id=STUDENT_ID, status=BookingStatus.PENDING,
                payment_status=PaymentStatus.PENDING, move_in=date(2025, 1, 1), move_out=date(2025, 12, 1)):
    booking = Booking(
        listing_id=listing.id,
        student_id=student_id,
        owner_id=OWNER_ID,
        move_in_date=move_in,
        move_out_date=move_out,
        duration=11,
        monthly_rent=listing.price,
        security_deposit=listing.price,
        maintenance_charges=Decimal("0"),
        total_amount=listing.price * 2,
        status=status,
        payment_status=payment_status,
    )
    db_session.add(booking)
    db_session.commit()
    return booking


class TestReserve:

    def test_reserve_decrements_and_issues_token(self, guard, db_session, make_listing, clock):
        listing = make_listing(total_rooms=3)

        token = guard.check_and_reserve(listing.id, STUDENT_ID, clock())
        db_session.commit()

        assert token.listing_id == listing.id
        assert token.student_id == STUDENT_ID
        assert guard.current_availability(listing.id) == 2

    def test_last_unit_flips_availability(self, guard, db_session, make_listing, clock):
        listing = make_listing(total_rooms=2, available_rooms=1)

        token = guard.check_and_reserve(listing.id, STUDENT_ID, clock())
        db_session.commit()

        assert token.listing.available_rooms == 0
        assert token.listing.is_available is False

    def test_no_units_left(self, guard, make_listing, clock):
        listing = make_listing(total_rooms=1, available_rooms=0)

        with pytest.raises(RoomUnavailableError):
            guard.check_and_reserve(listing.id, STUDENT_ID, clock())

    def test_unknown_listing(self, guard, clock):
        with pytest.raises(ListingNotFoundError):
            guard.check_and_reserve("missing", STUDENT_ID, clock())

    def test_interleaved_reservations_on_last_unit(self, file_session_factory, clock, monkeypatch):
        """Both units of work read one unit left; the one that writes second loses."""
        setup = file_session_factory()
        listing = Listing(
            owner_id=OWNER_ID, title="Single room", price=Decimal("9000.00"),
            total_rooms=1, available_rooms=1, is_available=True,
        )
        setup.add(listing)
        setup.commit()

        first, second = file_session_factory(), file_session_factory()
        winner, loser = InventoryGuard(first), InventoryGuard(second)
        read_availability = loser.listings.get_availability
        seen = []

        def read_then_let_winner_commit(listing_id):
            current = read_availability(listing_id)
            if not seen:
                seen.append(current.available_rooms)
                winner.check_and_reserve(listing_id, STUDENT_ID, clock())
                first.commit()
            return current

        monkeypatch.setattr(loser.listings, "get_availability", read_then_let_winner_commit)

        with pytest.raises(RoomUnavailableError):
            loser.check_and_reserve(listing.id, "student-9", clock())
        second.rollback()

        assert seen == [1]
        check = file_session_factory()
        assert ListingRepository(check).get_availability(listing.id).available_rooms == 0
        for session in (setup, first, second, check):
            session.close()

    def test_stale_read_loses_race(self, guard, db_session, make_listing, clock, monkeypatch):
        """The availability read said 1, but another request took the unit first."""
        listing = make_listing(total_rooms=1)
        assert ListingRepository(db_session).reserve_unit(listing.id)
        db_session.commit()

        stale = type("StaleListing", (), {"available_rooms": 1})()
        fresh_read = guard.listings.get_availability
        calls = iter([stale])
        monkeypatch.setattr(
            guard.listings, "get_availability", lambda listing_id: next(calls, None) or fresh_read(listing_id)
        )

        with pytest.raises(RoomUnavailableError):
            guard.check_and_reserve(listing.id, STUDENT_ID, clock())
        db_session.rollback()

        assert fresh_read(listing.id).available_rooms == 0

    def test_token_is_single_use(self, guard, make_listing, clock):
        token = guard.check_and_reserve(make_listing().id, STUDENT_ID, clock())
        token.consume()

        assert token.consumed
        with pytest.raises(InvalidStateError):
            token.consume()


class TestActiveBookingRule:

    def test_existing_pending_booking_blocks(self, guard, db_session, make_listing, clock):
        listing = make_listing()
        existing = add_booking(db_session, listing)

        with pytest.raises(ActiveBookingExistsError) as exc_info:
            guard.check_and_reserve(make_listing(title="Second").id, STUDENT_ID, clock())

        assert exc_info.value.current_booking_id == existing.id
        assert exc_info.value.details["current_booking_expires"] == "2025-12-01"

    def test_failed_check_consumes_nothing(self, guard, db_session, make_listing, clock):
        add_booking(db_session, make_listing())
        target = make_listing(title="Second", total_rooms=2)

        with pytest.raises(ActiveBookingExistsError):
            guard.check_and_reserve(target.id, STUDENT_ID, clock())
        db_session.rollback()

        assert guard.current_availability(target.id) == 2

    @pytest.mark.parametrize("status,payment_status,move_out", [
        (BookingStatus.CANCELLED, PaymentStatus.PENDING, date(2025, 12, 1)),
        (BookingStatus.REJECTED, PaymentStatus.PENDING, date(2025, 12, 1)),
        (BookingStatus.COMPLETED, PaymentStatus.PAID, date(2025, 12, 1)),
        (BookingStatus.PENDING, PaymentStatus.FAILED, date(2025, 12, 1)),
        (BookingStatus.ACTIVE, PaymentStatus.PAID, date(2024, 11, 30)),  # moved out yesterday
    ])
    def test_non_blocking_bookings(self, guard, db_session, make_listing, clock, status, payment_status, move_out):
        add_booking(
            db_session, make_listing(), status=status, payment_status=payment_status,
            move_in=date(2024, 1, 1), move_out=move_out,
        )

        token = guard.check_and_reserve(make_listing(title="Second").id, STUDENT_ID, clock())

        assert token.student_id == STUDENT_ID


class TestRelease:

    def test_release_returns_unit(self, guard, db_session, make_listing):
        listing = make_listing(total_rooms=3, available_rooms=0)

        assert guard.release(listing.id) is True
        db_session.commit()

        refreshed = ListingRepository(db_session).get_availability(listing.id)
        assert refreshed.available_rooms == 1
        assert refreshed.is_available is True

    def test_release_never_exceeds_total(self, guard, db_session, make_listing):
        listing = make_listing(total_rooms=2)

        assert guard.release(listing.id) is False
        db_session.commit()

        assert guard.current_availability(listing.id) == 2
