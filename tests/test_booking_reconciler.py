"""
Tests for booking creation from a listing or an accepted negotiation,
and for owner-driven status changes that return inventory.
"""

from datetime import date
from decimal import Decimal

import pytest

from studentnest.core.exceptions import ErrorCode
from studentnest.models.enums import BookingStatus, NotificationKind, PaymentStatus
from studentnest.services.booking import InventoryGuard

from tests.helpers import OTHER_STUDENT_ID, OWNER_ID, STUDENT_ID

MOVE_IN = date(2025, 1, 1)


@pytest.fixture
def listing(make_listing):
    return make_listing(
        price="12000.00",
        total_rooms=3,
        security_deposit=Decimal("5000.00"),
        maintenance_charges=Decimal("500.00"),
    )


@pytest.fixture
def accepted_negotiation(negotiation_service, listing):
    negotiation = negotiation_service.propose(STUDENT_ID, listing.id, Decimal("9000")).unwrap()
    negotiation_service.counter(negotiation.id, OWNER_ID, Decimal("10500")).unwrap()
    return negotiation_service.accept_counter(negotiation.id, STUDENT_ID).unwrap()


def availability(db_session, listing_id):
    return InventoryGuard(db_session).current_availability(listing_id)


class TestCreateFromListing:

    def test_booking_at_negotiated_price(self, reconciler, listing, accepted_negotiation, db_session):
        """Accepted at 10500 for 12 months from 2025-01-01."""
        result = reconciler.create_from_listing(
            STUDENT_ID, listing.id, MOVE_IN, 12, negotiation_id=accepted_negotiation.id
        )

        assert result.is_success
        booking = result.data
        assert booking.monthly_rent == Decimal("10500")
        assert booking.move_out_date == date(2026, 1, 1)
        assert booking.security_deposit == Decimal("5000")
        assert booking.maintenance_charges == Decimal("500")
        assert booking.total_amount == Decimal("16000")
        assert booking.status == BookingStatus.PENDING
        assert booking.payment_status == PaymentStatus.PENDING
        assert booking.negotiation_id == accepted_negotiation.id
        assert availability(db_session, listing.id) == 2

    def test_booking_at_listing_price_with_defaults(self, reconciler, make_listing):
        bare = make_listing(price="8000.00", title="Bare listing")

        booking = reconciler.create_from_listing(STUDENT_ID, bare.id, MOVE_IN, 6).unwrap()

        assert booking.monthly_rent == Decimal("8000")
        assert booking.security_deposit == Decimal("8000")
        assert booking.maintenance_charges == Decimal("0")
        assert booking.total_amount == Decimal("16000")
        assert booking.move_out_date == date(2025, 7, 1)

    def test_request_charges_override_listing(self, reconciler, listing):
        booking = reconciler.create_from_listing(
            STUDENT_ID, listing.id, MOVE_IN, 3,
            security_deposit=Decimal("2000"), maintenance_charges=Decimal("0"),
        ).unwrap()

        assert booking.total_amount == Decimal("14000")

    def test_month_end_move_in_clamps(self, reconciler, listing):
        booking = reconciler.create_from_listing(STUDENT_ID, listing.id, date(2025, 1, 31), 1).unwrap()
        assert booking.move_out_date == date(2025, 2, 28)

    def test_owner_notified(self, reconciler, listing, notifier):
        booking = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12).unwrap()

        user_id, kind, payload = notifier.notify.call_args.args
        assert user_id == OWNER_ID
        assert kind == NotificationKind.BOOKING_CREATED
        assert payload["data"]["booking_id"] == booking.id

    def test_notification_failure_does_not_fail_booking(self, reconciler, listing, notifier):
        notifier.notify.side_effect = RuntimeError("smtp down")

        assert reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12).is_success

    def test_second_booking_blocked(self, reconciler, listing, make_listing, db_session):
        first = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12).unwrap()
        other = make_listing(title="Other listing")

        result = reconciler.create_from_listing(STUDENT_ID, other.id, MOVE_IN, 12)

        assert result.error_code == ErrorCode.ACTIVE_BOOKING_EXISTS
        assert result.error.details["current_booking_id"] == first.id
        assert availability(db_session, other.id) == 3

    def test_last_unit(self, reconciler, make_listing):
        single = make_listing(total_rooms=1)
        reconciler.create_from_listing(STUDENT_ID, single.id, MOVE_IN, 12).unwrap()

        result = reconciler.create_from_listing(OTHER_STUDENT_ID, single.id, MOVE_IN, 12)

        assert result.error_code == ErrorCode.ROOM_UNAVAILABLE


class TestValidation:

    def test_past_move_in(self, reconciler, listing, db_session):
        result = reconciler.create_from_listing(STUDENT_ID, listing.id, date(2024, 11, 30), 12)

        assert result.error_code == ErrorCode.PAST_MOVE_IN_DATE
        assert availability(db_session, listing.id) == 3

    def test_move_in_today_allowed(self, reconciler, listing, clock):
        assert reconciler.create_from_listing(STUDENT_ID, listing.id, clock().date(), 1).is_success

    @pytest.mark.parametrize("duration", [0, 25])
    def test_duration_bounds(self, reconciler, listing, duration):
        result = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, duration)
        assert result.error_code == ErrorCode.INVALID_DURATION

    def test_unknown_negotiation(self, reconciler, listing):
        result = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12, negotiation_id="missing")
        assert result.error_code == ErrorCode.NEGOTIATION_NOT_FOUND

    def test_negotiation_of_another_student(self, reconciler, listing, accepted_negotiation, db_session):
        result = reconciler.create_from_listing(
            OTHER_STUDENT_ID, listing.id, MOVE_IN, 12, negotiation_id=accepted_negotiation.id
        )

        assert result.error_code == ErrorCode.NEGOTIATION_NOT_OWNED
        assert availability(db_session, listing.id) == 3

    def test_negotiation_for_other_listing(self, reconciler, make_listing, accepted_negotiation):
        other = make_listing(title="Other listing")

        result = reconciler.create_from_listing(
            STUDENT_ID, other.id, MOVE_IN, 12, negotiation_id=accepted_negotiation.id
        )

        assert result.error_code == ErrorCode.NEGOTIATION_ROOM_MISMATCH

    def test_negotiation_not_accepted(self, reconciler, negotiation_service, listing):
        pending = negotiation_service.propose(STUDENT_ID, listing.id, Decimal("9000")).unwrap()

        result = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12, negotiation_id=pending.id)

        assert result.error_code == ErrorCode.NEGOTIATION_NOT_ACCEPTED
        assert result.error.details["status"] == "pending"

    def test_owner_cannot_book_own_listing(self, reconciler, listing, db_session):
        result = reconciler.create_from_listing(OWNER_ID, listing.id, MOVE_IN, 12)

        assert result.error_code == ErrorCode.UNAUTHORIZED
        assert availability(db_session, listing.id) == 3

    @pytest.mark.parametrize("deposit", ["NaN", "Infinity", Decimal("-1")])
    def test_charge_override_must_be_a_finite_non_negative_amount(self, reconciler, listing, db_session, deposit):
        result = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 3, security_deposit=deposit)

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert availability(db_session, listing.id) == 3


class TestUpdateStatus:

    def test_reject_before_payment_releases_unit(self, reconciler, listing, db_session, notified_kinds):
        """3 -> 2 on creation, back to 3 when the owner rejects."""
        booking = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12).unwrap()
        assert availability(db_session, listing.id) == 2

        result = reconciler.update_status(booking.id, OWNER_ID, BookingStatus.REJECTED, "Room under repair")

        assert result.data.status == BookingStatus.REJECTED
        assert result.data.cancellation_reason == "Room under repair"
        assert result.data.inventory_reserved is False
        assert availability(db_session, listing.id) == 3
        assert notified_kinds()[-1] == NotificationKind.BOOKING_DECLINED

    def test_release_happens_once(self, reconciler, listing, db_session):
        booking = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12).unwrap()
        reconciler.update_status(booking.id, OWNER_ID, BookingStatus.CONFIRMED).unwrap()
        reconciler.update_status(booking.id, OWNER_ID, BookingStatus.CANCELLED).unwrap()

        again = reconciler.update_status(booking.id, OWNER_ID, BookingStatus.CANCELLED)

        assert again.error_code == ErrorCode.INVALID_STATE
        assert availability(db_session, listing.id) == 3

    def test_confirm_sets_timestamp(self, reconciler, listing, clock, notified_kinds):
        booking = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12).unwrap()

        result = reconciler.update_status(booking.id, OWNER_ID, BookingStatus.CONFIRMED)

        assert result.data.confirmed_at == clock()
        assert notified_kinds()[-1] == NotificationKind.BOOKING_CONFIRMED

    def test_illegal_transition(self, reconciler, listing):
        booking = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12).unwrap()

        result = reconciler.update_status(booking.id, OWNER_ID, BookingStatus.COMPLETED)

        assert result.error_code == ErrorCode.INVALID_STATE

    def test_only_owner(self, reconciler, listing):
        booking = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12).unwrap()

        result = reconciler.update_status(booking.id, STUDENT_ID, BookingStatus.CANCELLED)

        assert result.error_code == ErrorCode.UNAUTHORIZED

    def test_unknown_booking(self, reconciler):
        result = reconciler.update_status("missing", OWNER_ID, BookingStatus.CONFIRMED)
        assert result.error_code == ErrorCode.BOOKING_NOT_FOUND

    def test_unknown_status(self, reconciler, listing):
        booking = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12).unwrap()

        result = reconciler.update_status(booking.id, OWNER_ID, "archived")

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert reconciler.get_for_participant(booking.id, OWNER_ID).data.status == BookingStatus.PENDING

    def test_cancelled_booking_frees_student(self, reconciler, listing, make_listing):
        booking = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12).unwrap()
        reconciler.update_status(booking.id, OWNER_ID, BookingStatus.CANCELLED).unwrap()

        other = make_listing(title="Other listing")
        assert reconciler.create_from_listing(STUDENT_ID, other.id, MOVE_IN, 12).is_success


class TestListBookings:

    def test_student_and_owner_views(self, reconciler, listing, make_listing):
        first = reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12).unwrap()
        reconciler.update_status(first.id, OWNER_ID, BookingStatus.CONFIRMED).unwrap()
        second_listing = make_listing(title="Second")
        second = reconciler.create_from_listing(OTHER_STUDENT_ID, second_listing.id, MOVE_IN, 12).unwrap()

        student_view = reconciler.list_bookings(STUDENT_ID).unwrap()
        owner_view = reconciler.list_bookings(OWNER_ID, as_owner=True).unwrap()
        owner_active = reconciler.list_bookings(OWNER_ID, as_owner=True, status="active").unwrap()
        owner_pending = reconciler.list_bookings(OWNER_ID, as_owner=True, status="pending").unwrap()

        assert [b.id for b in student_view.items] == [first.id]
        assert owner_view.page_info.total == 2
        assert [b.id for b in owner_active.items] == [first.id]
        assert [b.id for b in owner_pending.items] == [second.id]

    def test_unknown_status_filter(self, reconciler):
        result = reconciler.list_bookings(STUDENT_ID, status="archived")
        assert result.error_code == ErrorCode.VALIDATION_ERROR


class TestParticipantAccess:

    @pytest.fixture
    def booking(self, reconciler, listing):
        return reconciler.create_from_listing(STUDENT_ID, listing.id, MOVE_IN, 12, notes="Arriving late").unwrap()

    @pytest.mark.parametrize("user_id", [STUDENT_ID, OWNER_ID])
    def test_participants_can_read(self, reconciler, booking, user_id):
        result = reconciler.get_for_participant(booking.id, user_id)

        assert result.data.id == booking.id
        assert result.data.student_notes == "Arriving late"

    def test_stranger_cannot_read(self, reconciler, booking):
        result = reconciler.get_for_participant(booking.id, OTHER_STUDENT_ID)
        assert result.error_code == ErrorCode.UNAUTHORIZED

    def test_read_unknown_booking(self, reconciler):
        result = reconciler.get_for_participant("missing", STUDENT_ID)
        assert result.error_code == ErrorCode.BOOKING_NOT_FOUND

    def test_each_side_writes_its_own_note(self, reconciler, booking):
        reconciler.update_notes(booking.id, OWNER_ID, "  Keys at reception  ").unwrap()
        updated = reconciler.update_notes(booking.id, STUDENT_ID, "Arriving by train").unwrap()

        assert updated.owner_notes == "Keys at reception"
        assert updated.student_notes == "Arriving by train"
        assert updated.status == BookingStatus.PENDING

    def test_blank_note_clears(self, reconciler, booking):
        updated = reconciler.update_notes(booking.id, STUDENT_ID, "   ").unwrap()
        assert updated.student_notes is None

    def test_note_too_long(self, reconciler, booking):
        result = reconciler.update_notes(booking.id, OWNER_ID, "x" * 1001)

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert reconciler.get_for_participant(booking.id, OWNER_ID).data.owner_notes is None

    def test_stranger_cannot_write_notes(self, reconciler, booking):
        result = reconciler.update_notes(booking.id, OTHER_STUDENT_ID, "Hello")
        assert result.error_code == ErrorCode.UNAUTHORIZED
