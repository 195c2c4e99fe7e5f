"""
Payment confirmation gate.

Verifies gateway checkout signatures and moves the linked booking from
pending to confirmed. The booking write is conditional on the pending
status, so replayed callbacks are no-ops.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studentnest.config.settings import Settings, settings as default_settings
from studentnest.core.exceptions import (
    BaseAppException,
    BookingNotFoundError,
    InvalidStateError,
    SignatureInvalidError,
    TransactionNotFoundError,
    UnauthorizedActionError,
    ValidationError,
)
from studentnest.models.booking import Booking
from studentnest.models.enums import NotificationKind, PaymentMethod, TransactionStatus
from studentnest.models.payment_transaction import PaymentTransaction
from studentnest.repositories.booking_repository import BookingRepository
from studentnest.repositories.payment_transaction_repository import PaymentTransactionRepository
from studentnest.schemas.payment import PaymentVerificationResponse
from studentnest.services.base import BaseService, ServiceResult
from studentnest.services.notification import NotificationDispatcher, NotificationPriority
from studentnest.utils.datetime_utils import Clock
from studentnest.utils.hashing import HMACHelper

SIGNATURE_FAILURE_CODE = "SIGNATURE_VERIFICATION_FAILED"


class PaymentConfirmationService(BaseService[PaymentTransactionRepository]):
    """Registers gateway orders and confirms bookings on verified payment."""

    def __init__(
        self,
        db_session: Session,
        notifications: Optional[NotificationDispatcher] = None,
        clock: Optional[Clock] = None,
        config: Optional[Settings] = None,
    ):
        super().__init__(PaymentTransactionRepository(db_session), db_session, clock)
        self.bookings = BookingRepository(db_session)
        self.notifications = notifications or NotificationDispatcher()
        self.config = config or default_settings

    def register_order(
        self,
        user_id: str,
        order_id: str,
        amount: int,
        currency: Optional[str] = None,
        booking_id: Optional[str] = None,
    ) -> ServiceResult[PaymentTransaction]:
        """Record an order created at the gateway. Amount is in paise."""
        operation = "register payment order"
        try:
            with self.transaction():
                if amount <= 0:
                    raise ValidationError("Amount must be positive", field="amount")
                if self.repository.find_by_order_id(order_id) is not None:
                    raise ValidationError("Order already registered", field="order_id")
                if booking_id is not None:
                    booking = self.bookings.find_by_id(booking_id)
                    if booking is None:
                        raise BookingNotFoundError(booking_id)
                    if booking.student_id != user_id:
                        raise UnauthorizedActionError(
                            "Orders can only be registered against your own booking",
                            action="register_order",
                        )

                transaction = self.repository.create(
                    PaymentTransaction(
                        order_id=order_id,
                        amount=amount,
                        currency=currency or self.config.CURRENCY,
                        status=TransactionStatus.CREATED,
                        user_id=user_id,
                        booking_id=booking_id,
                    )
                )
        except BaseAppException as e:
            return self._failure(e, operation, order_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, order_id)

        self._log_operation(operation, transaction.id, {"order_id": order_id, "amount": amount})
        return ServiceResult.success(transaction, message="Payment order registered")

    def verify_payment(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
        booking_id: Optional[str] = None,
    ) -> ServiceResult[PaymentVerificationResponse]:
        """
        Verify the checkout signature and confirm the booking.

        The signature is checked before anything else: a bad one is
        SignatureInvalid whether or not the order exists, marks a known
        transaction failed and leaves the booking untouched. A valid
        signature against a booking that is no longer pending changes
        nothing and sends nothing.
        """
        operation = "verify payment"
        signature_valid = HMACHelper.verify_payment_signature(
            order_id, payment_id, signature, self.config.RAZORPAY_KEY_SECRET
        )
        if not signature_valid:
            return self._reject_signature(order_id, operation)

        confirmed = False
        booking: Optional[Booking] = None
        try:
            with self.transaction():
                transaction = self.repository.find_by_order_id(order_id)
                if transaction is None:
                    raise TransactionNotFoundError(order_id)

                self._capture(transaction, payment_id, signature)

                target_id = booking_id or transaction.booking_id
                if booking_id and transaction.booking_id and booking_id != transaction.booking_id:
                    raise ValidationError("Booking does not match the payment order", field="booking_id")

                if target_id:
                    transaction.booking_id = target_id
                    confirmed = self.bookings.confirm_if_pending(
                        target_id, self.now(), PaymentMethod.ONLINE
                    )
                    booking = self.bookings.find_by_id_fresh(target_id)
                    if booking is None:
                        raise BookingNotFoundError(target_id)
        except BaseAppException as e:
            return self._failure(e, operation, order_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, order_id)

        self._log_operation(operation, transaction.id, {
            "order_id": order_id,
            "booking_id": booking.id if booking else None,
            "booking_confirmed": confirmed,
        })
        if confirmed:
            self._notify_confirmation(booking, transaction)

        return ServiceResult.success(
            PaymentVerificationResponse(
                transaction_id=transaction.id,
                order_id=transaction.order_id,
                payment_id=transaction.payment_id,
                status=transaction.status,
                amount=transaction.amount,
                currency=transaction.currency,
                booking_id=booking.id if booking else None,
                booking_status=booking.status if booking else None,
                booking_confirmed=confirmed,
            ),
            message="Payment verified successfully",
        )

    def _reject_signature(self, order_id: str, operation: str) -> ServiceResult[PaymentVerificationResponse]:
        """Record the failure on a known, uncaptured transaction; the booking is never read."""
        try:
            with self.transaction():
                transaction = self.repository.find_by_order_id(order_id)
                if transaction is not None and transaction.status != TransactionStatus.CAPTURED:
                    transaction.status = TransactionStatus.FAILED
                    transaction.error_code = SIGNATURE_FAILURE_CODE
                    transaction.error_description = "Payment signature verification failed"
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, order_id)

        return self._failure(SignatureInvalidError(order_id), operation, order_id)

    @staticmethod
    def _capture(transaction: PaymentTransaction, payment_id: str, signature: str) -> None:
        if transaction.status == TransactionStatus.CAPTURED:
            if transaction.payment_id != payment_id:
                raise InvalidStateError("capture a second payment for", "captured order")
            return
        transaction.status = TransactionStatus.CAPTURED
        transaction.payment_id = payment_id
        transaction.signature = signature
        transaction.error_code = None
        transaction.error_description = None

    def _notify_confirmation(self, booking: Booking, transaction: PaymentTransaction) -> None:
        data = {
            "booking_id": booking.id,
            "order_id": transaction.order_id,
            "amount": transaction.amount,
        }
        self.notifications.dispatch(
            booking.student_id,
            NotificationKind.BOOKING_CONFIRMED,
            title="Booking Confirmed!",
            message="Payment received. Your booking is confirmed.",
            data=data,
            priority=NotificationPriority.HIGH,
        )
        self.notifications.dispatch(
            booking.owner_id,
            NotificationKind.PAYMENT_RECEIVED,
            title="Payment Received",
            message=f"Payment of {transaction.amount / 100:.2f} {transaction.currency} received",
            data=data,
        )
