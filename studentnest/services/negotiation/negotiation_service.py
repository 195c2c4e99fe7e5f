"""
Negotiation service: the price negotiation state machine.

pending   -> countered | accepted | rejected | withdrawn
countered -> accepted | rejected | withdrawn
accepted, rejected, withdrawn are terminal.

Expiry is a guard evaluated at the top of every mutating call; nothing
moves a negotiation in the background.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studentnest.config.settings import Settings, settings as default_settings
from studentnest.core.exceptions import (
    ActiveNegotiationError,
    BaseAppException,
    InvalidCounterError,
    InvalidPriceError,
    InvalidStateError,
    ListingNotFoundError,
    NegotiationExistsError,
    NegotiationExpiredError,
    NegotiationNotFoundError,
    UnauthorizedActionError,
    ValidationError,
)
from studentnest.models.enums import NegotiationAction, NegotiationStatus, NotificationKind, UserRole
from studentnest.models.negotiation import Negotiation
from studentnest.models.price_ledger import PriceLedger
from studentnest.repositories.base_repository import PaginatedResult
from studentnest.repositories.listing_repository import ListingRepository
from studentnest.repositories.negotiation_repository import NegotiationRepository
from studentnest.schemas.negotiation import NegotiationDetail, NegotiationResponse
from studentnest.services.base import BaseService, ServiceResult
from studentnest.services.notification import NotificationDispatcher, NotificationPriority
from studentnest.utils.datetime_utils import Clock, DateTimeHelper


def to_money(value: Any, field: str) -> Decimal:
    """Coerce numeric input to a finite Decimal without float artefacts."""
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f"{field} must be a number", field=field)
    if not value.is_finite():
        raise ValidationError(f"{field} must be a finite amount", field=field)
    return value


class NegotiationService(BaseService[NegotiationRepository]):
    """
    Propose, respond to, withdraw and delete negotiations.

    Every mutating operation runs in one transaction and returns a
    ServiceResult whose error code is one of the stable ErrorCode kinds.
    """

    def __init__(
        self,
        db_session: Session,
        notifications: Optional[NotificationDispatcher] = None,
        clock: Optional[Clock] = None,
        config: Optional[Settings] = None,
    ):
        super().__init__(NegotiationRepository(db_session), db_session, clock)
        self.listings = ListingRepository(db_session)
        self.notifications = notifications or NotificationDispatcher()
        self.config = config or default_settings

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _load(self, negotiation_id: str) -> Negotiation:
        negotiation = self.repository.find_by_id_fresh(negotiation_id)
        if negotiation is None:
            raise NegotiationNotFoundError(negotiation_id)
        return negotiation

    def _ensure_actionable(self, negotiation: Negotiation, action: str) -> None:
        """Expiry first, then status: an expired record is Expired whatever it says."""
        if negotiation.is_expired(self.now()):
            raise NegotiationExpiredError(negotiation.id, negotiation.expires_at)
        if negotiation.status not in NegotiationStatus.open_statuses():
            raise InvalidStateError(action, negotiation.status.value)

    def _check_text(self, value: Optional[str], field: str) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if len(value) > self.config.NEGOTIATION_MESSAGE_MAX_LENGTH:
            raise ValidationError(
                f"{field} must be at most {self.config.NEGOTIATION_MESSAGE_MAX_LENGTH} characters",
                field=field,
            )
        return value or None

    @staticmethod
    def _coerce_action(action: Any) -> NegotiationAction:
        try:
            return NegotiationAction(action)
        except ValueError:
            raise ValidationError(f"Unknown negotiation action: {action}", field="action")

    # -------------------------------------------------------------------------
    # Student operations
    # -------------------------------------------------------------------------

    def propose(
        self,
        student_id: str,
        listing_id: str,
        proposed_price: Any,
        message: Optional[str] = None,
    ) -> ServiceResult[Negotiation]:
        """
        Open a negotiation at a price strictly between zero and the listing price.

        The listing price is snapshotted as original_price; the window is
        NEGOTIATION_WINDOW_DAYS from now.
        """
        operation = "propose negotiation"
        try:
            with self.transaction():
                price = to_money(proposed_price, "proposed_price")
                message = self._check_text(message, "message")

                listing = self.listings.find_by_id(listing_id)
                if listing is None:
                    raise ListingNotFoundError(listing_id)
                if listing.owner_id == student_id:
                    raise UnauthorizedActionError(
                        "Owners cannot negotiate on their own listing", action="propose"
                    )

                ledger = PriceLedger(original_price=listing.price, proposed_price=price)
                if not ledger.is_valid_proposal():
                    raise InvalidPriceError(
                        proposed_price=str(price),
                        original_price=str(listing.price),
                    )

                now = self.now()
                existing = self.repository.find_open_for_student_listing(student_id, listing_id, now)
                if existing is not None:
                    raise NegotiationExistsError(existing.id)

                negotiation = self.repository.create(
                    Negotiation(
                        listing_id=listing.id,
                        student_id=student_id,
                        owner_id=listing.owner_id,
                        original_price=listing.price,
                        proposed_price=price,
                        status=NegotiationStatus.PENDING,
                        message=message,
                        expires_at=DateTimeHelper.add_days(now, self.config.NEGOTIATION_WINDOW_DAYS),
                    )
                )
        except BaseAppException as e:
            return self._failure(e, operation, listing_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, listing_id)

        self._log_operation(operation, negotiation.id, {
            "listing_id": listing_id,
            "student_id": student_id,
        })
        self.notifications.dispatch(
            negotiation.owner_id,
            NotificationKind.NEGOTIATION_PROPOSED,
            title="New Price Offer",
            message=f"A student offered {price} for \"{listing.title}\"",
            data={"negotiation_id": negotiation.id, "listing_id": listing.id},
            priority=NotificationPriority.HIGH,
        )
        return ServiceResult.success(negotiation, message="Negotiation proposed")

    def accept_counter(self, negotiation_id: str, student_id: str) -> ServiceResult[Negotiation]:
        """Student accepts the owner's counter-offer; final price is the counter."""
        operation = "accept counter offer"
        try:
            with self.transaction():
                negotiation = self._load(negotiation_id)
                if negotiation.student_id != student_id:
                    raise UnauthorizedActionError(
                        "Only the student can accept a counter offer", action="accept_counter"
                    )
                if negotiation.is_expired(self.now()):
                    raise NegotiationExpiredError(negotiation.id, negotiation.expires_at)
                if negotiation.status != NegotiationStatus.COUNTERED:
                    raise InvalidStateError("accept counter on", negotiation.status.value)

                negotiation.final_price = negotiation.counter_offer
                negotiation.status = NegotiationStatus.ACCEPTED
        except BaseAppException as e:
            return self._failure(e, operation, negotiation_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, negotiation_id)

        self._log_operation(operation, negotiation_id, {"final_price": str(negotiation.final_price)})
        self.notifications.dispatch(
            negotiation.owner_id,
            NotificationKind.NEGOTIATION_ACCEPTED,
            title="Counter Offer Accepted",
            message=f"Your counter offer of {negotiation.final_price} was accepted",
            data={"negotiation_id": negotiation.id, "listing_id": negotiation.listing_id},
            priority=NotificationPriority.HIGH,
        )
        return ServiceResult.success(negotiation, message="Counter offer accepted")

    def withdraw(self, negotiation_id: str, actor_id: str) -> ServiceResult[Negotiation]:
        operation = "withdraw negotiation"
        try:
            with self.transaction():
                negotiation = self._load(negotiation_id)
                if negotiation.student_id != actor_id:
                    raise UnauthorizedActionError(
                        "Only the student can withdraw this negotiation", action="withdraw"
                    )
                self._ensure_actionable(negotiation, "withdraw")
                negotiation.status = NegotiationStatus.WITHDRAWN
        except BaseAppException as e:
            return self._failure(e, operation, negotiation_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, negotiation_id)

        self._log_operation(operation, negotiation_id)
        self.notifications.dispatch(
            negotiation.owner_id,
            NotificationKind.NEGOTIATION_WITHDRAWN,
            title="Offer Withdrawn",
            message="A student withdrew their price offer",
            data={"negotiation_id": negotiation.id, "listing_id": negotiation.listing_id},
        )
        return ServiceResult.success(negotiation, message="Negotiation withdrawn")

    # -------------------------------------------------------------------------
    # Owner operations
    # -------------------------------------------------------------------------

    def respond(
        self,
        negotiation_id: str,
        actor_id: str,
        action: NegotiationAction,
        counter_offer: Any = None,
        owner_response: Optional[str] = None,
        counter_message: Optional[str] = None,
    ) -> ServiceResult[Negotiation]:
        """
        Owner accepts, rejects or counters.

        Checks run in order: actor is the owner, window not expired,
        status is pending or countered.
        """
        operation = "respond to negotiation"
        try:
            with self.transaction():
                action = self._coerce_action(action)
                operation = f"{action.value} negotiation"
                negotiation = self._load(negotiation_id)
                if negotiation.owner_id != actor_id:
                    raise UnauthorizedActionError(
                        "Only the owner can respond to this negotiation", action=action.value
                    )
                self._ensure_actionable(negotiation, action.value)

                now = self.now()
                owner_response = self._check_text(owner_response, "owner_response")

                if action is NegotiationAction.ACCEPT:
                    negotiation.final_price = negotiation.ledger.current_offer
                    negotiation.status = NegotiationStatus.ACCEPTED
                    if owner_response:
                        negotiation.owner_response = owner_response

                elif action is NegotiationAction.REJECT:
                    negotiation.status = NegotiationStatus.REJECTED
                    if owner_response:
                        negotiation.owner_response = owner_response

                else:
                    if counter_offer is None:
                        raise InvalidCounterError("Valid counter offer amount is required")
                    amount = to_money(counter_offer, "counter_offer")
                    if not negotiation.ledger.is_valid_counter(amount):
                        raise InvalidCounterError(
                            counter_offer=str(amount),
                            proposed_price=str(negotiation.proposed_price),
                            original_price=str(negotiation.original_price),
                        )
                    negotiation.counter_offer = amount
                    negotiation.status = NegotiationStatus.COUNTERED
                    negotiation.counter_message = self._check_text(counter_message, "counter_message")
                    # Fresh window on every counter, uncapped
                    negotiation.expires_at = DateTimeHelper.add_days(now, self.config.NEGOTIATION_WINDOW_DAYS)

                negotiation.response_date = now
        except BaseAppException as e:
            return self._failure(e, operation, negotiation_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, negotiation_id)

        self._log_operation(operation, negotiation_id, {
            "status": negotiation.status.value,
            "final_price": str(negotiation.final_price) if negotiation.final_price else None,
        })
        self._notify_student_of_response(negotiation, action)
        return ServiceResult.success(negotiation, message=f"Negotiation {negotiation.status.value}")

    def accept(self, negotiation_id: str, actor_id: str, owner_response: Optional[str] = None):
        return self.respond(negotiation_id, actor_id, NegotiationAction.ACCEPT, owner_response=owner_response)

    def reject(self, negotiation_id: str, actor_id: str, owner_response: Optional[str] = None):
        return self.respond(negotiation_id, actor_id, NegotiationAction.REJECT, owner_response=owner_response)

    def counter(self, negotiation_id: str, actor_id: str, amount: Any, message: Optional[str] = None):
        return self.respond(
            negotiation_id, actor_id, NegotiationAction.COUNTER,
            counter_offer=amount, counter_message=message,
        )

    def _notify_student_of_response(self, negotiation: Negotiation, action: NegotiationAction) -> None:
        data = {"negotiation_id": negotiation.id, "listing_id": negotiation.listing_id}
        if action is NegotiationAction.ACCEPT:
            self.notifications.dispatch(
                negotiation.student_id,
                NotificationKind.NEGOTIATION_ACCEPTED,
                title="Offer Accepted!",
                message=f"Your offer was accepted at {negotiation.final_price}",
                data=data,
                priority=NotificationPriority.HIGH,
            )
        elif action is NegotiationAction.REJECT:
            self.notifications.dispatch(
                negotiation.student_id,
                NotificationKind.NEGOTIATION_REJECTED,
                title="Offer Declined",
                message=negotiation.owner_response or "The owner declined your offer",
                data=data,
            )
        else:
            self.notifications.dispatch(
                negotiation.student_id,
                NotificationKind.NEGOTIATION_COUNTERED,
                title="Counter Offer Received",
                message=f"The owner countered with {negotiation.counter_offer}",
                data=data,
                priority=NotificationPriority.HIGH,
            )

    # -------------------------------------------------------------------------
    # Housekeeping & queries
    # -------------------------------------------------------------------------

    def delete(self, negotiation_id: str, actor_id: Optional[str] = None) -> ServiceResult[bool]:
        """Delete a negotiation that is terminal or past its window."""
        operation = "delete negotiation"
        try:
            with self.transaction():
                negotiation = self._load(negotiation_id)
                if actor_id is not None and actor_id not in (negotiation.student_id, negotiation.owner_id):
                    raise UnauthorizedActionError("Not authorized to delete this negotiation", action="delete")
                if not (negotiation.is_terminal or negotiation.is_expired(self.now())):
                    raise ActiveNegotiationError(negotiation.id)
                self.repository.delete(negotiation)
        except BaseAppException as e:
            return self._failure(e, operation, negotiation_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, negotiation_id)

        self._log_operation(operation, negotiation_id)
        return ServiceResult.success(True, message="Negotiation deleted successfully")

    def get_for_participant(self, negotiation_id: str, user_id: str) -> ServiceResult[NegotiationDetail]:
        operation = "get negotiation"
        try:
            negotiation = self._load(negotiation_id)
            if user_id == negotiation.student_id:
                role = UserRole.STUDENT
            elif user_id == negotiation.owner_id:
                role = UserRole.OWNER
            else:
                raise UnauthorizedActionError("Not authorized to view this negotiation", action="view")
        except BaseAppException as e:
            return self._failure(e, operation, negotiation_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, operation, negotiation_id)

        ledger = negotiation.ledger
        detail = NegotiationDetail(
            **NegotiationResponse.model_validate(negotiation).model_dump(),
            user_role=role,
            is_expired=ledger.is_expired(self.now()),
            discount_percentage=ledger.discount_percentage,
            savings_amount=ledger.savings_amount,
        )
        return ServiceResult.success(detail)

    def list_for_participant(
        self,
        user_id: str,
        status: Optional[NegotiationStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ServiceResult[PaginatedResult[Negotiation]]:
        try:
            return ServiceResult.success(
                self.repository.list_for_participant(user_id, status=status, page=page, limit=limit)
            )
        except SQLAlchemyError as e:
            return self._handle_exception(e, "list negotiations", user_id)
