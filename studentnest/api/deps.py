"""
FastAPI dependencies: database session, caller identity and services.

Identity is supplied by the upstream auth layer as trusted headers;
nothing here checks credentials.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from studentnest.core.exceptions import UnauthorizedActionError
from studentnest.db.session import get_db
from studentnest.models.enums import UserRole
from studentnest.services.booking import BookingReconciler
from studentnest.services.negotiation import NegotiationService
from studentnest.services.notification import NotificationDispatcher
from studentnest.services.payment import PaymentConfirmationService


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    role: UserRole

    @property
    def is_owner(self) -> bool:
        return self.role is UserRole.OWNER


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> CurrentUser:
    if not x_user_id or not x_user_role:
        raise UnauthorizedActionError("Missing caller identity", action="authenticate")
    try:
        role = UserRole(x_user_role.lower())
    except ValueError:
        raise UnauthorizedActionError(f"Unknown role: {x_user_role}", action="authenticate")
    return CurrentUser(user_id=x_user_id, role=role)


def require_student(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role is not UserRole.STUDENT:
        raise UnauthorizedActionError("Only students can perform this action")
    return current_user


def require_owner(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role is not UserRole.OWNER:
        raise UnauthorizedActionError("Only listing owners can perform this action")
    return current_user


def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher()


def get_negotiation_service(
    db: Session = Depends(get_db),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> NegotiationService:
    return NegotiationService(db, notifications=notifications)


def get_booking_reconciler(
    db: Session = Depends(get_db),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> BookingReconciler:
    return BookingReconciler(db, notifications=notifications)


def get_payment_service(
    db: Session = Depends(get_db),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> PaymentConfirmationService:
    return PaymentConfirmationService(db, notifications=notifications)
