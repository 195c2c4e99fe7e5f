"""
Custom Exceptions for the StudentNest reconciliation engine

Every failure the negotiation, booking and payment flows can produce maps
to one stable ErrorCode so callers can branch on it instead of parsing
messages.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the engine"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    # Economic input
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_COUNTER = "INVALID_COUNTER"

    # Authorization
    UNAUTHORIZED = "UNAUTHORIZED"

    # State machine
    INVALID_STATE = "INVALID_STATE"
    EXPIRED = "EXPIRED"
    NEGOTIATION_EXISTS = "NEGOTIATION_EXISTS"
    ACTIVE_NEGOTIATION = "ACTIVE_NEGOTIATION"

    # Inventory / invariants
    ROOM_UNAVAILABLE = "ROOM_UNAVAILABLE"
    ACTIVE_BOOKING_EXISTS = "ACTIVE_BOOKING_EXISTS"

    # Cross-entity consistency
    NEGOTIATION_NOT_FOUND = "NEGOTIATION_NOT_FOUND"
    NEGOTIATION_NOT_OWNED = "NEGOTIATION_NOT_OWNED"
    NEGOTIATION_NOT_ACCEPTED = "NEGOTIATION_NOT_ACCEPTED"
    NEGOTIATION_ROOM_MISMATCH = "NEGOTIATION_ROOM_MISMATCH"
    LISTING_NOT_FOUND = "LISTING_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"

    # Payment
    SIGNATURE_INVALID = "SIGNATURE_INVALID"

    # Temporal validation
    PAST_MOVE_IN_DATE = "PAST_MOVE_IN_DATE"
    INVALID_DURATION = "INVALID_DURATION"


HTTP_STATUS_CODES: Dict[ErrorCode, int] = {
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.CONCURRENT_MODIFICATION: 409,
    ErrorCode.INVALID_PRICE: 400,
    ErrorCode.INVALID_COUNTER: 400,
    ErrorCode.UNAUTHORIZED: 403,
    ErrorCode.INVALID_STATE: 409,
    ErrorCode.EXPIRED: 400,
    ErrorCode.NEGOTIATION_EXISTS: 409,
    ErrorCode.ACTIVE_NEGOTIATION: 400,
    ErrorCode.ROOM_UNAVAILABLE: 409,
    ErrorCode.ACTIVE_BOOKING_EXISTS: 409,
    ErrorCode.NEGOTIATION_NOT_FOUND: 404,
    ErrorCode.NEGOTIATION_NOT_OWNED: 403,
    ErrorCode.NEGOTIATION_NOT_ACCEPTED: 400,
    ErrorCode.NEGOTIATION_ROOM_MISMATCH: 400,
    ErrorCode.LISTING_NOT_FOUND: 404,
    ErrorCode.BOOKING_NOT_FOUND: 404,
    ErrorCode.TRANSACTION_NOT_FOUND: 404,
    ErrorCode.SIGNATURE_INVALID: 400,
    ErrorCode.PAST_MOVE_IN_DATE: 400,
    ErrorCode.INVALID_DURATION: 400,
}


class BaseAppException(Exception):
    """
    Base exception class for all engine exceptions.

    Provides consistent error handling across the engine with
    structured error information.
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None
    ):
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code or HTTP_STATUS_CODES.get(self.error_code, 500)
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# General Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when request data fails validation"""

    error_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str = "Validation failed", field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)


class ConcurrentModificationError(BaseAppException):
    """Raised when an optimistic version check fails"""

    error_code = ErrorCode.CONCURRENT_MODIFICATION

    def __init__(self, resource_type: str = "Record", resource_id: Optional[str] = None):
        super().__init__(
            f"{resource_type} was modified by another request",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    resource_type = "Resource"

    def __init__(self, resource_id: Optional[str] = None, message: Optional[str] = None):
        if not message:
            message = f"{self.resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        super().__init__(
            message,
            details={"resource_type": self.resource_type, "resource_id": resource_id},
        )


class ListingNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.LISTING_NOT_FOUND
    resource_type = "Listing"


class NegotiationNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.NEGOTIATION_NOT_FOUND
    resource_type = "Negotiation"


class BookingNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.BOOKING_NOT_FOUND
    resource_type = "Booking"


class TransactionNotFoundError(ResourceNotFoundError):
    error_code = ErrorCode.TRANSACTION_NOT_FOUND
    resource_type = "Payment transaction"


class UnauthorizedActionError(BaseAppException):
    """Actor is not permitted to perform this action on this record"""

    error_code = ErrorCode.UNAUTHORIZED

    def __init__(self, message: str = "Not authorized to perform this action", action: Optional[str] = None):
        super().__init__(message, details={"action": action} if action else None)


# ========================================
# Negotiation Exceptions
# ========================================

class InvalidPriceError(BaseAppException):
    error_code = ErrorCode.INVALID_PRICE

    def __init__(self, message: str = "Proposed price must be positive and below the listing price", **details):
        super().__init__(message, details=details)


class InvalidCounterError(BaseAppException):
    error_code = ErrorCode.INVALID_COUNTER

    def __init__(self, message: str = "Counter offer must be between proposed price and original price", **details):
        super().__init__(message, details=details)


class InvalidStateError(BaseAppException):
    """Transition is not legal from the record's current status"""

    error_code = ErrorCode.INVALID_STATE

    def __init__(self, action: str, current_status: str):
        super().__init__(
            f"Cannot {action} a {current_status} record",
            details={"action": action, "current_status": current_status},
        )


class NegotiationExpiredError(BaseAppException):
    error_code = ErrorCode.EXPIRED

    def __init__(self, negotiation_id: str, expires_at: Any = None):
        super().__init__(
            "This negotiation has expired",
            details={
                "negotiation_id": negotiation_id,
                "expires_at": expires_at.isoformat() if expires_at else None,
            },
        )


class NegotiationExistsError(BaseAppException):
    error_code = ErrorCode.NEGOTIATION_EXISTS

    def __init__(self, negotiation_id: str):
        super().__init__(
            "An open negotiation already exists for this listing",
            details={"negotiation_id": negotiation_id},
        )


class ActiveNegotiationError(BaseAppException):
    error_code = ErrorCode.ACTIVE_NEGOTIATION

    def __init__(self, negotiation_id: str):
        super().__init__(
            "Cannot delete active negotiation",
            details={"negotiation_id": negotiation_id},
        )


# ========================================
# Booking & Inventory Exceptions
# ========================================

class RoomUnavailableError(BaseAppException):
    error_code = ErrorCode.ROOM_UNAVAILABLE

    def __init__(self, listing_id: str):
        super().__init__(
            "Room is not available for booking",
            details={"listing_id": listing_id},
        )


class ActiveBookingExistsError(BaseAppException):
    error_code = ErrorCode.ACTIVE_BOOKING_EXISTS

    def __init__(self, current_booking_id: str, current_booking_expires: Any = None):
        super().__init__(
            "You already have an active booking. One student can only book one room at a time.",
            details={
                "current_booking_id": current_booking_id,
                "current_booking_expires": (
                    current_booking_expires.isoformat() if current_booking_expires else None
                ),
            },
        )

    @property
    def current_booking_id(self) -> str:
        return self.details["current_booking_id"]


class NegotiationNotOwnedError(BaseAppException):
    error_code = ErrorCode.NEGOTIATION_NOT_OWNED

    def __init__(self, negotiation_id: str):
        super().__init__(
            "This negotiation does not belong to you",
            details={"negotiation_id": negotiation_id},
        )


class NegotiationRoomMismatchError(BaseAppException):
    error_code = ErrorCode.NEGOTIATION_ROOM_MISMATCH

    def __init__(self, negotiation_id: str, listing_id: str):
        super().__init__(
            "Negotiation is for a different room",
            details={"negotiation_id": negotiation_id, "listing_id": listing_id},
        )


class NegotiationNotAcceptedError(BaseAppException):
    error_code = ErrorCode.NEGOTIATION_NOT_ACCEPTED

    def __init__(self, negotiation_id: str, status: str):
        super().__init__(
            f"Cannot book with negotiation in {status} status. Negotiation must be accepted.",
            details={"negotiation_id": negotiation_id, "status": status},
        )


class PastMoveInDateError(BaseAppException):
    error_code = ErrorCode.PAST_MOVE_IN_DATE

    def __init__(self, move_in_date: Any):
        super().__init__(
            "Move-in date cannot be in the past",
            details={"move_in_date": str(move_in_date)},
        )


class InvalidDurationError(BaseAppException):
    error_code = ErrorCode.INVALID_DURATION

    def __init__(self, duration: int, maximum: int):
        super().__init__(
            f"Duration must be between 1 and {maximum} months",
            details={"duration": duration, "maximum": maximum},
        )


# ========================================
# Payment Exceptions
# ========================================

class SignatureInvalidError(BaseAppException):
    error_code = ErrorCode.SIGNATURE_INVALID

    def __init__(self, order_id: str):
        super().__init__(
            "Invalid payment signature",
            details={"order_id": order_id},
        )


__all__ = [
    "ErrorCode",
    "HTTP_STATUS_CODES",
    "BaseAppException",
    "ValidationError",
    "ConcurrentModificationError",
    "ResourceNotFoundError",
    "ListingNotFoundError",
    "NegotiationNotFoundError",
    "BookingNotFoundError",
    "TransactionNotFoundError",
    "UnauthorizedActionError",
    "InvalidPriceError",
    "InvalidCounterError",
    "InvalidStateError",
    "NegotiationExpiredError",
    "NegotiationExistsError",
    "ActiveNegotiationError",
    "RoomUnavailableError",
    "ActiveBookingExistsError",
    "NegotiationNotOwnedError",
    "NegotiationRoomMismatchError",
    "NegotiationNotAcceptedError",
    "PastMoveInDateError",
    "InvalidDurationError",
    "SignatureInvalidError",
]
