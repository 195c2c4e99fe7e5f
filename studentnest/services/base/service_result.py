"""
Result objects returned by every engine service.

A service never raises for an expected domain failure. It returns a failed
ServiceResult whose error carries a stable ErrorCode, and the API layer maps
that code to an HTTP status.
"""

from typing import TypeVar, Generic, Optional, Any, Dict
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime

from studentnest.core.exceptions import BaseAppException, ErrorCode, HTTP_STATUS_CODES
from studentnest.utils.datetime_utils import utcnow


class ErrorSeverity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServiceError:
    """A failed operation: stable code, caller-facing message, optional details."""

    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_CODES.get(self.code, 500)


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """Either data (success) or a ServiceError (failure), plus a status message."""

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Optional[TData] = None, message: Optional[str] = None) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data, message=message)

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult[TData]":
        return cls(is_success=False, error=error, message=error.message)

    @classmethod
    def from_app_exception(
        cls,
        exception: BaseAppException,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
    ) -> "ServiceResult[TData]":
        """Failed result carrying the exception's stable error code and details."""
        return cls.failure(
            ServiceError(
                code=exception.error_code,
                message=exception.message,
                severity=severity,
                details=exception.details,
            )
        )

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    def unwrap(self) -> TData:
        """
        Return the data of a successful result.

        Raises:
            ValueError: If the result is a failure
        """
        if not self.is_success:
            code = self.error.code.value if self.error else "UNKNOWN"
            raise ValueError(f"Cannot unwrap failed result ({code}): {self.message}")
        return self.data

    def __bool__(self) -> bool:
        return self.is_success


__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
