"""
Base service class providing common functionality for all services.
"""

from abc import ABC
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generic, Optional, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from studentnest.core.exceptions import BaseAppException, ConcurrentModificationError
from studentnest.core.logging import get_logger
from studentnest.repositories.base_repository import BaseRepository
from studentnest.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)
from studentnest.utils.datetime_utils import Clock, utcnow

TRepo = TypeVar("TRepo", bound=BaseRepository)


class BaseService(ABC, Generic[TRepo]):
    """
    Base service with common behaviors:
    - Shared logger, db session and clock
    - Consistent error handling via ServiceResult
    - Transaction management with rollback on any failure
    """

    def __init__(self, repository: TRepo, db_session: Session, clock: Optional[Clock] = None):
        """
        Initialize base service.

        Args:
            repository: Repository instance for data access
            db_session: SQLAlchemy database session
            clock: Source of "now" (naive UTC); injectable for tests
        """
        self.repository: TRepo = repository
        self.db: Session = db_session
        self._clock: Clock = clock or utcnow
        self._logger = get_logger(f"studentnest.services.{self.__class__.__name__}")

    def now(self) -> datetime:
        return self._clock()

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _failure(
        self,
        exception: BaseAppException,
        operation: str,
        entity_ref: Optional[Any] = None,
    ) -> ServiceResult:
        """Convert a typed domain failure into a ServiceResult."""
        self._logger.warning(
            f"Rejected {operation}: {exception.message}",
            extra={
                "operation": operation,
                "entity_ref": str(entity_ref) if entity_ref is not None else None,
                "error_code": exception.error_code.value,
            },
        )
        return ServiceResult.from_app_exception(exception)

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
    ) -> ServiceResult:
        """
        Convert an unexpected exception to a ServiceResult failure with logging.
        """
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }

        self._logger.error(
            f"Error during {operation}: {exception}",
            exc_info=True,
            extra=context,
        )

        return ServiceResult.failure(
            ServiceError(
                code=ErrorCode.INTERNAL_ERROR,
                message=f"Failed to {operation}",
                details={"error": str(exception), "entity_ref": context["entity_ref"]},
                severity=ErrorSeverity.CRITICAL,
            )
        )

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        """
        Context manager for one unit of work: commit on success, rollback otherwise.

        A failed optimistic version check surfaces as ConcurrentModificationError.

        Example:
            with self.transaction():
                self.repository.create(entity)
        """
        try:
            yield self.db
            self.db.commit()
            self._logger.debug("Transaction committed successfully")
        except StaleDataError as e:
            self._rollback()
            raise ConcurrentModificationError(self.__class__.__name__.replace("Service", "")) from e
        except Exception:
            self._rollback()
            raise

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except Exception as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = {"entity_ref": str(entity_ref) if entity_ref else None}
        if extra:
            context.update(extra)

        self._logger.info(f"Operation: {operation}", extra=context)
