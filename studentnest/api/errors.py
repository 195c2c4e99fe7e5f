"""
Map service failures and domain exceptions to the JSON error envelope:

    {"success": false, "error": {"code": ..., "message": ..., "details": ...}}
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from studentnest.core.exceptions import BaseAppException, ErrorCode
from studentnest.core.logging import get_logger
from studentnest.services.base import ServiceError, ServiceResult

logger = get_logger(__name__)


class ServiceFailure(Exception):
    """Raised by endpoints to short-circuit with a failed ServiceResult."""

    def __init__(self, error: ServiceError):
        self.error = error
        super().__init__(error.message)


def unwrap(result: ServiceResult):
    if not result.is_success:
        raise ServiceFailure(result.error)
    return result.data


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"code": code, "message": message, "details": details or {}},
        },
    )


async def service_failure_handler(request: Request, exc: ServiceFailure) -> JSONResponse:
    error = exc.error
    return error_response(error.status_code, error.code.value, error.message, error.details)


async def app_exception_handler(request: Request, exc: BaseAppException) -> JSONResponse:
    logger.warning(
        f"Request rejected: {exc.error_code.value}",
        extra={"path": request.url.path, "method": request.method, "error_code": exc.error_code.value},
    )
    return error_response(exc.status_code, exc.error_code.value, exc.message, exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.warning(
        f"Validation error on {request.url.path}",
        extra={"errors": errors, "method": request.method},
    )
    return error_response(422, ErrorCode.VALIDATION_ERROR.value, "Request validation failed", {"errors": errors})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceFailure, service_failure_handler)
    app.add_exception_handler(BaseAppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
