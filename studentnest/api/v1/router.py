"""
API v1 router: aggregates the negotiation, booking and payment endpoints.
"""
from fastapi import APIRouter

from studentnest.api.v1.endpoints import bookings, negotiations, payments
from studentnest.schemas.base import ErrorResponse

router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Forbidden"},
        404: {"model": ErrorResponse, "description": "Not Found"},
        409: {"model": ErrorResponse, "description": "Conflict"},
        422: {"model": ErrorResponse, "description": "Validation Error"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    }
)

router.include_router(negotiations.router)
router.include_router(bookings.router)
router.include_router(payments.router)
