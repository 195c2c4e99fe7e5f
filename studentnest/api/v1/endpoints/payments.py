from fastapi import APIRouter, Depends, status

from studentnest.api.deps import CurrentUser, get_current_user, get_payment_service
from studentnest.api.errors import unwrap
from studentnest.schemas.base import SuccessResponse
from studentnest.schemas.payment import (
    PaymentOrderCreate,
    PaymentOrderResponse,
    PaymentVerificationRequest,
    PaymentVerificationResponse,
)
from studentnest.services.payment import PaymentConfirmationService

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/orders",
    response_model=SuccessResponse[PaymentOrderResponse],
    status_code=status.HTTP_201_CREATED,
)
def register_order(
    payload: PaymentOrderCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: PaymentConfirmationService = Depends(get_payment_service),
):
    """Register a gateway order against the caller and, optionally, a booking."""
    result = service.register_order(
        current_user.user_id,
        payload.order_id,
        payload.amount,
        currency=payload.currency,
        booking_id=payload.booking_id,
    )
    transaction = unwrap(result)
    return SuccessResponse(message=result.message, data=PaymentOrderResponse.model_validate(transaction))


@router.post("/verify", response_model=SuccessResponse[PaymentVerificationResponse])
def verify_payment(
    payload: PaymentVerificationRequest,
    service: PaymentConfirmationService = Depends(get_payment_service),
):
    """Gateway checkout callback; safe to replay."""
    result = service.verify_payment(
        payload.order_id,
        payload.payment_id,
        payload.signature,
        booking_id=payload.booking_id,
    )
    return SuccessResponse(message=result.message, data=unwrap(result))
