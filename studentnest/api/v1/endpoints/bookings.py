from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from studentnest.api.deps import (
    CurrentUser,
    get_booking_reconciler,
    get_current_user,
    require_owner,
    require_student,
)
from studentnest.api.errors import unwrap
from studentnest.schemas.base import PaginationInfo, SuccessResponse
from studentnest.schemas.booking import (
    BookingCreate,
    BookingList,
    BookingNotesUpdate,
    BookingResponse,
    BookingStatusUpdate,
)
from studentnest.services.booking import BookingReconciler

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post(
    "",
    response_model=SuccessResponse[BookingResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    payload: BookingCreate,
    current_user: CurrentUser = Depends(require_student),
    reconciler: BookingReconciler = Depends(get_booking_reconciler),
):
    """Book a listing, at the negotiated price when negotiation_id is given."""
    result = reconciler.create_from_listing(
        current_user.user_id,
        payload.listing_id,
        payload.move_in_date,
        payload.duration,
        negotiation_id=payload.negotiation_id,
        security_deposit=payload.security_deposit,
        maintenance_charges=payload.maintenance_charges,
        notes=payload.notes,
    )
    booking = unwrap(result)
    return SuccessResponse(message=result.message, data=BookingResponse.model_validate(booking))


@router.get("", response_model=SuccessResponse[BookingList])
def list_bookings(
    status_filter: Optional[str] = Query(
        None,
        alias="status",
        pattern=r"^(active|pending|confirmed|completed|cancelled|rejected)$",
    ),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    reconciler: BookingReconciler = Depends(get_booking_reconciler),
):
    page_result = unwrap(
        reconciler.list_bookings(
            current_user.user_id,
            as_owner=current_user.is_owner,
            status=status_filter,
            page=page,
            limit=limit,
        )
    )
    return SuccessResponse(
        data=BookingList(
            bookings=[BookingResponse.model_validate(b) for b in page_result.items],
            pagination=PaginationInfo(**page_result.page_info.to_dict()),
        )
    )


@router.get("/{booking_id}", response_model=SuccessResponse[BookingResponse])
def get_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    reconciler: BookingReconciler = Depends(get_booking_reconciler),
):
    booking = unwrap(reconciler.get_for_participant(booking_id, current_user.user_id))
    return SuccessResponse(data=BookingResponse.model_validate(booking))


@router.patch("/{booking_id}", response_model=SuccessResponse[BookingResponse])
def update_booking_notes(
    booking_id: str,
    payload: BookingNotesUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    reconciler: BookingReconciler = Depends(get_booking_reconciler),
):
    """Owners set owner_notes, students set student_notes."""
    result = reconciler.update_notes(booking_id, current_user.user_id, payload.notes)
    booking = unwrap(result)
    return SuccessResponse(message=result.message, data=BookingResponse.model_validate(booking))


@router.put("/{booking_id}/status", response_model=SuccessResponse[BookingResponse])
def update_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    current_user: CurrentUser = Depends(require_owner),
    reconciler: BookingReconciler = Depends(get_booking_reconciler),
):
    result = reconciler.update_status(
        booking_id,
        current_user.user_id,
        payload.status,
        cancellation_reason=payload.cancellation_reason,
    )
    booking = unwrap(result)
    return SuccessResponse(message=result.message, data=BookingResponse.model_validate(booking))
