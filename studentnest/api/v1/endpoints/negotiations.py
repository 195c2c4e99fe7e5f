from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from studentnest.api.deps import CurrentUser, get_current_user, get_negotiation_service, require_student
from studentnest.api.errors import unwrap
from studentnest.models.enums import NegotiationStatus
from studentnest.schemas.base import PaginationInfo, SuccessResponse
from studentnest.schemas.negotiation import (
    NegotiationCreate,
    NegotiationDetail,
    NegotiationList,
    NegotiationResponse,
    NegotiationUpdate,
)
from studentnest.services.negotiation import NegotiationService

router = APIRouter(prefix="/negotiations", tags=["Negotiations"])


@router.post(
    "",
    response_model=SuccessResponse[NegotiationResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_negotiation(
    payload: NegotiationCreate,
    current_user: CurrentUser = Depends(require_student),
    service: NegotiationService = Depends(get_negotiation_service),
):
    """Student opens a price negotiation on a listing."""
    result = service.propose(
        current_user.user_id,
        payload.listing_id,
        payload.proposed_price,
        message=payload.message,
    )
    negotiation = unwrap(result)
    return SuccessResponse(message=result.message, data=NegotiationResponse.model_validate(negotiation))


@router.get("", response_model=SuccessResponse[NegotiationList])
def list_negotiations(
    status_filter: Optional[NegotiationStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    service: NegotiationService = Depends(get_negotiation_service),
):
    page_result = unwrap(
        service.list_for_participant(current_user.user_id, status=status_filter, page=page, limit=limit)
    )
    return SuccessResponse(
        data=NegotiationList(
            negotiations=[NegotiationResponse.model_validate(n) for n in page_result.items],
            pagination=PaginationInfo(**page_result.page_info.to_dict()),
        )
    )


@router.get("/{negotiation_id}", response_model=SuccessResponse[NegotiationDetail])
def get_negotiation(
    negotiation_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: NegotiationService = Depends(get_negotiation_service),
):
    return SuccessResponse(data=unwrap(service.get_for_participant(negotiation_id, current_user.user_id)))


@router.patch("/{negotiation_id}", response_model=SuccessResponse[NegotiationResponse])
def update_negotiation(
    negotiation_id: str,
    payload: NegotiationUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: NegotiationService = Depends(get_negotiation_service),
):
    """
    Owner: accept, reject or counter.
    Student: withdraw, or accept the owner's counter-offer.
    """
    if payload.action == "withdraw":
        result = service.withdraw(negotiation_id, current_user.user_id)
    elif payload.action == "accept" and not current_user.is_owner:
        result = service.accept_counter(negotiation_id, current_user.user_id)
    else:
        result = service.respond(
            negotiation_id,
            current_user.user_id,
            payload.action,
            counter_offer=payload.counter_offer,
            owner_response=payload.owner_response,
            counter_message=payload.counter_message,
        )
    negotiation = unwrap(result)
    return SuccessResponse(message=result.message, data=NegotiationResponse.model_validate(negotiation))


@router.delete("/{negotiation_id}", response_model=SuccessResponse[bool])
def delete_negotiation(
    negotiation_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: NegotiationService = Depends(get_negotiation_service),
):
    result = service.delete(negotiation_id, actor_id=current_user.user_id)
    return SuccessResponse(message=result.message, data=unwrap(result))
