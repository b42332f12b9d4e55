# Collaboration Requests Router
# Handles the request lifecycle between brands and creators

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from database.models import User
from database.collaboration_models import PartyRoleDB, RequestStatusDB
from schemas.collaboration import (
    CollaborationRequestCreate,
    CollaborationRequestResponse,
    CounterOfferRequest,
    DeclineRequest,
    DeclineResponse,
    CancelRequest,
    ContentSubmission,
    RevisionRequest,
    CountdownResponse,
    NegotiationEntryResponse,
    RequestEventResponse,
    RequestStatus,
    RequestWithEscrowResponse,
    EscrowResponse,
)
from auth.decorators import require_brand, require_creator, require_party
from routers.dependencies import get_collaboration_service
from services.collaboration_service import CollaborationService

router = APIRouter(prefix="/requests", tags=["Collaboration Requests"])


def _to_response(service: CollaborationService, user: User, request) -> CollaborationRequestResponse:
    response = CollaborationRequestResponse.model_validate(request)
    response.allowed_actions = service.allowed_actions_for(user, request)
    return response


# ============================================================================
# BRAND ENDPOINTS
# ============================================================================

@router.post("", response_model=CollaborationRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    data: CollaborationRequestCreate,
    current_user: User = Depends(require_brand),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """
    Send a collaboration request to a creator.
    Rejected with 409 if the creator is suspended or the dates conflict with their calendar.
    """
    request = service.create_request(
        current_user,
        creator_id=data.creator_id,
        title=data.title,
        proposed_budget=data.proposed_budget,
        proposed_start_date=data.proposed_start_date,
        proposed_end_date=data.proposed_end_date,
        description=data.description,
        content_requirements=data.content_requirements,
        target_platforms=data.target_platforms,
        deliverables=data.deliverables,
        service_ids=data.service_ids,
        max_revisions=data.max_revisions,
    )
    return _to_response(service, current_user, request)


@router.get("/sent", response_model=List[CollaborationRequestResponse])
async def list_sent_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    current_user: User = Depends(require_brand),
    service: CollaborationService = Depends(get_collaboration_service),
):
    wanted = RequestStatusDB(status_filter.value) if status_filter else None
    requests = service.list_requests(current_user, PartyRoleDB.BRAND, wanted)
    return [_to_response(service, current_user, r) for r in requests]


@router.post("/{request_id}/cancel", response_model=CollaborationRequestResponse)
async def cancel_request(
    request_id: str,
    data: Optional[CancelRequest] = None,
    current_user: User = Depends(require_brand),
    service: CollaborationService = Depends(get_collaboration_service),
):
    request = service.cancel(current_user, request_id, data.reason if data else None)
    return _to_response(service, current_user, request)


@router.post("/{request_id}/request-revision", response_model=CollaborationRequestResponse)
async def request_revision(
    request_id: str,
    data: RevisionRequest,
    current_user: User = Depends(require_brand),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """Send content back to the creator. Limited to the request's max_revisions."""
    request = service.request_revision(current_user, request_id, data.notes)
    return _to_response(service, current_user, request)


@router.post("/{request_id}/approve-content", response_model=RequestWithEscrowResponse)
async def approve_content(
    request_id: str,
    current_user: User = Depends(require_brand),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """Approve submitted content. This releases the escrowed payout to the creator."""
    request, record = service.approve_content(current_user, request_id)
    return RequestWithEscrowResponse(
        request=_to_response(service, current_user, request),
        escrow=EscrowResponse.model_validate(record),
    )


@router.post("/{request_id}/complete", response_model=CollaborationRequestResponse)
async def complete_request(
    request_id: str,
    current_user: User = Depends(require_brand),
    service: CollaborationService = Depends(get_collaboration_service),
):
    request = service.complete(current_user, request_id)
    return _to_response(service, current_user, request)


# ============================================================================
# CREATOR ENDPOINTS
# ============================================================================

@router.get("/received", response_model=List[CollaborationRequestResponse])
async def list_received_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    current_user: User = Depends(require_creator),
    service: CollaborationService = Depends(get_collaboration_service),
):
    wanted = RequestStatusDB(status_filter.value) if status_filter else None
    requests = service.list_requests(current_user, PartyRoleDB.CREATOR, wanted)
    return [_to_response(service, current_user, r) for r in requests]


@router.post("/{request_id}/accept", response_model=CollaborationRequestResponse)
async def accept_request(
    request_id: str,
    current_user: User = Depends(require_creator),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """Accept the offer currently on the table. The final budget is locked from here on."""
    request = service.accept(current_user, request_id)
    return _to_response(service, current_user, request)


@router.post("/{request_id}/decline", response_model=DeclineResponse)
async def decline_request(
    request_id: str,
    data: DeclineRequest,
    current_user: User = Depends(require_creator),
    service: CollaborationService = Depends(get_collaboration_service),
):
    request, outcome = service.decline(current_user, request_id, data.category.value, data.reason)
    return DeclineResponse(
        request=_to_response(service, current_user, request),
        warning=outcome.warning,
        suspended=outcome.suspended,
        suspended_until=outcome.suspended_until,
    )


@router.post("/{request_id}/submit-content", response_model=CollaborationRequestResponse)
async def submit_content(
    request_id: str,
    data: ContentSubmission,
    current_user: User = Depends(require_creator),
    service: CollaborationService = Depends(get_collaboration_service),
):
    request = service.submit_content(current_user, request_id, data.content_urls, data.notes)
    return _to_response(service, current_user, request)


@router.post("/{request_id}/resume", response_model=CollaborationRequestResponse)
async def resume_work(
    request_id: str,
    current_user: User = Depends(require_creator),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """Pick up a revision request and go back to work."""
    request = service.resume_work(current_user, request_id)
    return _to_response(service, current_user, request)


# ============================================================================
# SHARED ENDPOINTS
# ============================================================================

@router.get("/{request_id}", response_model=CollaborationRequestResponse)
async def get_request(
    request_id: str,
    current_user: User = Depends(require_party),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """
    Request detail. Lapsed requests are expired before they are returned,
    and a creator opening a pending request marks it viewed.
    """
    request = service.get_request_for_user(current_user, request_id)
    return _to_response(service, current_user, request)


@router.get("/{request_id}/countdown", response_model=CountdownResponse)
async def get_countdown(
    request_id: str,
    current_user: User = Depends(require_party),
    service: CollaborationService = Depends(get_collaboration_service),
):
    return service.countdown(current_user, request_id)


@router.get("/{request_id}/timeline", response_model=List[RequestEventResponse])
async def get_timeline(
    request_id: str,
    current_user: User = Depends(require_party),
    service: CollaborationService = Depends(get_collaboration_service),
):
    return [RequestEventResponse.model_validate(e) for e in service.timeline(current_user, request_id)]


@router.get("/{request_id}/negotiations", response_model=List[NegotiationEntryResponse])
async def get_negotiations(
    request_id: str,
    current_user: User = Depends(require_party),
    service: CollaborationService = Depends(get_collaboration_service),
):
    return [NegotiationEntryResponse.model_validate(e) for e in service.negotiations(current_user, request_id)]


@router.post("/{request_id}/counter-offer", response_model=NegotiationEntryResponse, status_code=status.HTTP_201_CREATED)
async def counter_offer(
    request_id: str,
    data: CounterOfferRequest,
    current_user: User = Depends(require_party),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """Propose a new amount. The creator opens negotiation; after that either side may counter."""
    entry = service.counter_offer(current_user, request_id, data.amount, data.message)
    return NegotiationEntryResponse.model_validate(entry)
