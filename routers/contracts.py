# Contracts Router
# Both parties sign the accepted terms before the brand can fund escrow

from fastapi import APIRouter, Depends
from typing import List

from database.models import User
from schemas.collaboration import ContractResponse, CollaborationRequestResponse
from auth.decorators import require_party
from routers.dependencies import get_collaboration_service
from services.collaboration_service import CollaborationService

router = APIRouter(prefix="/contracts", tags=["Contracts"])


@router.get("", response_model=List[ContractResponse])
async def list_contracts(
    current_user: User = Depends(require_party),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """Contracts the caller is party to, from acceptance onwards, newest first."""
    return service.list_contracts(current_user)


@router.get("/{request_id}", response_model=ContractResponse)
async def get_contract(
    request_id: str,
    current_user: User = Depends(require_party),
    service: CollaborationService = Depends(get_collaboration_service),
):
    return service.contract(current_user, request_id)


@router.post("/{request_id}/sign", response_model=CollaborationRequestResponse)
async def sign_contract(
    request_id: str,
    current_user: User = Depends(require_party),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """
    Record the caller's signature.
    The first signature moves the request to contract_pending, the second to contract_signed.
    """
    request = service.sign_contract(current_user, request_id)
    return CollaborationRequestResponse.model_validate(request)
