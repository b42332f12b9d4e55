# Payments Router
# Escrow funding through Paystack, verification, webhooks and creator earnings

from fastapi import APIRouter, HTTPException, Depends, Request
from typing import List, Optional
import logging
import os

from database.models import User
from schemas.collaboration import (
    CollaborationRequestResponse,
    EarningsSummary,
    EscrowResponse,
    PaymentVerifyRequest,
    RequestWithEscrowResponse,
    TransactionResponse,
)
from auth.decorators import require_brand, require_creator, require_party
from core.paystack_service import PaystackWebhookHandler
from routers.dependencies import get_collaboration_service
from services.collaboration_service import CollaborationService
from services.errors import InvalidTransitionError, NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def _with_escrow(request, record) -> RequestWithEscrowResponse:
    return RequestWithEscrowResponse(
        request=CollaborationRequestResponse.model_validate(request),
        escrow=EscrowResponse.model_validate(record),
    )


@router.post("/initialize/{request_id}", response_model=RequestWithEscrowResponse)
async def initialize_payment(
    request_id: str,
    current_user: User = Depends(require_brand),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """
    Open a Paystack charge for the agreed budget.
    The platform fee is priced from the creator's tier at this moment and never recomputed.
    """
    request, record = service.initialize_payment(current_user, request_id)
    return _with_escrow(request, record)


@router.post("/verify", response_model=RequestWithEscrowResponse)
async def verify_payment(
    data: PaymentVerifyRequest,
    current_user: User = Depends(require_party),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """Check the charge with Paystack (e.g. after the checkout redirect)."""
    request, record = service.verify_payment(current_user, data.reference)
    return _with_escrow(request, record)


@router.post("/webhook")
async def paystack_webhook(
    request: Request,
    service: CollaborationService = Depends(get_collaboration_service),
):
    """
    Handle Paystack webhooks
    """
    signature = request.headers.get("x-paystack-signature")
    if not signature:
        raise HTTPException(status_code=400, detail="No signature")

    body = await request.body()
    secret = os.getenv("PAYSTACK_SECRET_KEY", "")

    if not PaystackWebhookHandler.verify_webhook(body, signature, secret):
        raise HTTPException(status_code=400, detail="Invalid signature")

    event = await request.json()
    info = PaystackWebhookHandler.parse(event)
    logger.info(f"Paystack webhook received: {event.get('event')}")

    if info is None or not info.get("reference"):
        return {"status": "ignored"}

    try:
        service.handle_webhook_event(info)
    except (NotFoundError, InvalidTransitionError) as e:
        # Stale or foreign references must not make Paystack retry forever
        logger.warning(f"Webhook for {info['reference']} not applied: {e.message}")
        return {"status": "ignored", "reason": e.message}

    return {"status": "received"}


@router.get("/escrow/{request_id}", response_model=Optional[EscrowResponse])
async def get_escrow(
    request_id: str,
    current_user: User = Depends(require_party),
    service: CollaborationService = Depends(get_collaboration_service),
):
    record = service.escrow_status(current_user, request_id)
    return EscrowResponse.model_validate(record) if record else None


@router.get("/earnings", response_model=EarningsSummary)
async def get_earnings(
    current_user: User = Depends(require_creator),
    service: CollaborationService = Depends(get_collaboration_service),
):
    return service.earnings_summary(current_user)


@router.get("/transactions", response_model=List[TransactionResponse])
async def get_transactions(
    current_user: User = Depends(require_party),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """Escrow history for the caller: charges paid as a brand and payouts earned as a creator."""
    return [
        TransactionResponse(
            **EscrowResponse.model_validate(record).model_dump(),
            reference_number=request.reference_number,
            title=request.title,
            role="brand" if request.brand_id == current_user.id else "creator",
        )
        for record, request in service.transactions(current_user)
    ]
