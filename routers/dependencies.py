# Shared router dependencies

from fastapi import Depends
from sqlalchemy.orm import Session

from core.paystack_service import PaymentGateway, get_payment_gateway
from database.config import get_db
from services.clock import Clock, get_clock
from services.collaboration_service import CollaborationService


def get_collaboration_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> CollaborationService:
    return CollaborationService(db, clock, gateway)
