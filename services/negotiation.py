# Negotiation Ledger
# Append-only counter-offer history. The last entry is the offer on the table.

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from database.collaboration_models import CollaborationRequest, NegotiationEntry, PartyRoleDB


def append_offer(
    db: Session,
    request: CollaborationRequest,
    actor_role: PartyRoleDB,
    actor_id: str,
    amount: int,
    message: Optional[str],
    now: datetime,
) -> NegotiationEntry:
    last_sequence = db.query(func.max(NegotiationEntry.sequence)).filter(
        NegotiationEntry.request_id == request.id
    ).scalar() or 0

    entry = NegotiationEntry(
        request_id=request.id,
        sequence=last_sequence + 1,
        actor_role=actor_role,
        actor_id=actor_id,
        amount=amount,
        message=message,
        created_at=now,
    )
    db.add(entry)
    db.flush()
    return entry


def latest_entry(db: Session, request: CollaborationRequest) -> Optional[NegotiationEntry]:
    return db.query(NegotiationEntry).filter(
        NegotiationEntry.request_id == request.id
    ).order_by(NegotiationEntry.sequence.desc()).first()


def current_offer(db: Session, request: CollaborationRequest) -> int:
    """Amount currently on the table: the latest counter-offer, else the brand's original budget."""
    entry = latest_entry(db, request)
    return entry.amount if entry else request.proposed_budget


def history(db: Session, request: CollaborationRequest) -> List[NegotiationEntry]:
    return db.query(NegotiationEntry).filter(
        NegotiationEntry.request_id == request.id
    ).order_by(NegotiationEntry.sequence).all()
