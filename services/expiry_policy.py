# Response Expiry Policy
# A request the creator has not answered within the response window is declined by the system.

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from config.app_config import RESPONSE_WINDOW_HOURS
from database.models import CreatorProfile
from database.collaboration_models import (
    CollaborationRequest, DeclineCategoryDB, PartyRoleDB, RequestStatusDB,
)
from services.request_state_machine import Action, RESPONDABLE_STATUSES, next_status
from services.request_store import compare_and_set, record_event
from services.trust_policy import TrustPolicyConfig, record_decline

logger = logging.getLogger(__name__)

EXPIRED_REASON = "No response within the response window"


def compute_expires_at(created_at: datetime, window_hours: int = RESPONSE_WINDOW_HOURS) -> datetime:
    return created_at + timedelta(hours=window_hours)


def is_due(request: CollaborationRequest, now: datetime) -> bool:
    return (
        request.status in RESPONDABLE_STATUSES
        and request.expires_at is not None
        and now >= request.expires_at
    )


def seconds_remaining(request: CollaborationRequest, now: datetime) -> Optional[int]:
    """Countdown projection of expires_at - now. None when no response is owed."""
    if request.status not in RESPONDABLE_STATUSES or request.expires_at is None:
        return None
    return max(0, int((request.expires_at - now).total_seconds()))


def expire_if_due(db: Session, request: CollaborationRequest, now: datetime) -> bool:
    """
    Force a due request to declined/system_expired.

    Only the caller that wins the compare-and-set writes the DeclineRecord
    and timeline event; everyone else gets ``False``. Does not commit.
    """
    if not is_due(request, now):
        return False

    from_status = request.status
    to_status = next_status(from_status, Action.EXPIRE, PartyRoleDB.SYSTEM)
    won = compare_and_set(db, request, from_status, to_status, {
        "expires_at": None,
        "decline_category": DeclineCategoryDB.SYSTEM_EXPIRED,
        "decline_reason": EXPIRED_REASON,
        "responded_at": now,
    })
    if not won:
        return False

    creator = db.query(CreatorProfile).filter(CreatorProfile.id == request.creator_id).one()
    # Recorded for the audit trail; system_expired is never scored
    record_decline(
        db, creator, request.id, DeclineCategoryDB.SYSTEM_EXPIRED, EXPIRED_REASON, now, TrustPolicyConfig()
    )
    record_event(
        db, request, Action.EXPIRE.value, from_status, to_status,
        PartyRoleDB.SYSTEM, None, now, note=EXPIRED_REASON,
    )
    logger.info(f"Request {request.reference_number} expired ({from_status.value} -> {to_status.value})")
    return True


def sweep_expired(db: Session, now: datetime, on_expired=None, limit: int = 500) -> int:
    """
    Expire every due request, one transaction each.

    Args:
        on_expired: optional callback(request) run after each commit
    """
    due = db.query(CollaborationRequest).filter(
        CollaborationRequest.status.in_([RequestStatusDB.PENDING, RequestStatusDB.VIEWED]),
        CollaborationRequest.expires_at.isnot(None),
        CollaborationRequest.expires_at <= now,
    ).order_by(CollaborationRequest.expires_at).limit(limit).all()

    expired = 0
    for request in due:
        try:
            if expire_if_due(db, request, now):
                db.commit()
                expired += 1
                if on_expired:
                    on_expired(request)
            else:
                db.rollback()
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to expire request {request.id}: {e}")
    return expired
