# Persistence helpers shared by the request orchestrator and the expiry policy

import random
import string
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from database.collaboration_models import (
    CollaborationRequest, RequestEvent, RequestStatusDB, PartyRoleDB,
)


def generate_reference_number(db: Session, now: datetime) -> str:
    """Generate a unique reference like COL-2024-004821. Requests are never deleted, so numbers are never reused."""
    while True:
        random_part = ''.join(random.choices(string.digits, k=6))
        reference = f"COL-{now.year}-{random_part}"
        exists = db.query(CollaborationRequest.id).filter(
            CollaborationRequest.reference_number == reference
        ).first()
        if not exists:
            return reference


def compare_and_set(
    db: Session,
    request: CollaborationRequest,
    expected: RequestStatusDB,
    new_status: RequestStatusDB,
    values: Optional[dict] = None,
) -> bool:
    """
    Move ``request`` from ``expected`` to ``new_status`` and apply ``values`` in one UPDATE.

    The row only changes if both its status and version still match what this
    session loaded; the loser of a race gets ``False`` and must not apply side effects.
    """
    changes = dict(values or {})
    changes["status"] = new_status
    changes["version"] = request.version + 1

    updated = db.query(CollaborationRequest).filter(
        CollaborationRequest.id == request.id,
        CollaborationRequest.status == expected,
        CollaborationRequest.version == request.version,
    ).update(changes, synchronize_session=False)

    if updated == 0:
        return False

    db.refresh(request)
    return True


def record_event(
    db: Session,
    request: CollaborationRequest,
    action: str,
    from_status: Optional[RequestStatusDB],
    to_status: RequestStatusDB,
    actor_role: PartyRoleDB,
    actor_id: Optional[str],
    now: datetime,
    note: Optional[str] = None,
) -> RequestEvent:
    event = RequestEvent(
        request_id=request.id,
        action=action,
        from_status=from_status.value if from_status else None,
        to_status=to_status.value,
        actor_role=actor_role,
        actor_id=actor_id,
        note=note,
        created_at=now,
    )
    db.add(event)
    db.flush()
    return event
