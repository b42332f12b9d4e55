# Decline / Trust Policy
# Per-creator decline ledger and the warnings and suspensions derived from it.

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from config import app_config
from database.models import CreatorProfile
from database.collaboration_models import DeclineRecord, DeclineCategoryDB
from services.errors import ConflictError, ConflictType

logger = logging.getLogger(__name__)

# Categories a creator may choose when declining
CREATOR_DECLINE_CATEGORIES = frozenset(c for c in DeclineCategoryDB if c != DeclineCategoryDB.SYSTEM_EXPIRED)


@dataclass(frozen=True)
class TrustPolicyConfig:
    """Thresholds and durations. Counts are of qualifying declines inside the trailing window."""
    window_days: int = app_config.DECLINE_WINDOW_DAYS
    warning_threshold: int = app_config.DECLINE_WARNING_THRESHOLD
    suspension_threshold: int = app_config.DECLINE_SUSPENSION_THRESHOLD
    base_suspension_hours: int = app_config.SUSPENSION_BASE_HOURS
    escalation_factor: int = app_config.SUSPENSION_ESCALATION_FACTOR
    max_suspension_hours: int = app_config.SUSPENSION_MAX_HOURS

    def suspension_hours(self, prior_suspensions: int) -> int:
        hours = self.base_suspension_hours * (self.escalation_factor ** prior_suspensions)
        return min(hours, self.max_suspension_hours)


@dataclass(frozen=True)
class TrustOutcome:
    suspended: bool = False
    suspended_until: Optional[datetime] = None
    warning: Optional[str] = None
    qualifying_declines: int = 0


def count_qualifying_declines(db: Session, creator_id: str, now: datetime, config: TrustPolicyConfig) -> int:
    window_start = now - timedelta(days=config.window_days)
    return db.query(DeclineRecord).filter(
        DeclineRecord.creator_id == creator_id,
        DeclineRecord.category != DeclineCategoryDB.SYSTEM_EXPIRED,
        DeclineRecord.created_at >= window_start,
    ).count()


def record_decline(
    db: Session,
    creator: CreatorProfile,
    request_id: str,
    category: DeclineCategoryDB,
    reason: str,
    now: datetime,
    config: TrustPolicyConfig,
) -> TrustOutcome:
    """
    Append a DeclineRecord and re-score the creator.

    Runs inside the caller's transaction so the decline transition and the
    trust update commit together. ``system_expired`` declines are recorded
    but never scored.
    """
    category = DeclineCategoryDB(category)
    db.add(DeclineRecord(
        creator_id=creator.id,
        request_id=request_id,
        category=category,
        reason=reason,
        created_at=now,
    ))
    db.flush()

    if category == DeclineCategoryDB.SYSTEM_EXPIRED:
        return TrustOutcome()

    count = count_qualifying_declines(db, creator.id, now, config)

    if count >= config.suspension_threshold:
        hours = config.suspension_hours(creator.suspension_count or 0)
        suspended_until = now + timedelta(hours=hours)
        # An active longer suspension is never shortened
        if creator.suspended_until is not None and creator.suspended_until > suspended_until:
            suspended_until = creator.suspended_until
        creator.suspended_until = suspended_until
        creator.suspension_count = (creator.suspension_count or 0) + 1
        db.flush()
        logger.warning(
            f"Creator {creator.id} suspended until {suspended_until.isoformat()} "
            f"after {count} declines in {config.window_days} days"
        )
        return TrustOutcome(suspended=True, suspended_until=suspended_until, qualifying_declines=count)

    if count >= config.warning_threshold:
        remaining = config.suspension_threshold - count
        warning = (
            f"You have declined {count} requests in the last {config.window_days} days. "
            f"{remaining} more will temporarily suspend your profile."
        )
        return TrustOutcome(warning=warning, qualifying_declines=count)

    return TrustOutcome(qualifying_declines=count)


def is_suspended(creator: CreatorProfile, now: datetime) -> bool:
    return creator.suspended_until is not None and now < creator.suspended_until


def suspension_status(creator: CreatorProfile, now: datetime) -> dict:
    """Read-only projection for countdown rendering."""
    if not is_suspended(creator, now):
        return {"suspended": False, "suspended_until": None, "seconds_remaining": 0}
    return {
        "suspended": True,
        "suspended_until": creator.suspended_until.isoformat(),
        "seconds_remaining": int((creator.suspended_until - now).total_seconds()),
    }


def ensure_not_suspended(creator: CreatorProfile, now: datetime) -> None:
    """Gate for any point where a creator is exposed to brands."""
    if is_suspended(creator, now):
        status = suspension_status(creator, now)
        raise ConflictError(
            ConflictType.SUSPENDED,
            f"This creator is temporarily suspended until {creator.suspended_until.isoformat()}",
            {"suspended_until": status["suspended_until"], "seconds_remaining": status["seconds_remaining"]},
        )
