# Creators Router
# Public creator exposure (gated by suspension) and the creator's own trust standing

from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from typing import Optional

from database.config import get_db
from database.models import User, CreatorProfile, CreatorTier, RateCard
from schemas.collaboration import (
    CreatorPublicProfile, CreatorSearchResponse, RateCardResponse, SuspensionStatusResponse,
)
from auth.decorators import require_creator, require_party
from services.clock import Clock, get_clock
from services.errors import NotFoundError
from services.trust_policy import (
    TrustPolicyConfig, count_qualifying_declines, ensure_not_suspended, suspension_status,
)

router = APIRouter(prefix="/creators", tags=["Creators"])


def _profile_to_response(db: Session, profile: CreatorProfile) -> CreatorPublicProfile:
    rate_cards = db.query(RateCard).filter(
        RateCard.creator_id == profile.id,
        RateCard.is_active == True,
    ).all()
    return CreatorPublicProfile(
        id=profile.id,
        display_name=profile.display_name,
        tier=profile.tier,
        is_available=profile.is_available,
        lead_time_days=profile.lead_time_days,
        rate_cards=[RateCardResponse.model_validate(c) for c in rate_cards],
    )


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@router.get("", response_model=CreatorSearchResponse)
async def search_creators(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_party),
    query: Optional[str] = Query(None, description="Search by display name"),
    tier: Optional[CreatorTier] = Query(None, description="Filter by tier"),
    platform: Optional[str] = Query(None, description="Filter by rate card platform"),
    available_only: bool = Query(False, description="Only creators taking new work"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Results per page"),
):
    """
    Browse creators brands can send requests to.
    Suspended creators are left out until their suspension lapses.
    """
    now = clock.now()
    base_query = db.query(CreatorProfile).filter(
        or_(CreatorProfile.suspended_until.is_(None), CreatorProfile.suspended_until <= now)
    )

    if query:
        base_query = base_query.filter(CreatorProfile.display_name.ilike(f"%{query}%"))

    if tier:
        base_query = base_query.filter(CreatorProfile.tier == tier)

    if available_only:
        base_query = base_query.filter(CreatorProfile.is_available == True)

    if platform:
        base_query = base_query.filter(CreatorProfile.rate_cards.any(
            and_(RateCard.platform == platform.strip().lower(), RateCard.is_active == True)
        ))

    total = base_query.count()
    profiles = base_query.order_by(CreatorProfile.display_name, CreatorProfile.id).offset(
        (page - 1) * limit
    ).limit(limit).all()

    return CreatorSearchResponse(
        creators=[_profile_to_response(db, p) for p in profiles],
        total=total,
        page=page,
        limit=limit,
        pages=(total + limit - 1) // limit,
    )


@router.get("/me/suspension", response_model=SuspensionStatusResponse)
async def get_my_suspension_status(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_creator),
):
    """Countdown data for the creator dashboard banner."""
    profile = db.query(CreatorProfile).filter(CreatorProfile.user_id == current_user.id).first()
    if not profile:
        raise NotFoundError("Creator profile not found")

    now = clock.now()
    config = TrustPolicyConfig()
    return SuspensionStatusResponse(
        **suspension_status(profile, now),
        suspension_count=profile.suspension_count or 0,
        qualifying_declines=count_qualifying_declines(db, profile.id, now, config),
        warning_threshold=config.warning_threshold,
        suspension_threshold=config.suspension_threshold,
    )


@router.get("/{creator_id}", response_model=CreatorPublicProfile)
async def get_creator(
    creator_id: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_party),
):
    """Public profile. Suspended creators are hidden until the suspension lapses."""
    profile = db.query(CreatorProfile).filter(CreatorProfile.id == creator_id).first()
    if not profile:
        raise NotFoundError("Creator not found", {"creator_id": creator_id})

    ensure_not_suspended(profile, clock.now())
    return _profile_to_response(db, profile)
