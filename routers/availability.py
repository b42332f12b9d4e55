# Availability Router
# Creator calendar management and the brand-side pre-submission check

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database.config import get_db
from database.models import User, CreatorProfile, AvailabilitySlot, SlotType
from schemas.collaboration import (
    AvailabilityResponse,
    AvailabilitySettingsUpdate,
    AvailabilitySlotCreate,
    AvailabilitySlotResponse,
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
)
from auth.decorators import require_brand, require_creator, require_party
from services.availability import Conflict, check_conflict
from services.clock import Clock, get_clock
from services.errors import NotFoundError, PermissionDeniedError, ConflictType
from services.trust_policy import ensure_not_suspended, is_suspended, suspension_status

router = APIRouter(prefix="/availability", tags=["Availability"])


def _get_own_profile(db: Session, user: User) -> CreatorProfile:
    profile = db.query(CreatorProfile).filter(CreatorProfile.user_id == user.id).first()
    if not profile:
        raise NotFoundError("Creator profile not found")
    return profile


def _get_profile(db: Session, creator_id: str) -> CreatorProfile:
    profile = db.query(CreatorProfile).filter(CreatorProfile.id == creator_id).first()
    if not profile:
        raise NotFoundError("Creator not found", {"creator_id": creator_id})
    return profile


def _availability(profile: CreatorProfile) -> AvailabilityResponse:
    return AvailabilityResponse(
        creator_id=profile.id,
        is_available=profile.is_available,
        lead_time_days=profile.lead_time_days,
        slots=[AvailabilitySlotResponse.model_validate(s) for s in profile.slots],
    )


# ============================================================================
# CREATOR ENDPOINTS
# ============================================================================

@router.get("/me", response_model=AvailabilityResponse)
async def get_my_availability(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_creator),
):
    return _availability(_get_own_profile(db, current_user))


@router.put("/me", response_model=AvailabilityResponse)
async def update_my_availability(
    data: AvailabilitySettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_creator),
):
    """Toggle availability or change the minimum notice period."""
    profile = _get_own_profile(db, current_user)

    if data.is_available is not None:
        profile.is_available = data.is_available
    if data.lead_time_days is not None:
        profile.lead_time_days = data.lead_time_days

    db.commit()
    db.refresh(profile)
    return _availability(profile)


@router.post("/me/slots", response_model=AvailabilitySlotResponse, status_code=status.HTTP_201_CREATED)
async def add_blocked_slot(
    data: AvailabilitySlotCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_creator),
):
    """Block out dates. Blocked ranges may overlap each other and booked ranges."""
    profile = _get_own_profile(db, current_user)

    slot = AvailabilitySlot(
        creator_id=profile.id,
        start_date=data.start_date,
        end_date=data.end_date,
        reason=data.reason,
        slot_type=SlotType.BLOCKED,
    )
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return AvailabilitySlotResponse.model_validate(slot)


@router.delete("/me/slots/{slot_id}")
async def delete_blocked_slot(
    slot_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_creator),
):
    profile = _get_own_profile(db, current_user)

    slot = db.query(AvailabilitySlot).filter(
        AvailabilitySlot.id == slot_id,
        AvailabilitySlot.creator_id == profile.id,
    ).first()
    if not slot:
        raise NotFoundError("Slot not found", {"slot_id": slot_id})

    if slot.slot_type == SlotType.BOOKED:
        raise PermissionDeniedError(
            "Booked dates belong to an accepted collaboration and cannot be removed",
            {"slot_id": slot.id, "request_id": slot.request_id},
        )

    db.delete(slot)
    db.commit()
    return {"status": "success"}


# ============================================================================
# BRAND ENDPOINTS
# ============================================================================

@router.get("/{creator_id}", response_model=AvailabilityResponse)
async def get_creator_availability(
    creator_id: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_party),
):
    profile = _get_profile(db, creator_id)
    ensure_not_suspended(profile, clock.now())
    return _availability(profile)


@router.post("/check", response_model=AvailabilityCheckResponse)
async def check_availability(
    data: AvailabilityCheckRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_brand),
):
    """
    Pre-submission check so the form can show the conflict before the brand sends anything.
    Suspension is reported the same way as a calendar conflict.
    """
    profile = _get_profile(db, data.creator_id)
    now = clock.now()

    if is_suspended(profile, now):
        detail = suspension_status(profile, now)
        return AvailabilityCheckResponse(
            allowed=False,
            conflict_type=ConflictType.SUSPENDED.value,
            message="This creator is temporarily unavailable",
            detail={"suspended_until": detail["suspended_until"], "seconds_remaining": detail["seconds_remaining"]},
        )

    result = check_conflict(profile, data.proposed_start_date, data.proposed_end_date, now.date())
    if isinstance(result, Conflict):
        return AvailabilityCheckResponse(
            allowed=False,
            conflict_type=result.type.value,
            message=result.message,
            detail=result.detail,
        )
    return AvailabilityCheckResponse(allowed=True)
