# Profile/Tier lookup
# Supplies a creator's current tier and platform-fee percentage, read-only.

from typing import NamedTuple

from sqlalchemy.orm import Session

from config.app_config import CREATOR_TIER_FEES, DEFAULT_FEE_PERCENT
from database.models import CreatorProfile
from services.errors import NotFoundError


class FeeQuote(NamedTuple):
    tier: str
    fee_percent: float


class TierProvider:
    """Reads the creator's tier from their profile and prices it from configuration."""

    def __init__(self, db: Session, tier_fees: dict = None, default_fee_percent: float = DEFAULT_FEE_PERCENT):
        self.db = db
        self.tier_fees = tier_fees if tier_fees is not None else CREATOR_TIER_FEES
        self.default_fee_percent = default_fee_percent

    def get_fee(self, creator_id: str) -> FeeQuote:
        profile = self.db.query(CreatorProfile).filter(CreatorProfile.id == creator_id).first()
        if not profile:
            raise NotFoundError("Creator not found", {"creator_id": creator_id})

        tier = profile.tier.value if profile.tier else "nano"
        fee_percent = float(self.tier_fees.get(tier, self.default_fee_percent))
        return FeeQuote(tier=tier, fee_percent=fee_percent)
