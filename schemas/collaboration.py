# Pydantic Schemas for Collaboration Requests
# Request bodies validate shape only; business rules are enforced by the services

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Any, Dict
from datetime import date, datetime
from enum import Enum


# ============================================================================
# ENUMS
# ============================================================================

class RequestStatus(str, Enum):
    PENDING = "pending"
    VIEWED = "viewed"
    NEGOTIATING = "negotiating"
    ACCEPTED = "accepted"
    CONTRACT_PENDING = "contract_pending"
    CONTRACT_SIGNED = "contract_signed"
    PAYMENT_PENDING = "payment_pending"
    IN_PROGRESS = "in_progress"
    CONTENT_SUBMITTED = "content_submitted"
    REVISION_REQUESTED = "revision_requested"
    CONTENT_APPROVED = "content_approved"
    COMPLETED = "completed"
    DECLINED = "declined"
    CANCELLED = "cancelled"


class DeclineCategory(str, Enum):
    SCHEDULE = "schedule"
    BUDGET = "budget"
    NICHE = "niche"
    BRAND_FIT = "brand_fit"
    REQUIREMENTS = "requirements"
    OTHER = "other"


class EscrowStatus(str, Enum):
    PENDING = "pending"
    ESCROW = "escrow"
    RELEASED = "released"
    FAILED = "failed"


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class CollaborationRequestCreate(BaseModel):
    """Brand's opening offer to a creator."""
    creator_id: str
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    content_requirements: Optional[str] = None
    target_platforms: List[str] = []
    deliverables: List[str] = []
    service_ids: List[str] = []
    proposed_budget: int = Field(..., gt=0, description="Amount in kobo")
    proposed_start_date: date
    proposed_end_date: date
    max_revisions: Optional[int] = Field(None, ge=0, le=10)


class CounterOfferRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in kobo")
    message: Optional[str] = Field(None, max_length=1000)


class DeclineRequest(BaseModel):
    category: DeclineCategory
    reason: str


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class ContentSubmission(BaseModel):
    content_urls: List[str] = Field(..., min_length=1)
    notes: Optional[str] = None

    @validator('content_urls')
    def validate_urls(cls, v):
        cleaned = [url.strip() for url in v if url and url.strip()]
        if not cleaned:
            raise ValueError('At least one content link is required')
        return cleaned


class RevisionRequest(BaseModel):
    notes: str


class CollaborationRequestResponse(BaseModel):
    id: str
    reference_number: str
    brand_id: str
    creator_id: str
    title: str
    description: Optional[str] = None
    content_requirements: Optional[str] = None
    target_platforms: Optional[List[str]] = None
    deliverables: Optional[List[str]] = None
    selected_services: Optional[List[Dict[str, Any]]] = None
    proposed_budget: int
    final_budget: Optional[int] = None
    currency: str
    proposed_start_date: date
    proposed_end_date: date
    status: RequestStatus
    version: int
    expires_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    brand_signed_at: Optional[datetime] = None
    creator_signed_at: Optional[datetime] = None
    revision_count: int
    max_revisions: int
    revision_notes: Optional[str] = None
    submitted_content_urls: Optional[List[str]] = None
    decline_category: Optional[str] = None
    decline_reason: Optional[str] = None
    conversation_id: Optional[str] = None
    created_at: datetime
    approved_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    allowed_actions: List[str] = []  # For the caller, filled by the router

    @validator('status', 'decline_category', pre=True)
    def category_value(cls, v):
        return getattr(v, "value", v)

    class Config:
        from_attributes = True


class CountdownResponse(BaseModel):
    request_id: str
    status: RequestStatus
    expires_at: Optional[str] = None
    seconds_remaining: Optional[int] = None


class NegotiationEntryResponse(BaseModel):
    id: str
    sequence: int
    actor_role: str
    actor_id: str
    amount: int
    message: Optional[str] = None
    created_at: datetime

    @validator('actor_role', pre=True)
    def role_value(cls, v):
        return getattr(v, "value", v)

    class Config:
        from_attributes = True


class RequestEventResponse(BaseModel):
    id: str
    action: str
    from_status: Optional[str] = None
    to_status: str
    actor_role: str
    actor_id: Optional[str] = None
    note: Optional[str] = None
    created_at: datetime

    @validator('actor_role', pre=True)
    def role_value(cls, v):
        return getattr(v, "value", v)

    class Config:
        from_attributes = True


class DeclineResponse(BaseModel):
    request: CollaborationRequestResponse
    warning: Optional[str] = None
    suspended: bool = False
    suspended_until: Optional[datetime] = None


# ============================================================================
# CONTRACT SCHEMAS
# ============================================================================

class ContractResponse(BaseModel):
    request_id: str
    reference_number: str
    status: RequestStatus
    brand_name: Optional[str] = None
    creator_name: Optional[str] = None
    title: str
    deliverables: List[str] = []
    target_platforms: List[str] = []
    selected_services: List[Dict[str, Any]] = []
    final_budget: int
    currency: str
    proposed_start_date: date
    proposed_end_date: date
    max_revisions: int
    brand_signed_at: Optional[datetime] = None
    creator_signed_at: Optional[datetime] = None


# ============================================================================
# ESCROW SCHEMAS
# ============================================================================

class EscrowResponse(BaseModel):
    id: str
    request_id: str
    reference: str
    amount: int
    platform_fee: int
    creator_payout: int
    fee_percent: float
    tier: Optional[str] = None
    currency: str
    status: EscrowStatus
    escrow_at: Optional[datetime] = None
    escrow_released_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    created_at: datetime

    @validator('status', pre=True)
    def status_value(cls, v):
        return getattr(v, "value", v)

    class Config:
        from_attributes = True


class TransactionResponse(EscrowResponse):
    """An escrow record seen from one party's side."""
    reference_number: str
    title: str
    role: str  # brand pays, creator is paid


class RequestWithEscrowResponse(BaseModel):
    request: CollaborationRequestResponse
    escrow: EscrowResponse


class PaymentVerifyRequest(BaseModel):
    reference: str


class EarningsSummary(BaseModel):
    pending_earnings: int
    released_earnings: int
    total_platform_fees: int
    collaborations_in_escrow: int
    collaborations_paid: int


# ============================================================================
# AVAILABILITY SCHEMAS
# ============================================================================

class AvailabilitySlotCreate(BaseModel):
    start_date: date
    end_date: date
    reason: Optional[str] = Field(None, max_length=255)

    @validator('end_date')
    def validate_range(cls, v, values):
        start = values.get('start_date')
        if start and v < start:
            raise ValueError('end_date must be on or after start_date')
        return v


class AvailabilitySlotResponse(BaseModel):
    id: str
    start_date: date
    end_date: date
    reason: Optional[str] = None
    slot_type: str
    request_id: Optional[str] = None

    @validator('slot_type', pre=True)
    def slot_type_value(cls, v):
        return getattr(v, "value", v)

    class Config:
        from_attributes = True


class AvailabilitySettingsUpdate(BaseModel):
    is_available: Optional[bool] = None
    lead_time_days: Optional[int] = Field(None, ge=0, le=365)


class AvailabilityResponse(BaseModel):
    creator_id: str
    is_available: bool
    lead_time_days: int
    slots: List[AvailabilitySlotResponse] = []


class AvailabilityCheckRequest(BaseModel):
    creator_id: str
    proposed_start_date: date
    proposed_end_date: date


class AvailabilityCheckResponse(BaseModel):
    allowed: bool
    conflict_type: Optional[str] = None
    message: Optional[str] = None
    detail: Dict[str, Any] = {}


# ============================================================================
# CREATOR SCHEMAS
# ============================================================================

class RateCardResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    platform: str
    content_type: str
    price: int
    currency: str

    class Config:
        from_attributes = True


class CreatorPublicProfile(BaseModel):
    id: str
    display_name: str
    tier: str
    is_available: bool
    lead_time_days: int
    rate_cards: List[RateCardResponse] = []

    @validator('tier', pre=True)
    def tier_value(cls, v):
        return getattr(v, "value", v)

    class Config:
        from_attributes = True


class CreatorSearchResponse(BaseModel):
    creators: List[CreatorPublicProfile]
    total: int
    page: int
    limit: int
    pages: int


class SuspensionStatusResponse(BaseModel):
    suspended: bool
    suspended_until: Optional[str] = None
    seconds_remaining: int = 0
    suspension_count: int = 0
    qualifying_declines: int = 0
    warning_threshold: int
    suspension_threshold: int


# ============================================================================
# NOTIFICATION SCHEMAS
# ============================================================================

class NotificationResponse(BaseModel):
    id: str
    type: str
    title: str
    message: Optional[str] = None
    action_url: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
