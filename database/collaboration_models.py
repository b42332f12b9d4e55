# Collaboration Request & Escrow Models
# Requests, their negotiation/timeline history, the trust ledger and escrow records

from sqlalchemy import Column, String, Integer, DateTime, Date, ForeignKey, Text, JSON, Boolean, Float, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from database.models import Base, generate_uuid, _enum_column


# ============================================================================
# ENUMS
# ============================================================================

class RequestStatusDB(str, enum.Enum):
    # Creator response
    PENDING = "pending"
    VIEWED = "viewed"
    NEGOTIATING = "negotiating"
    ACCEPTED = "accepted"

    # Commitment
    CONTRACT_PENDING = "contract_pending"
    CONTRACT_SIGNED = "contract_signed"
    PAYMENT_PENDING = "payment_pending"

    # Delivery & review
    IN_PROGRESS = "in_progress"
    CONTENT_SUBMITTED = "content_submitted"
    REVISION_REQUESTED = "revision_requested"
    CONTENT_APPROVED = "content_approved"

    # Terminal
    COMPLETED = "completed"
    DECLINED = "declined"
    CANCELLED = "cancelled"


class DeclineCategoryDB(str, enum.Enum):
    SCHEDULE = "schedule"
    BUDGET = "budget"
    NICHE = "niche"
    BRAND_FIT = "brand_fit"
    REQUIREMENTS = "requirements"
    OTHER = "other"
    SYSTEM_EXPIRED = "system_expired"  # Forced by the response window, never chosen


class EscrowStatusDB(str, enum.Enum):
    PENDING = "pending"
    ESCROW = "escrow"
    RELEASED = "released"
    FAILED = "failed"


class PartyRoleDB(str, enum.Enum):
    BRAND = "brand"
    CREATOR = "creator"
    SYSTEM = "system"


# ============================================================================
# COLLABORATION REQUEST
# ============================================================================

class CollaborationRequest(Base):
    """A collaboration between one brand and one creator.

    Every status change goes through the collaboration service; the
    ``version`` column backs its compare-and-set update.
    """
    __tablename__ = "collaboration_requests"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    reference_number = Column(String(32), unique=True, nullable=False, index=True)

    # Parties
    brand_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    creator_id = Column(String(36), ForeignKey("creator_profiles.id"), nullable=False, index=True)

    # Content terms
    title = Column(String(255), nullable=False)
    description = Column(Text)
    content_requirements = Column(Text)
    target_platforms = Column(JSON)  # ["instagram", "tiktok"]
    deliverables = Column(JSON)  # Ordered list
    selected_services = Column(JSON)  # Rate card snapshots

    # Commercial terms
    proposed_budget = Column(Integer, nullable=False)  # Offer currently on the table
    final_budget = Column(Integer, nullable=True)  # Locked at acceptance
    currency = Column(String(3), default="NGN")
    proposed_start_date = Column(Date, nullable=False)
    proposed_end_date = Column(Date, nullable=False)

    # Lifecycle
    status = _enum_column(RequestStatusDB, "requeststatusdb", default=RequestStatusDB.PENDING, nullable=False, index=True)
    version = Column(Integer, default=1, nullable=False)
    expires_at = Column(DateTime, nullable=True)
    responded_at = Column(DateTime)

    # Contract
    brand_signed_at = Column(DateTime)
    creator_signed_at = Column(DateTime)

    # Delivery & review
    revision_count = Column(Integer, default=0, nullable=False)
    max_revisions = Column(Integer, default=2, nullable=False)
    revision_notes = Column(Text)
    submitted_content_urls = Column(JSON)
    content_submitted_at = Column(DateTime)
    approved_at = Column(DateTime)
    completed_at = Column(DateTime)

    # Decline
    decline_category = _enum_column(DeclineCategoryDB, "declinecategorydb", nullable=True)
    decline_reason = Column(Text)

    conversation_id = Column(String(36), nullable=True)

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("revision_count <= max_revisions", name="ck_request_revision_cap"),
        CheckConstraint("proposed_start_date <= proposed_end_date", name="ck_request_dates_ordered"),
    )

    # Relationships
    brand = relationship("User")
    creator = relationship("CreatorProfile")
    negotiations = relationship("NegotiationEntry", back_populates="request", order_by="NegotiationEntry.sequence")
    events = relationship("RequestEvent", back_populates="request", order_by="RequestEvent.created_at")
    escrow = relationship("EscrowRecord", back_populates="request", uselist=False)  # One-to-one


# ============================================================================
# NEGOTIATION LEDGER
# ============================================================================

class NegotiationEntry(Base):
    """Append-only counter-offer history for a request."""
    __tablename__ = "negotiation_entries"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    request_id = Column(String(36), ForeignKey("collaboration_requests.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)

    actor_role = _enum_column(PartyRoleDB, "partyroledb", nullable=False)
    actor_id = Column(String(36), nullable=False)
    amount = Column(Integer, nullable=False)
    message = Column(Text)

    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("request_id", "sequence", name="uq_negotiation_sequence"),
    )

    request = relationship("CollaborationRequest", back_populates="negotiations")


# ============================================================================
# TIMELINE
# ============================================================================

class RequestEvent(Base):
    """One row per committed status transition."""
    __tablename__ = "request_events"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    request_id = Column(String(36), ForeignKey("collaboration_requests.id"), nullable=False, index=True)

    action = Column(String(50), nullable=False)
    from_status = Column(String(30))
    to_status = Column(String(30), nullable=False)
    actor_role = _enum_column(PartyRoleDB, "partyroledb", nullable=False)
    actor_id = Column(String(36))
    note = Column(Text)

    created_at = Column(DateTime, nullable=False)

    request = relationship("CollaborationRequest", back_populates="events")


# ============================================================================
# TRUST LEDGER
# ============================================================================

class DeclineRecord(Base):
    """Append-only decline entry. Exactly one per decline transition."""
    __tablename__ = "decline_records"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    creator_id = Column(String(36), ForeignKey("creator_profiles.id"), nullable=False, index=True)
    request_id = Column(String(36), ForeignKey("collaboration_requests.id"), unique=True, nullable=False)

    category = _enum_column(DeclineCategoryDB, "declinecategorydb", nullable=False)
    reason = Column(Text, nullable=False)

    created_at = Column(DateTime, nullable=False, index=True)


# ============================================================================
# ESCROW
# ============================================================================

class EscrowRecord(Base):
    """Funds held for a request. Never deleted (financial audit trail)."""
    __tablename__ = "escrow_records"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    request_id = Column(String(36), ForeignKey("collaboration_requests.id"), unique=True, nullable=False)
    reference = Column(String(100), unique=True, nullable=False, index=True)

    amount = Column(Integer, nullable=False)  # Total collected
    platform_fee = Column(Integer, nullable=False)
    creator_payout = Column(Integer, nullable=False)  # amount - platform_fee
    fee_percent = Column(Float, nullable=False)  # Snapshot at initialization
    tier = Column(String(20))  # Snapshot at initialization
    currency = Column(String(3), default="NGN")

    status = _enum_column(EscrowStatusDB, "escrowstatusdb", default=EscrowStatusDB.PENDING, nullable=False)
    escrow_at = Column(DateTime)
    escrow_released_at = Column(DateTime)
    failed_at = Column(DateTime)
    failure_reason = Column(Text)

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("amount = creator_payout + platform_fee", name="ck_escrow_balanced"),
    )

    request = relationship("CollaborationRequest", back_populates="escrow")


# ============================================================================
# CONVERSATION
# ============================================================================

class Conversation(Base):
    """Thread handle for a (brand, creator, request) triple."""
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    brand_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    creator_id = Column(String(36), ForeignKey("creator_profiles.id"), nullable=False)
    request_id = Column(String(36), ForeignKey("collaboration_requests.id"), nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("brand_id", "creator_id", "request_id", name="uq_conversation_parties"),
    )


# ============================================================================
# NOTIFICATION
# ============================================================================

class Notification(Base):
    """User notifications."""
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(String(50), nullable=False)  # request_received, escrow_released, etc.
    title = Column(String(200), nullable=False)
    message = Column(Text)
    action_url = Column(String(500))
    data = Column(JSON)  # Additional context (request_id, amount, etc.)

    is_read = Column(Boolean, default=False)
    read_at = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now())
