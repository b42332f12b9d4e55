# Database Models for the Creator Collaboration Platform
# Parties (users, creator profiles) and the creator's calendar

from sqlalchemy import Column, String, Integer, DateTime, Date, ForeignKey, Text, Enum, Boolean, CheckConstraint
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum

Base = declarative_base()

def generate_uuid():
    return str(uuid.uuid4())


def _enum_column(enum_cls, name, **kwargs):
    return Column(
        Enum(enum_cls, values_callable=lambda x: [e.value for e in x], name=name),
        **kwargs
    )


# Enums
class UserType(str, enum.Enum):
    BRAND = "brand"
    CREATOR = "creator"
    ADMIN = "admin"


class CreatorTier(str, enum.Enum):
    NANO = "nano"
    MICRO = "micro"
    MID = "mid"
    MACRO = "macro"
    MEGA = "mega"


class SlotType(str, enum.Enum):
    BLOCKED = "blocked"   # Creator-managed
    BOOKED = "booked"     # System-managed, created on acceptance


# Models
class User(Base):
    """Platform account. Owned by the auth service; read-only here."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255))
    user_type = _enum_column(UserType, "usertype", default=UserType.BRAND, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    creator_profile = relationship("CreatorProfile", back_populates="user", uselist=False)


class CreatorProfile(Base):
    """Creator-facing profile: availability settings and trust state."""
    __tablename__ = "creator_profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    display_name = Column(String(100), nullable=False)
    tier = _enum_column(CreatorTier, "creatortier", default=CreatorTier.NANO, nullable=False)

    # Availability
    is_available = Column(Boolean, default=True, nullable=False)
    lead_time_days = Column(Integer, default=3, nullable=False)

    # Trust / suspension
    suspended_until = Column(DateTime, nullable=True)
    suspension_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("lead_time_days >= 0", name="ck_creator_lead_time_non_negative"),
    )

    # Relationships
    user = relationship("User", back_populates="creator_profile")
    slots = relationship("AvailabilitySlot", back_populates="creator", cascade="all, delete-orphan",
                         order_by="AvailabilitySlot.start_date")
    rate_cards = relationship("RateCard", back_populates="creator", cascade="all, delete-orphan")


class AvailabilitySlot(Base):
    """A date range the creator cannot take new work in. Ranges may overlap."""
    __tablename__ = "availability_slots"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    creator_id = Column(String(36), ForeignKey("creator_profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(String(255))
    slot_type = _enum_column(SlotType, "slottype", default=SlotType.BLOCKED, nullable=False)
    request_id = Column(String(36), nullable=True)  # Set for booked slots

    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_slot_range_ordered"),
    )

    creator = relationship("CreatorProfile", back_populates="slots")


class RateCard(Base):
    """Creator price list item. Requests copy a snapshot at creation time."""
    __tablename__ = "rate_cards"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    creator_id = Column(String(36), ForeignKey("creator_profiles.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(200), nullable=False)
    description = Column(Text)
    platform = Column(String(50), nullable=False)
    content_type = Column(String(50), nullable=False)  # post, story, reel, video
    price = Column(Integer, nullable=False)  # Smallest currency unit
    currency = Column(String(3), default="NGN")
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    creator = relationship("CreatorProfile", back_populates="rate_cards")

    def snapshot(self) -> dict:
        return {
            "rate_card_id": self.id,
            "name": self.name,
            "platform": self.platform,
            "content_type": self.content_type,
            "price": self.price,
            "currency": self.currency,
        }
