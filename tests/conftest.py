import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.paystack_service import ChargeVerification, PaymentGateway, charge_outcome
from database.models import Base, User, UserType, CreatorProfile, CreatorTier, RateCard
from database import collaboration_models  # noqa: F401
from database.collaboration_models import CollaborationRequest, RequestStatusDB
from services.clock import FixedClock
from services.errors import PaymentGatewayError
from services.collaboration_service import CollaborationService
from services.tier_service import TierProvider


START = datetime(2024, 1, 1, 9, 0, 0)


class FakeGateway(PaymentGateway):
    """In-memory stand-in for Paystack. Charges stay pending until settled."""

    def __init__(self):
        self.charges = {}
        self.fail_initialize = False

    def initialize_charge(self, amount, metadata):
        if self.fail_initialize:
            raise PaymentGatewayError("Gateway unavailable")
        reference = f"PSK-TEST-{len(self.charges) + 1:04d}"
        self.charges[reference] = {"amount": amount, "metadata": metadata, "status": "pending", "captured": 0}
        return reference

    def settle(self, reference, success=True, captured=None, status=None):
        charge = self.charges[reference]
        charge["status"] = status or ("success" if success else "failed")
        charge["captured"] = charge["amount"] if captured is None else captured

    def verify_charge(self, reference):
        charge = self.charges[reference]
        return ChargeVerification(
            outcome=charge_outcome(charge["status"]),
            amount_captured=charge["captured"],
            gateway_status=charge["status"],
        )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed database so separate sessions hold separate connections."""
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def service(db, clock, gateway):
    return CollaborationService(db, clock, gateway)


def make_brand(db, email="brand@example.com", name="Acme Foods"):
    user = User(email=email, name=name, user_type=UserType.BRAND)
    db.add(user)
    db.commit()
    return user


def make_creator(db, email="creator@example.com", display_name="Ada Creates",
                 tier=CreatorTier.NANO, lead_time_days=3, is_available=True):
    user = User(email=email, name=display_name, user_type=UserType.CREATOR)
    db.add(user)
    db.flush()
    profile = CreatorProfile(
        user_id=user.id,
        display_name=display_name,
        tier=tier,
        lead_time_days=lead_time_days,
        is_available=is_available,
        suspension_count=0,
    )
    db.add(profile)
    db.commit()
    return user, profile


def make_rate_card(db, profile, name="Instagram Reel", price=30000):
    card = RateCard(
        creator_id=profile.id,
        name=name,
        platform="instagram",
        content_type="reel",
        price=price,
        currency="NGN",
        is_active=True,
    )
    db.add(card)
    db.commit()
    return card


def make_request(db, brand, profile, status=RequestStatusDB.PENDING, created_at=START, **overrides):
    """Insert a request directly, bypassing the orchestrator."""
    values = dict(
        reference_number=f"COL-2024-{len(db.query(CollaborationRequest).all()) + 1:06d}",
        brand_id=brand.id,
        creator_id=profile.id,
        title="Launch campaign",
        proposed_budget=50000,
        currency="NGN",
        proposed_start_date=date(2024, 1, 10),
        proposed_end_date=date(2024, 1, 12),
        status=status,
        version=1,
        revision_count=0,
        max_revisions=2,
        created_at=created_at,
    )
    values.update(overrides)
    request = CollaborationRequest(**values)
    db.add(request)
    db.commit()
    return request


@pytest.fixture
def brand(db):
    return make_brand(db)


@pytest.fixture
def creator(db):
    return make_creator(db)


@pytest.fixture
def tier_provider(db):
    return TierProvider(db)
