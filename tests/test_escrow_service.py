import pytest

from database.models import CreatorTier
from database.collaboration_models import EscrowRecord, EscrowStatusDB, RequestStatusDB
from services.errors import IntegrityError, InvalidTransitionError, NotFoundError, ValidationError
from services.escrow_service import EscrowService, calculate_platform_fee
from services.tier_service import TierProvider
from tests.conftest import make_creator, make_request


@pytest.mark.parametrize("amount,percent,expected", [
    (50000, 10, 5000),
    (12345, 7.5, 926),
    (10, 5, 1),
    (100, 0, 0),
])
def test_platform_fee_rounds_half_up(amount, percent, expected):
    assert calculate_platform_fee(amount, percent) == expected


@pytest.fixture
def escrow(db, gateway, tier_provider, clock):
    return EscrowService(db, gateway, tier_provider, clock)


@pytest.fixture
def signed_request(db, brand, creator):
    _, profile = creator
    return make_request(db, brand, profile, status=RequestStatusDB.PAYMENT_PENDING, final_budget=50000)


def open_escrow(db, escrow, request):
    record = escrow.initialize(request)
    db.commit()
    return record


def test_initialize_snapshots_fee_from_tier(db, escrow, gateway, signed_request):
    record = open_escrow(db, escrow, signed_request)

    assert record.status == EscrowStatusDB.PENDING
    assert record.amount == 50000
    assert record.platform_fee == 5000
    assert record.creator_payout == 45000
    assert record.fee_percent == 10
    assert record.tier == "nano"

    metadata = gateway.charges[record.reference]["metadata"]
    assert metadata["request_id"] == signed_request.id
    assert metadata["creator_payout"] == 45000
    assert metadata["email"] == "brand@example.com"


def test_fee_snapshot_survives_a_later_tier_change(db, escrow, signed_request, creator):
    _, profile = creator
    record = open_escrow(db, escrow, signed_request)

    profile.tier = CreatorTier.MEGA
    db.commit()
    escrow.confirm(record.reference)
    db.commit()

    assert record.platform_fee == 5000
    assert record.tier == "nano"


def test_tier_fee_override(db, gateway, clock, brand):
    _, profile = make_creator(db, email="mid@example.com", tier=CreatorTier.MID)
    request = make_request(db, brand, profile, status=RequestStatusDB.PAYMENT_PENDING, final_budget=12345)
    service = EscrowService(db, gateway, TierProvider(db, tier_fees={"mid": 7.5}), clock)

    record = service.initialize(request)

    assert record.platform_fee == 926
    assert record.creator_payout == 11419


def test_initialize_requires_agreed_budget(db, escrow, brand, creator):
    _, profile = creator
    request = make_request(db, brand, profile, status=RequestStatusDB.PAYMENT_PENDING)

    with pytest.raises(InvalidTransitionError):
        escrow.initialize(request)


def test_initialize_rejects_amount_below_minimum(db, escrow, brand, creator):
    _, profile = creator
    request = make_request(db, brand, profile, status=RequestStatusDB.PAYMENT_PENDING, final_budget=50)

    with pytest.raises(ValidationError):
        escrow.initialize(request)


def test_second_initialize_is_rejected(db, escrow, signed_request):
    open_escrow(db, escrow, signed_request)

    with pytest.raises(InvalidTransitionError):
        escrow.initialize(signed_request)


def test_confirm_is_idempotent(db, escrow, clock, signed_request):
    record = open_escrow(db, escrow, signed_request)

    escrow.confirm(record.reference, 50000)
    db.commit()
    first_escrow_at = record.escrow_at

    clock.advance(minutes=5)
    escrow.confirm(record.reference, 50000)
    db.commit()

    assert record.status == EscrowStatusDB.ESCROW
    assert record.escrow_at == first_escrow_at


def test_confirm_with_wrong_amount_is_an_integrity_error(db, escrow, signed_request):
    record = open_escrow(db, escrow, signed_request)

    with pytest.raises(IntegrityError):
        escrow.confirm(record.reference, 49999)
    db.rollback()

    db.refresh(record)
    assert record.status == EscrowStatusDB.PENDING


def test_confirm_unknown_reference(escrow):
    with pytest.raises(NotFoundError):
        escrow.confirm("PSK-NOPE")


def test_release_before_funding_is_an_integrity_error(db, escrow, signed_request):
    open_escrow(db, escrow, signed_request)

    with pytest.raises(IntegrityError):
        escrow.release(signed_request.id)


def test_double_release_is_an_integrity_error(db, escrow, signed_request):
    record = open_escrow(db, escrow, signed_request)
    escrow.confirm(record.reference)
    escrow.release(signed_request.id)
    db.commit()

    assert record.status == EscrowStatusDB.RELEASED
    with pytest.raises(IntegrityError):
        escrow.release(signed_request.id)


def test_release_without_record_is_an_integrity_error(escrow, signed_request):
    with pytest.raises(IntegrityError):
        escrow.release(signed_request.id)


def test_unbalanced_record_is_refused(db, escrow, signed_request):
    record = open_escrow(db, escrow, signed_request)
    escrow.confirm(record.reference)
    db.commit()

    record.platform_fee = 1
    with pytest.raises(IntegrityError) as exc_info:
        escrow.release(signed_request.id)

    assert exc_info.value.detail["reference"] == record.reference
    db.rollback()


def test_failed_payment_can_be_reinitialized_in_place(db, escrow, signed_request):
    record = open_escrow(db, escrow, signed_request)
    first_reference = record.reference

    escrow.mark_failed(first_reference, "Card declined")
    db.commit()
    assert record.status == EscrowStatusDB.FAILED
    assert record.failure_reason == "Card declined"

    retried = open_escrow(db, escrow, signed_request)

    assert retried.id == record.id
    assert retried.reference != first_reference
    assert retried.status == EscrowStatusDB.PENDING
    assert db.query(EscrowRecord).count() == 1


def test_reinitialize_that_loses_the_race_is_rejected(db, escrow, signed_request, monkeypatch):
    record = open_escrow(db, escrow, signed_request)
    escrow.mark_failed(record.reference, "Card declined")
    db.commit()

    # Another retry re-opened the record first
    monkeypatch.setattr(escrow, "_compare_and_set", lambda *args: False)
    with pytest.raises(InvalidTransitionError):
        escrow.initialize(signed_request)


def test_failed_payment_cannot_be_confirmed(db, escrow, signed_request):
    record = open_escrow(db, escrow, signed_request)
    escrow.mark_failed(record.reference, "Card declined")
    db.commit()

    with pytest.raises(InvalidTransitionError):
        escrow.confirm(record.reference)


def test_funded_payment_cannot_be_failed(db, escrow, signed_request):
    record = open_escrow(db, escrow, signed_request)
    escrow.confirm(record.reference)
    db.commit()

    with pytest.raises(InvalidTransitionError):
        escrow.mark_failed(record.reference, "Late failure")


def test_earnings_summary(db, escrow, brand, creator):
    _, profile = creator
    held = make_request(db, brand, profile, status=RequestStatusDB.PAYMENT_PENDING, final_budget=50000)
    paid = make_request(db, brand, profile, status=RequestStatusDB.PAYMENT_PENDING, final_budget=20000)
    unfunded = make_request(db, brand, profile, status=RequestStatusDB.PAYMENT_PENDING, final_budget=9000)

    escrow.confirm(open_escrow(db, escrow, held).reference)
    escrow.confirm(open_escrow(db, escrow, paid).reference)
    escrow.release(paid.id)
    open_escrow(db, escrow, unfunded)
    db.commit()

    summary = escrow.earnings_summary(profile.id)

    assert summary == {
        "pending_earnings": 45000,
        "released_earnings": 18000,
        "total_platform_fees": 7000,
        "collaborations_in_escrow": 1,
        "collaborations_paid": 1,
    }
