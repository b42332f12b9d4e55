from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from database.models import Base, CreatorProfile
from database.collaboration_models import (
    CollaborationRequest, DeclineCategoryDB, DeclineRecord, RequestEvent, RequestStatusDB,
)
from services.expiry_policy import (
    EXPIRED_REASON, compute_expires_at, expire_if_due, is_due, seconds_remaining, sweep_expired,
)
from tests.conftest import START, make_brand, make_creator, make_request

DEADLINE = START + timedelta(hours=48)


def pending_request(db, brand, profile, **overrides):
    overrides.setdefault("expires_at", compute_expires_at(START, 48))
    return make_request(db, brand, profile, **overrides)


def test_compute_expires_at_adds_window():
    assert compute_expires_at(START, 48) == DEADLINE


def test_seconds_remaining_counts_down_and_floors_at_zero(db, brand, creator):
    _, profile = creator
    request = pending_request(db, brand, profile)

    assert seconds_remaining(request, START) == 48 * 3600
    assert seconds_remaining(request, DEADLINE - timedelta(seconds=90)) == 90
    assert seconds_remaining(request, DEADLINE + timedelta(hours=1)) == 0


def test_no_countdown_once_a_response_is_not_owed(db, brand, creator):
    _, profile = creator
    request = pending_request(db, brand, profile, status=RequestStatusDB.NEGOTIATING)

    assert seconds_remaining(request, START) is None
    assert is_due(request, DEADLINE) is False


def test_not_expired_before_deadline(db, brand, creator):
    _, profile = creator
    request = pending_request(db, brand, profile)

    assert expire_if_due(db, request, DEADLINE - timedelta(seconds=1)) is False
    assert request.status == RequestStatusDB.PENDING


def test_expires_exactly_at_deadline(db, brand, creator):
    _, profile = creator
    request = pending_request(db, brand, profile, status=RequestStatusDB.VIEWED)

    assert expire_if_due(db, request, DEADLINE) is True
    db.commit()

    assert request.status == RequestStatusDB.DECLINED
    assert request.decline_category == DeclineCategoryDB.SYSTEM_EXPIRED
    assert request.decline_reason == EXPIRED_REASON
    assert request.expires_at is None
    assert request.version == 2

    record = db.query(DeclineRecord).one()
    assert record.category == DeclineCategoryDB.SYSTEM_EXPIRED

    event = db.query(RequestEvent).one()
    assert event.action == "expire"
    assert event.from_status == "viewed"
    assert event.to_status == "declined"


def test_expiry_never_suspends(db, brand, creator):
    _, profile = creator
    for _ in range(6):
        request = pending_request(db, brand, profile)
        expire_if_due(db, request, DEADLINE)
        db.commit()

    db.refresh(profile)
    assert profile.suspended_until is None
    assert profile.suspension_count == 0


def test_sweep_expires_only_due_requests(db, brand, creator):
    _, profile = creator
    due = pending_request(db, brand, profile)
    later = pending_request(db, brand, profile, expires_at=DEADLINE + timedelta(hours=5))
    answered = pending_request(db, brand, profile, status=RequestStatusDB.ACCEPTED)

    seen = []
    assert sweep_expired(db, DEADLINE, on_expired=seen.append) == 1

    db.refresh(due)
    db.refresh(later)
    db.refresh(answered)
    assert due.status == RequestStatusDB.DECLINED
    assert later.status == RequestStatusDB.PENDING
    assert answered.status == RequestStatusDB.ACCEPTED
    assert [r.id for r in seen] == [due.id]

    assert sweep_expired(db, DEADLINE) == 0


def test_concurrent_expiry_has_a_single_winner(file_engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)

    setup = Session()
    brand = make_brand(setup)
    _, profile = make_creator(setup)
    request_id = pending_request(setup, brand, profile).id
    profile_id = profile.id
    setup.close()

    first, second = Session(), Session()
    try:
        first_copy = first.query(CollaborationRequest).filter_by(id=request_id).one()
        second_copy = second.query(CollaborationRequest).filter_by(id=request_id).one()

        assert expire_if_due(first, first_copy, DEADLINE) is True
        first.commit()

        assert expire_if_due(second, second_copy, DEADLINE) is False
        second.rollback()
    finally:
        first.close()
        second.close()

    check = Session()
    try:
        assert check.query(DeclineRecord).filter_by(request_id=request_id).count() == 1
        assert check.query(RequestEvent).filter_by(request_id=request_id, action="expire").count() == 1
        assert check.query(CreatorProfile).filter_by(id=profile_id).one().suspension_count == 0
    finally:
        check.close()
