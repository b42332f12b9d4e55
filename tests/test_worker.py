from datetime import timedelta

from database.collaboration_models import CollaborationRequest, RequestStatusDB
from main import run_expiry_sweep
from services.clock import FixedClock
from tests.conftest import START, make_request


def test_sweep_declines_lapsed_requests(db, session_factory, brand, creator):
    _, profile = creator
    lapsed = make_request(db, brand, profile, expires_at=START + timedelta(hours=48))
    fresh = make_request(db, brand, profile, expires_at=START + timedelta(hours=72))
    lapsed_id, fresh_id = lapsed.id, fresh.id

    expired = run_expiry_sweep(session_factory, FixedClock(START + timedelta(hours=50)))

    assert expired == 1
    db.expire_all()
    assert db.query(CollaborationRequest).filter_by(id=lapsed_id).one().status == RequestStatusDB.DECLINED
    assert db.query(CollaborationRequest).filter_by(id=fresh_id).one().status == RequestStatusDB.PENDING


def test_sweep_with_nothing_due(session_factory):
    assert run_expiry_sweep(session_factory, FixedClock(START)) == 0
