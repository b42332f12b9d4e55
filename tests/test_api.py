import hashlib
import hmac
import json
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from auth.dependencies import create_access_token
from core.paystack_service import get_payment_gateway
from database.config import get_db
from database.models import AvailabilitySlot, CreatorTier, SlotType
from database.collaboration_models import RequestStatusDB
from server import app
from services.clock import get_clock
from tests.conftest import START, make_brand, make_creator, make_rate_card, make_request

WEBHOOK_SECRET = "sk_test_webhook"


@pytest.fixture
def client(db, clock, gateway):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user):
    return {"Authorization": f"Bearer {create_access_token(user.email)}"}


def request_body(profile, **overrides):
    body = {
        "creator_id": profile.id,
        "title": "Launch campaign",
        "proposed_budget": 50000,
        "proposed_start_date": "2024-01-10",
        "proposed_end_date": "2024-01-12",
        "deliverables": ["1 reel"],
        "target_platforms": ["instagram"],
    }
    body.update(overrides)
    return body


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_missing_token_is_rejected(client):
    assert client.get("/api/v2/requests/sent").status_code in (401, 403)


def test_brand_creates_request(client, brand, creator):
    _, profile = creator

    response = client.post("/api/v2/requests", json=request_body(profile), headers=auth(brand))

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["expires_at"] is not None


def test_lead_time_conflict_is_reported(client, brand, creator):
    _, profile = creator

    response = client.post(
        "/api/v2/requests",
        json=request_body(profile, proposed_start_date="2024-01-02", proposed_end_date="2024-01-03"),
        headers=auth(brand),
    )

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "LEAD_TIME"
    assert body["detail"]["min_start_date"] == "2024-01-04"


def test_brand_cannot_call_creator_endpoints(client, db, brand, creator):
    _, profile = creator
    request = make_request(db, brand, profile)

    response = client.post(f"/api/v2/requests/{request.id}/accept", headers=auth(brand))
    assert response.status_code == 403


def test_short_decline_reason_is_a_validation_error(client, db, brand, creator):
    creator_user, profile = creator
    request = make_request(db, brand, profile)

    response = client.post(
        f"/api/v2/requests/{request.id}/decline",
        json={"category": "budget", "reason": "no"},
        headers=auth(creator_user),
    )

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_decline_returns_trust_outcome(client, db, brand, creator):
    creator_user, profile = creator
    request = make_request(db, brand, profile)

    response = client.post(
        f"/api/v2/requests/{request.id}/decline",
        json={"category": "schedule", "reason": "I am travelling those days"},
        headers=auth(creator_user),
    )

    assert response.status_code == 200
    assert response.json()["request"]["status"] == "declined"


def test_counter_offer_flow(client, db, brand, creator):
    creator_user, profile = creator
    request = make_request(db, brand, profile)

    assert client.get(f"/api/v2/requests/{request.id}", headers=auth(creator_user)).json()["status"] == "viewed"

    response = client.post(
        f"/api/v2/requests/{request.id}/counter-offer",
        json={"amount": 65000, "message": "Two reels at my rate"},
        headers=auth(creator_user),
    )
    assert response.status_code == 201
    assert response.json()["amount"] == 65000

    history = client.get(f"/api/v2/requests/{request.id}/negotiations", headers=auth(brand)).json()
    assert [entry["amount"] for entry in history] == [65000]


def test_webhook_rejects_bad_signature(client, monkeypatch):
    monkeypatch.setenv("PAYSTACK_SECRET_KEY", WEBHOOK_SECRET)

    response = client.post(
        "/api/v2/payments/webhook",
        content=b'{"event": "charge.success"}',
        headers={"x-paystack-signature": "not-a-signature"},
    )
    assert response.status_code == 400

    response = client.post("/api/v2/payments/webhook", content=b"{}")
    assert response.status_code == 400


def test_signed_webhook_confirms_escrow(client, monkeypatch, db, service, brand, creator):
    monkeypatch.setenv("PAYSTACK_SECRET_KEY", WEBHOOK_SECRET)
    creator_user, profile = creator
    request = make_request(db, brand, profile)
    service.accept(creator_user, request.id)
    service.sign_contract(brand, request.id)
    service.sign_contract(creator_user, request.id)
    _, record = service.initialize_payment(brand, request.id)

    payload = json.dumps({
        "event": "charge.success",
        "data": {"reference": record.reference, "amount": 50000, "status": "success"},
    }).encode()
    signature = hmac.new(WEBHOOK_SECRET.encode(), payload, hashlib.sha512).hexdigest()

    response = client.post(
        "/api/v2/payments/webhook", content=payload, headers={"x-paystack-signature": signature}
    )

    assert response.json() == {"status": "received"}
    db.refresh(request)
    assert request.status == RequestStatusDB.IN_PROGRESS

    escrow = client.get(f"/api/v2/payments/escrow/{request.id}", headers=auth(creator_user)).json()
    assert escrow["status"] == "escrow"
    assert escrow["creator_payout"] == 45000


def test_webhook_for_unknown_reference_is_ignored(client, monkeypatch):
    monkeypatch.setenv("PAYSTACK_SECRET_KEY", WEBHOOK_SECRET)
    payload = json.dumps({"event": "charge.success", "data": {"reference": "PSK-UNKNOWN", "amount": 1}}).encode()
    signature = hmac.new(WEBHOOK_SECRET.encode(), payload, hashlib.sha512).hexdigest()

    response = client.post(
        "/api/v2/payments/webhook", content=payload, headers={"x-paystack-signature": signature}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "ignored"


def test_availability_check(client, db, brand, creator):
    _, profile = creator
    db.add(AvailabilitySlot(
        creator_id=profile.id, start_date=date(2024, 1, 8), end_date=date(2024, 1, 12),
        reason="Vacation", slot_type=SlotType.BLOCKED,
    ))
    db.commit()

    response = client.post(
        "/api/v2/availability/check",
        json={"creator_id": profile.id, "proposed_start_date": "2024-01-10", "proposed_end_date": "2024-01-11"},
        headers=auth(brand),
    )
    body = response.json()
    assert body["allowed"] is False
    assert body["conflict_type"] == "BLOCKED_RANGE"

    response = client.post(
        "/api/v2/availability/check",
        json={"creator_id": profile.id, "proposed_start_date": "2024-01-20", "proposed_end_date": "2024-01-21"},
        headers=auth(brand),
    )
    assert response.json()["allowed"] is True


def test_booked_slot_cannot_be_deleted(client, db, brand, creator, service):
    creator_user, profile = creator
    request = make_request(db, brand, profile)
    service.accept(creator_user, request.id)
    slot = db.query(AvailabilitySlot).filter_by(request_id=request.id).one()

    response = client.delete(f"/api/v2/availability/me/slots/{slot.id}", headers=auth(creator_user))

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_creator_manages_blocked_slots(client, creator):
    creator_user, _ = creator

    response = client.post(
        "/api/v2/availability/me/slots",
        json={"start_date": "2024-02-01", "end_date": "2024-02-05", "reason": "Conference"},
        headers=auth(creator_user),
    )
    assert response.status_code == 201
    slot_id = response.json()["id"]

    assert client.delete(f"/api/v2/availability/me/slots/{slot_id}", headers=auth(creator_user)).status_code == 200
    assert client.get("/api/v2/availability/me", headers=auth(creator_user)).json()["slots"] == []


def test_notifications_are_listed_for_the_recipient(client, brand, creator):
    creator_user, profile = creator
    client.post("/api/v2/requests", json=request_body(profile), headers=auth(brand))

    assert client.get("/api/v2/notifications/unread-count", headers=auth(creator_user)).json() == {"unread_count": 1}
    notifications = client.get("/api/v2/notifications", headers=auth(creator_user)).json()
    assert notifications[0]["type"] == "request_received"

def test_request_detail_lists_the_callers_actions(client, db, brand, creator):
    creator_user, profile = creator
    request = make_request(db, brand, profile)

    body = client.get(f"/api/v2/requests/{request.id}", headers=auth(creator_user)).json()
    assert body["status"] == "viewed"
    assert sorted(body["allowed_actions"]) == ["accept", "counter_offer", "decline"]

    body = client.get(f"/api/v2/requests/{request.id}", headers=auth(brand)).json()
    assert body["allowed_actions"] == ["cancel"]


def test_search_leaves_out_suspended_creators(client, db, clock, brand, creator):
    _, profile = creator
    _, other = make_creator(db, email="bola@example.com", display_name="Bola Films", tier=CreatorTier.MID)
    make_rate_card(db, other)
    profile.suspended_until = START + timedelta(hours=24)
    db.commit()

    body = client.get("/api/v2/creators", headers=auth(brand)).json()
    assert [c["id"] for c in body["creators"]] == [other.id]
    assert body["total"] == 1

    response = client.get(f"/api/v2/creators/{profile.id}", headers=auth(brand))
    assert response.status_code == 409
    assert response.json()["code"] == "SUSPENDED"

    clock.advance(hours=24)
    body = client.get("/api/v2/creators", headers=auth(brand)).json()
    assert [c["id"] for c in body["creators"]] == [profile.id, other.id]
    assert client.get(f"/api/v2/creators/{profile.id}", headers=auth(brand)).status_code == 200


def test_search_filters(client, db, brand, creator):
    _, profile = creator
    _, other = make_creator(db, email="bola@example.com", display_name="Bola Films", tier=CreatorTier.MID)
    make_rate_card(db, other)
    _, away = make_creator(db, email="chi@example.com", display_name="Chi Travels", is_available=False)

    def ids(**params):
        body = client.get("/api/v2/creators", params=params, headers=auth(brand)).json()
        return [c["id"] for c in body["creators"]]

    assert ids(tier="mid") == [other.id]
    assert ids(platform="Instagram") == [other.id]
    assert ids(available_only="true") == [profile.id, other.id]
    assert ids(query="chi") == [away.id]
    assert ids(limit=1, page=2) == [other.id]


def test_contracts_and_transactions_are_listed_per_party(client, db, service, brand, creator):
    creator_user, profile = creator
    make_request(db, brand, profile)
    request = make_request(db, brand, profile)
    service.accept(creator_user, request.id)
    service.sign_contract(brand, request.id)
    service.sign_contract(creator_user, request.id)
    _, record = service.initialize_payment(brand, request.id)
    request_id, reference = request.id, record.reference
    stranger = make_brand(db, email="stranger@example.com")

    contracts = client.get("/api/v2/contracts", headers=auth(creator_user)).json()
    assert [c["request_id"] for c in contracts] == [request_id]
    assert contracts[0]["status"] == "payment_pending"
    assert contracts[0]["final_budget"] == 50000

    paid = client.get("/api/v2/payments/transactions", headers=auth(brand)).json()
    assert [(t["reference"], t["role"], t["amount"]) for t in paid] == [(reference, "brand", 50000)]

    earned = client.get("/api/v2/payments/transactions", headers=auth(creator_user)).json()
    assert [(t["role"], t["creator_payout"], t["status"]) for t in earned] == [("creator", 45000, "pending")]

    assert client.get("/api/v2/contracts", headers=auth(stranger)).json() == []
    assert client.get("/api/v2/payments/transactions", headers=auth(stranger)).json() == []
