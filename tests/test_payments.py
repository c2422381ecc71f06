import hashlib
import hmac
import json
import time

import pytest
import stripe
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from services.order_service.models import Order
from services.order_service.repository import OrderRepository
from services.payment_service import stripe_client
from services.payment_service.draft import intent_metadata, validate_draft
from services.payment_service.repository import PaymentRepository
from services.payment_service.schemas import OrderDraft
from services.payment_service.service import order_from_intent
from shared.config import settings

DRAFT = {
    "meat": {
        "meatType": "turkey",
        "pickupDate": "2025-12-23",
        "weight": 5,
        "customWeight": "",
        "cut": "Turkey Crown",
        "notes": "",
    },
    "customer": {"name": "Mary Byrne", "phone": "0871234567", "email": "mary@example.com"},
}


def _draft(**meat_overrides) -> OrderDraft:
    return OrderDraft.model_validate({**DRAFT, "meat": {**DRAFT["meat"], **meat_overrides}})


def _succeeded_event(intent_id="pi_123", metadata=None, amount=2000):
    return {
        "id": "evt_1",
        "type": "payment_intent.succeeded",
        "data": {
            "object": {
                "id": intent_id,
                "object": "payment_intent",
                "amount": amount,
                "currency": "eur",
                "metadata": metadata if metadata is not None else intent_metadata(_draft()),
            }
        },
    }


def _signature(payload: str, secret: str = None) -> str:
    timestamp = int(time.time())
    secret = secret or settings.STRIPE_WEBHOOK_SECRET
    signed = hmac.new(
        secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signed}"


async def _order_count(db) -> int:
    return (await db.execute(select(func.count(Order.id)))).scalar_one()


# --- draft validation ---

def test_complete_draft_is_valid():
    assert validate_draft(_draft()) == []


def test_custom_weight_requires_value():
    problems = validate_draft(_draft(weight="custom", customWeight=""))
    assert "customWeight required for custom weight" in problems


def test_custom_weight_below_minimum():
    assert validate_draft(_draft(weight="custom", customWeight="2")) == ["weight must be at least 3kg"]
    assert validate_draft(_draft(weight="custom", customWeight="4.5")) == []


def test_cut_must_match_meat_type():
    problems = validate_draft(_draft(cut="Half Ham"))
    assert problems == ["cut 'Half Ham' is not available for turkey"]


def test_missing_customer_fields():
    draft = OrderDraft.model_validate({**DRAFT, "customer": {"name": "Mary", "phone": "", "email": None}})
    assert validate_draft(draft) == ["customer phone required", "customer email required"]


def test_missing_sections():
    assert validate_draft(OrderDraft()) == ["meat selection missing", "customer details missing"]


def test_intent_metadata_is_all_strings():
    metadata = intent_metadata(_draft(weight=5.0, notes=""))
    assert metadata["weight"] == "5"
    assert metadata["notes"] == "None"
    assert metadata["meatType"] == "turkey"
    assert all(isinstance(v, str) for v in metadata.values())


# --- create-payment-intent ---

async def test_create_payment_intent(client, monkeypatch):
    calls = {}

    async def fake_create(amount_cents, currency, metadata):
        calls.update(amount=amount_cents, currency=currency, metadata=metadata)
        return {"id": "pi_new", "client_secret": "pi_new_secret_abc"}

    monkeypatch.setattr(stripe_client, "create_payment_intent", fake_create)

    resp = await client.post("/api/stripe/create-payment-intent", json=DRAFT)
    assert resp.status_code == 200
    assert resp.json() == {"clientSecret": "pi_new_secret_abc"}
    assert calls["amount"] == 2000
    assert calls["currency"] == "eur"
    assert calls["metadata"]["cut"] == "Turkey Crown"
    assert calls["metadata"]["customerEmail"] == "mary@example.com"


async def test_create_payment_intent_rejects_incomplete_draft(client, monkeypatch):
    async def fail_create(*args, **kwargs):
        pytest.fail("Stripe must not be called for an incomplete draft")

    monkeypatch.setattr(stripe_client, "create_payment_intent", fail_create)

    resp = await client.post("/api/stripe/create-payment-intent", json={"meat": DRAFT["meat"]})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing order details"
    assert "customer details missing" in resp.json()["details"]


async def test_create_payment_intent_stripe_failure(client, monkeypatch):
    async def broken_create(*args, **kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe_client, "create_payment_intent", broken_create)

    resp = await client.post("/api/stripe/create-payment-intent", json=DRAFT)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to create payment"}


# --- webhook ---

async def test_webhook_requires_signature(client):
    resp = await client.post("/api/stripe/webhook", content=b"{}")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing signature"}


async def test_webhook_rejects_bad_signature(client, db):
    payload = json.dumps(_succeeded_event())
    resp = await client.post(
        "/api/stripe/webhook",
        content=payload,
        headers={"stripe-signature": _signature(payload, secret="whsec_someone_else")},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid signature"}
    assert await _order_count(db) == 0


async def test_signed_webhook_creates_order(client, db):
    payload = json.dumps(_succeeded_event(intent_id="pi_signed"))
    resp = await client.post(
        "/api/stripe/webhook", content=payload, headers={"stripe-signature": _signature(payload)}
    )
    assert resp.status_code == 200
    assert resp.json() == {"received": True}

    order = (await db.execute(select(Order))).scalars().one()
    assert order.stripe_payment_intent_id == "pi_signed"
    assert order.customer_name == "Mary Byrne"
    assert order.meat_type == "turkey"
    assert order.cut == "Turkey Crown"
    assert order.weight == "5"
    assert order.notes is None
    assert order.amount_paid == 2000
    assert order.deposit_amount == "20"
    assert order.currency == "EUR"
    assert order.is_finished is False
    assert order.version == 1


async def test_webhook_is_idempotent_per_payment_intent(client, db, monkeypatch):
    monkeypatch.setattr(stripe_client, "construct_event", lambda payload, sig: json.loads(payload))
    payload = json.dumps(_succeeded_event(intent_id="pi_repeat"))

    for _ in range(3):
        resp = await client.post(
            "/api/stripe/webhook", content=payload, headers={"stripe-signature": "t=1,v1=x"}
        )
        assert resp.status_code == 200
        assert resp.json() == {"received": True}

    assert await _order_count(db) == 1


async def test_webhook_fills_defaults_for_missing_metadata(client, db, monkeypatch):
    monkeypatch.setattr(stripe_client, "construct_event", lambda payload, sig: json.loads(payload))
    payload = json.dumps(_succeeded_event(intent_id="pi_bare", metadata={}, amount=1550))

    resp = await client.post(
        "/api/stripe/webhook", content=payload, headers={"stripe-signature": "t=1,v1=x"}
    )
    assert resp.status_code == 200

    order = (await db.execute(select(Order))).scalars().one()
    assert order.customer_name == "Unknown Customer"
    assert order.customer_phone == "No Phone"
    assert order.customer_email == "No Email"
    assert order.meat_type == "turkey"
    assert order.weight == "unknown"
    assert order.cut == "standard"
    assert order.deposit_amount == "15.5"


async def test_webhook_ignores_other_events(client, db, monkeypatch):
    monkeypatch.setattr(stripe_client, "construct_event", lambda payload, sig: json.loads(payload))
    event = {"id": "evt_2", "type": "payment_intent.payment_failed", "data": {"object": {"id": "pi_x"}}}

    resp = await client.post(
        "/api/stripe/webhook", content=json.dumps(event), headers={"stripe-signature": "t=1,v1=x"}
    )
    assert resp.status_code == 200
    assert resp.json() == {"received": True}
    assert await _order_count(db) == 0


async def test_concurrent_duplicate_is_treated_as_processed(make_order, db, monkeypatch):
    existing = await make_order(stripe_payment_intent_id="pi_race")
    real_lookup = OrderRepository.get_by_payment_intent
    lookups = []

    async def lookup_missing_first(session, intent_id):
        lookups.append(intent_id)
        if len(lookups) == 1:
            # The other delivery has not committed yet when this one checks
            return None
        return await real_lookup(session, intent_id)

    monkeypatch.setattr(OrderRepository, "get_by_payment_intent", lookup_missing_first)

    order, created = await PaymentRepository.insert_order_once(
        db, order_from_intent(_succeeded_event(intent_id="pi_race")["data"]["object"])
    )
    assert created is False
    assert order.id == existing.id
    assert lookups == ["pi_race", "pi_race"]
    assert await _order_count(db) == 1


async def test_webhook_database_failure(client, monkeypatch):
    monkeypatch.setattr(stripe_client, "construct_event", lambda payload, sig: json.loads(payload))

    async def broken_insert(db, order):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(PaymentRepository, "insert_order_once", broken_insert)

    payload = json.dumps(_succeeded_event(intent_id="pi_db_down"))
    resp = await client.post(
        "/api/stripe/webhook", content=payload, headers={"stripe-signature": "t=1,v1=x"}
    )
    assert resp.status_code == 500
    assert resp.json() == {"error": "DB error"}
