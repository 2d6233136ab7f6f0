"""
Stripe and PayMongo endpoints with the vendor SDK/HTTP calls monkeypatched.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from types import SimpleNamespace

import httpx
import pytest
import stripe

from packages.features.bookings.bookings import BOOKINGS
from services.payments.paymongo import service as paymongo


@pytest.fixture
def stripe_key(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")


@pytest.fixture
def paymongo_key(monkeypatch):
    monkeypatch.setenv("PAYMONGO_SECRET_KEY", "sk_test_pm")


@pytest.fixture
def paymongo_calls(monkeypatch):
    """Record PayMongo HTTP calls and answer from ``responses`` (status, body)."""
    calls = []
    responses = []

    def _request(method, url, **kwargs):
        calls.append({"method": method, "url": url, **kwargs})
        status, body = responses.pop(0) if responses else (200, {"data": {}})
        return httpx.Response(status, json=body)

    monkeypatch.setattr(paymongo.httpx, "request", _request)
    return SimpleNamespace(calls=calls, responses=responses)


class TestStripe:
    def test_not_configured(self, client):
        resp = client.post("/api/create-payment-intent", json={"amount": 5000})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Stripe not configured on server"}

    def test_amount_must_be_positive(self, client, stripe_key):
        assert client.post("/api/create-payment-intent", json={"amount": 0}).status_code == 400

    def test_create(self, client, stripe_key, monkeypatch):
        seen = {}

        def _create(**kwargs):
            seen.update(kwargs)
            return SimpleNamespace(id="pi_1", client_secret="pi_1_secret")

        monkeypatch.setattr(stripe.PaymentIntent, "create", _create)
        resp = client.post(
            "/api/create-payment-intent",
            json={"amount": 5000, "currency": "PHP", "metadata": {"bookingId": "DG-1", "pax": 2}},
        )
        assert resp.json() == {"clientSecret": "pi_1_secret", "id": "pi_1"}
        assert seen["api_key"] == "sk_test_123"
        assert seen["currency"] == "php"
        assert seen["metadata"] == {"bookingId": "DG-1", "pax": "2"}

    def test_bad_key(self, client, stripe_key, monkeypatch):
        def _create(**kwargs):
            raise stripe.AuthenticationError("Invalid API Key provided")

        monkeypatch.setattr(stripe.PaymentIntent, "create", _create)
        resp = client.post("/api/create-payment-intent", json={"amount": 5000})
        assert resp.status_code == 500
        assert resp.json()["error"] == "Invalid Stripe API Key"
        assert "STRIPE_SECRET_KEY" in resp.json()["hint"]

    def test_retrieve(self, client, stripe_key, monkeypatch):
        intent = SimpleNamespace(id="pi_1", status="succeeded", amount=5000, currency="php")
        monkeypatch.setattr(stripe.PaymentIntent, "retrieve", lambda intent_id, api_key: intent)
        data = client.get("/api/payment-intent/pi_1").json()
        assert data == {"id": "pi_1", "status": "succeeded", "paid": True, "amount": 5000, "currency": "php"}


class TestPayMongo:
    def test_not_configured(self, client):
        resp = client.post("/api/paymongo/payment-intent", json={"amount": 20000})
        assert resp.status_code == 500

    def test_minimum_amount(self, client, paymongo_key, paymongo_calls):
        resp = client.post("/api/paymongo/payment-intent", json={"amount": 9999})
        assert resp.status_code == 400
        assert paymongo_calls.calls == []

    def test_payment_intent(self, client, paymongo_key, paymongo_calls):
        paymongo_calls.responses.append((200, {"data": {
            "id": "pi_pm",
            "attributes": {"client_key": "ck", "status": "awaiting_payment_method", "amount": 20000, "currency": "PHP"},
        }}))
        data = client.post("/api/paymongo/payment-intent", json={"amount": 20000}).json()
        assert data["id"] == "pi_pm"
        assert data["clientKey"] == "ck"

        call = paymongo_calls.calls[0]
        assert call["url"] == "https://api.paymongo.com/v1/payment_intents"
        assert call["auth"] == ("sk_test_pm", "")
        attrs = call["json"]["data"]["attributes"]
        assert attrs["statement_descriptor"] == "DISCOVERGRP"
        assert attrs["description"] == "Tour Booking Payment"

    def test_vendor_error(self, client, paymongo_key, paymongo_calls):
        paymongo_calls.responses.append((400, {"errors": [{"detail": "amount is invalid"}]}))
        resp = client.post("/api/paymongo/payment-intent", json={"amount": 20000})
        assert resp.status_code == 400
        assert resp.json() == {"error": "amount is invalid"}

    def test_card_payment_method(self, client, paymongo_key, paymongo_calls):
        paymongo_calls.responses.append((200, {"data": {"id": "pm_1", "attributes": {"type": "card"}}}))
        body = {"type": "card", "details": {"cardNumber": "4343 4343 4343 4345", "expMonth": 12, "expYear": 30,
                                            "cvc": "123", "billingName": "Juan"}}
        data = client.post("/api/paymongo/payment-method", json=body).json()
        assert data == {"id": "pm_1", "type": "card", "status": "active"}
        attrs = paymongo_calls.calls[0]["json"]["data"]["attributes"]
        assert attrs["details"]["card_number"] == "4343434343434345"
        assert attrs["billing"]["name"] == "Juan"

    def test_attach_needs_ids(self, client, paymongo_key, paymongo_calls):
        assert client.post("/api/paymongo/attach", json={"paymentIntentId": "pi"}).status_code == 400

    def test_attach_redirect(self, client, paymongo_key, paymongo_calls):
        paymongo_calls.responses.append((200, {"data": {"attributes": {
            "status": "awaiting_next_action",
            "next_action": {"type": "redirect", "redirect": {"url": "https://3ds"}},
        }}}))
        data = client.post("/api/paymongo/attach", json={"paymentIntentId": "pi", "paymentMethodId": "pm"}).json()
        assert data["nextAction"]["redirect"] == {"url": "https://3ds"}
        assert paymongo_calls.calls[0]["json"]["data"]["attributes"]["return_url"] == paymongo.DEFAULT_CLIENT_URL

    def test_verify(self, client, paymongo_key, paymongo_calls):
        paymongo_calls.responses.append((200, {"data": {"attributes": {"status": "succeeded", "amount": 1}}}))
        data = client.get("/api/paymongo/verify/pi_pm").json()
        assert data["paid"] is True
        assert paymongo_calls.calls[0]["method"] == "GET"

    def test_methods(self, client):
        assert client.get("/api/paymongo/payment-methods").json() == {"methods": paymongo.METHODS}

    def test_source(self, client, paymongo_key, paymongo_calls, monkeypatch):
        monkeypatch.setenv("CLIENT_URL", "https://shop.test/")
        paymongo_calls.responses.append((200, {"data": {"id": "src_1", "attributes": {
            "status": "pending", "redirect": {"checkout_url": "https://pay.test/checkout"},
        }}}))
        data = client.post("/api/paymongo/source", json={"type": "gcash", "amount": 20000}).json()
        assert data == {"id": "src_1", "checkoutUrl": "https://pay.test/checkout", "status": "pending"}
        redirect = paymongo_calls.calls[0]["json"]["data"]["attributes"]["redirect"]
        assert redirect["success"] == "https://shop.test/booking/success"

    def test_source_type(self, client, paymongo_key, paymongo_calls):
        assert client.post("/api/paymongo/source", json={"type": "card", "amount": 20000}).status_code == 400


def _event(event_type, intent_id="pi_pm"):
    return {"data": {"attributes": {"type": event_type, "data": {
        "id": "pay_1", "attributes": {"payment_intent_id": intent_id},
    }}}}


def _sign(raw, secret, ts="1700000000"):
    sig = hmac.new(secret.encode(), ts.encode() + b"." + raw, hashlib.sha256).hexdigest()
    return f"t={ts},te={sig},li="


class TestWebhook:
    URL = "/api/paymongo/webhook"

    @pytest.fixture
    def booking(self):
        return BOOKINGS.insert({"bookingId": "DG-20250101-AAAAAA", "status": "pending", "paymentIntentId": "pi_pm"})

    def _status(self):
        return BOOKINGS.load()[0]["status"]

    def test_paid_confirms_booking(self, client, booking):
        resp = client.post(self.URL, json=_event("payment.paid"))
        assert resp.json() == {"received": True}
        assert self._status() == "confirmed"

    def test_failed_marks_booking(self, client, booking):
        client.post(self.URL, json=_event("payment.failed"))
        assert self._status() == "payment_failed"

    def test_other_events_ignored(self, client, booking):
        client.post(self.URL, json=_event("source.chargeable"))
        assert self._status() == "pending"

    def test_unknown_intent(self, client, booking):
        assert client.post(self.URL, json=_event("payment.paid", "pi_other")).status_code == 200
        assert self._status() == "pending"

    def test_bad_json(self, client):
        resp = client.post(self.URL, content=b"{nope", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400

    @pytest.mark.parametrize(
        "body",
        [
            {"data": {"attributes": {"type": "payment.paid", "data": "pi_pm"}}},
            {"data": {"attributes": {"type": "payment.paid", "data": ["pi_pm"]}}},
            {"data": {"attributes": {"type": "payment.paid", "data": {"attributes": "pi_pm"}}}},
            {"data": "x"},
            [1, 2],
        ],
    )
    def test_malformed_event_acknowledged(self, client, booking, body):
        resp = client.post(self.URL, json=body)
        assert resp.status_code == 200
        assert resp.json() == {"received": True}
        assert self._status() == "pending"

    def test_parse_event_shapes(self):
        assert paymongo.parse_event({"data": {"attributes": {"type": 5, "data": {"id": 7}}}}) == ("", "")
        assert paymongo.parse_event(_event("payment.paid")) == ("payment.paid", "pi_pm")

    def test_signature_checked_when_secret_set(self, client, booking, monkeypatch):
        monkeypatch.setenv("PAYMONGO_WEBHOOK_SECRET", "whsk")
        raw = json.dumps(_event("payment.paid")).encode()

        resp = client.post(self.URL, content=raw, headers={"Paymongo-Signature": _sign(raw, "wrong")})
        assert resp.status_code == 401
        assert self._status() == "pending"

        resp = client.post(self.URL, content=raw, headers={"Paymongo-Signature": _sign(raw, "whsk")})
        assert resp.status_code == 200
        assert self._status() == "confirmed"

    def test_verify_signature_live_key(self):
        raw = b"{}"
        sig = hmac.new(b"s", b"1." + raw, hashlib.sha256).hexdigest()
        assert paymongo.verify_signature(raw, f"t=1,te=,li={sig}", "s")
        assert not paymongo.verify_signature(raw, f"te={sig}", "s")
