from __future__ import annotations

import hashlib
import hmac
import logging
import os
from typing import Optional

import httpx

from services.payments.errors import PaymentError

logger = logging.getLogger(__name__)

API_BASE = "https://api.paymongo.com/v1"
MIN_AMOUNT = 10000  # centavos (PHP 100.00)
STATEMENT_DESCRIPTOR = "DISCOVERGRP"
METHODS = ["card", "gcash", "grab_pay", "paymaya"]
SOURCE_TYPES = ("gcash", "grab_pay")
DEFAULT_CLIENT_URL = "https://discovergrp.netlify.app"


def _secret_key() -> str:
    key = (os.getenv("PAYMONGO_SECRET_KEY") or "").strip()
    if not key:
        raise PaymentError("PayMongo not configured on server", status_code=500)
    return key


def is_configured() -> bool:
    return bool((os.getenv("PAYMONGO_SECRET_KEY") or "").strip())


def client_url() -> str:
    return (os.getenv("CLIENT_URL") or DEFAULT_CLIENT_URL).rstrip("/")


def _request(method: str, path: str, fallback: str, attributes: Optional[dict] = None) -> dict:
    key = _secret_key()
    kwargs = {
        "auth": (key, ""),
        "headers": {"Accept": "application/json"},
        "timeout": 20,
    }
    if attributes is not None:
        kwargs["json"] = {"data": {"attributes": attributes}}
    try:
        resp = httpx.request(method, API_BASE + path, **kwargs)
    except httpx.HTTPError as exc:
        logger.error("PayMongo request %s %s failed: %s", method, path, exc)
        raise PaymentError(str(exc) or fallback, status_code=502)

    try:
        payload = resp.json()
    except ValueError:
        payload = {}
    if resp.status_code >= 400:
        errors = payload.get("errors") if isinstance(payload, dict) else None
        detail = (errors[0].get("detail") if errors and isinstance(errors[0], dict) else None) or fallback
        logger.error("PayMongo API error (%s) on %s: %s", resp.status_code, path, detail)
        raise PaymentError(detail, status_code=resp.status_code)
    data = payload.get("data") if isinstance(payload, dict) else None
    return data if isinstance(data, dict) else {}


def create_payment_intent(
    amount: int,
    currency: str = "PHP",
    description: str = "",
    metadata: Optional[dict] = None,
) -> dict:
    amount = int(amount or 0)
    if amount < MIN_AMOUNT:
        raise ValueError("Amount must be at least PHP 100.00 (10000 centavos)")
    data = _request(
        "POST",
        "/payment_intents",
        "Failed to create payment intent",
        {
            "amount": amount,
            "currency": (currency or "PHP").upper(),
            "payment_method_allowed": ["card", "paymaya"],
            "description": description or "Tour Booking Payment",
            "statement_descriptor": STATEMENT_DESCRIPTOR,
            "metadata": metadata or {},
        },
    )
    attrs = data.get("attributes") or {}
    logger.info("Created PayMongo payment intent %s", data.get("id"))
    return {
        "id": data.get("id"),
        "clientKey": attrs.get("client_key"),
        "status": attrs.get("status"),
        "amount": attrs.get("amount"),
        "currency": attrs.get("currency"),
    }


def create_payment_method(method_type: str, details: Optional[dict] = None) -> dict:
    method_type = (method_type or "").strip()
    if not method_type:
        raise ValueError("Payment method type is required")
    attributes: dict = {"type": method_type, "details": {}}
    details = details or {}
    if method_type == "card" and details:
        attributes["details"] = {
            "card_number": str(details.get("cardNumber") or "").replace(" ", ""),
            "exp_month": details.get("expMonth"),
            "exp_year": details.get("expYear"),
            "cvc": details.get("cvc"),
        }
        if details.get("billingName") or details.get("billingEmail") or details.get("billingPhone"):
            attributes["billing"] = {
                "name": details.get("billingName"),
                "email": details.get("billingEmail"),
                "phone": details.get("billingPhone"),
            }
    data = _request("POST", "/payment_methods", "Failed to create payment method", attributes)
    attrs = data.get("attributes") or {}
    return {"id": data.get("id"), "type": attrs.get("type"), "status": "active"}


def attach_payment_method(payment_intent_id: str, payment_method_id: str) -> dict:
    if not payment_intent_id or not payment_method_id:
        raise ValueError("Payment intent ID and payment method ID are required")
    data = _request(
        "POST",
        f"/payment_intents/{payment_intent_id}/attach",
        "Failed to attach payment method",
        {"payment_method": payment_method_id, "return_url": client_url()},
    )
    attrs = data.get("attributes") or {}
    out = {"status": attrs.get("status")}
    next_action = attrs.get("next_action")
    if isinstance(next_action, dict):
        out["nextAction"] = {"type": next_action.get("type"), "redirect": next_action.get("redirect")}
    return out


def verify_payment_intent(payment_intent_id: str) -> dict:
    data = _request("GET", f"/payment_intents/{payment_intent_id}", "Verification failed")
    attrs = data.get("attributes") or {}
    status = attrs.get("status")
    return {
        "status": status,
        "paid": status == "succeeded",
        "amount": attrs.get("amount"),
        "currency": attrs.get("currency"),
    }


def create_source(source_type: str, amount: int, currency: str = "PHP", redirect: Optional[dict] = None) -> dict:
    if not source_type or not amount:
        raise ValueError("Type and amount are required")
    if source_type not in SOURCE_TYPES:
        raise ValueError("Invalid source type. Must be gcash or grab_pay")
    redirect = redirect or {}
    data = _request(
        "POST",
        "/sources",
        "Failed to create source",
        {
            "type": source_type,
            "amount": int(amount),
            "currency": (currency or "PHP").upper(),
            "redirect": {
                "success": redirect.get("success") or f"{client_url()}/booking/success",
                "failed": redirect.get("failed") or f"{client_url()}/booking/failed",
            },
        },
    )
    attrs = data.get("attributes") or {}
    return {
        "id": data.get("id"),
        "checkoutUrl": (attrs.get("redirect") or {}).get("checkout_url"),
        "status": attrs.get("status"),
    }


# ---------- Webhooks ----------
def verify_signature(raw_body: bytes, header: str, secret: str) -> bool:
    """Check a ``Paymongo-Signature: t=...,te=...,li=...`` header."""
    parts = {}
    for item in (header or "").split(","):
        if "=" in item:
            k, v = item.split("=", 1)
            parts[k.strip()] = v.strip()
    ts = parts.get("t")
    if not ts:
        return False
    signed = ts.encode("utf-8") + b"." + (raw_body or b"")
    expected = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return any(parts.get(k) and hmac.compare_digest(expected, parts[k]) for k in ("te", "li"))


def webhook_secret() -> str:
    return (os.getenv("PAYMONGO_WEBHOOK_SECRET") or "").strip()


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _as_str(value) -> str:
    return value if isinstance(value, str) else ""


def parse_event(event: dict) -> tuple[str, str]:
    """Return ``(event_type, payment_intent_id)`` from a webhook body.

    Fields of the wrong shape come back as ``""`` instead of raising.
    """
    attrs = _as_dict(_as_dict(_as_dict(event).get("data")).get("attributes"))
    resource = _as_dict(attrs.get("data"))
    resource_attrs = _as_dict(resource.get("attributes"))
    intent_id = _as_str(resource_attrs.get("payment_intent_id")) or _as_str(resource.get("id"))
    return _as_str(attrs.get("type")), intent_id
