from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from packages.features.bookings.bookings import mark_payment_status
from services.payments.paymongo import service as paymongo
from services.payments.stripe import service as stripe_service

logger = logging.getLogger(__name__)

router = APIRouter()


class StripeIntentRequest(BaseModel):
    amount: int
    currency: str = "php"
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PayMongoIntentRequest(BaseModel):
    amount: int = 0
    currency: str = "PHP"
    description: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PayMongoMethodRequest(BaseModel):
    type: str = ""
    details: Optional[Dict[str, Any]] = None


class PayMongoAttachRequest(BaseModel):
    paymentIntentId: str = ""
    paymentMethodId: str = ""


class PayMongoSourceRequest(BaseModel):
    type: str = ""
    amount: int = 0
    currency: str = "PHP"
    redirect: Optional[Dict[str, str]] = None


# ---------- Stripe ----------
@router.post("/api/create-payment-intent")
def stripe_create_payment_intent(req: StripeIntentRequest):
    return stripe_service.create_payment_intent(req.amount, req.currency, req.metadata)


@router.get("/api/payment-intent/{intent_id}")
def stripe_get_payment_intent(intent_id: str):
    return stripe_service.get_payment_intent(intent_id)


# ---------- PayMongo ----------
@router.post("/api/paymongo/payment-intent")
def paymongo_payment_intent(req: PayMongoIntentRequest):
    return paymongo.create_payment_intent(req.amount, req.currency, req.description, req.metadata)


@router.post("/api/paymongo/payment-method")
def paymongo_payment_method(req: PayMongoMethodRequest):
    return paymongo.create_payment_method(req.type, req.details)


@router.post("/api/paymongo/attach")
def paymongo_attach(req: PayMongoAttachRequest):
    return paymongo.attach_payment_method(req.paymentIntentId, req.paymentMethodId)


@router.get("/api/paymongo/verify/{payment_intent_id}")
def paymongo_verify(payment_intent_id: str):
    return paymongo.verify_payment_intent(payment_intent_id)


@router.get("/api/paymongo/payment-methods")
def paymongo_payment_methods():
    return {"methods": list(paymongo.METHODS)}


@router.post("/api/paymongo/source")
def paymongo_source(req: PayMongoSourceRequest):
    return paymongo.create_source(req.type, req.amount, req.currency, req.redirect)


@router.post("/api/paymongo/webhook")
async def paymongo_webhook(request: Request):
    raw = await request.body()
    secret = paymongo.webhook_secret()
    if secret and not paymongo.verify_signature(raw, request.headers.get("paymongo-signature", ""), secret):
        logger.warning("Rejected PayMongo webhook with a bad signature")
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        event = json.loads(raw or b"{}")
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    event_type, intent_id = paymongo.parse_event(event if isinstance(event, dict) else {})
    logger.info("PayMongo webhook received: %s (%s)", event_type or "-", intent_id or "-")

    if event_type == "payment.paid":
        booking = mark_payment_status(intent_id, "confirmed")
    elif event_type == "payment.failed":
        booking = mark_payment_status(intent_id, "payment_failed")
    else:
        booking = None
    if booking:
        logger.info("Booking %s -> %s", booking.get("bookingId"), booking.get("status"))

    return {"received": True}
