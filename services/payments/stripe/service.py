from __future__ import annotations

import logging
import os
from typing import Optional

import stripe

from services.payments.errors import PaymentError

logger = logging.getLogger(__name__)


def _api_key() -> str:
    key = (os.getenv("STRIPE_SECRET_KEY") or "").strip()
    if not key:
        raise PaymentError("Stripe not configured on server", status_code=500)
    return key


def is_configured() -> bool:
    return bool((os.getenv("STRIPE_SECRET_KEY") or "").strip())


def create_payment_intent(amount: int, currency: str = "php", metadata: Optional[dict] = None) -> dict:
    """Create a PaymentIntent. ``amount`` is in minor units (centavos/cents)."""
    amount = int(amount or 0)
    if amount <= 0:
        raise ValueError("Amount must be greater than 0.")
    key = _api_key()
    try:
        intent = stripe.PaymentIntent.create(
            api_key=key,
            amount=amount,
            currency=(currency or "php").lower(),
            automatic_payment_methods={"enabled": True},
            metadata={str(k): str(v) for k, v in (metadata or {}).items()},
        )
    except stripe.AuthenticationError as exc:
        logger.error("Stripe rejected the API key: %s", exc.user_message or exc)
        raise PaymentError(
            "Invalid Stripe API Key",
            status_code=500,
            hint="Check STRIPE_SECRET_KEY on the server (it should start with sk_test_ or sk_live_).",
        )
    except stripe.StripeError as exc:
        logger.error("Stripe PaymentIntent create failed: %s", exc)
        raise PaymentError(exc.user_message or str(exc), status_code=exc.http_status or 500)

    logger.info("Created Stripe PaymentIntent %s (%s %s)", intent.id, amount, currency)
    return {"clientSecret": intent.client_secret, "id": intent.id}


def get_payment_intent(intent_id: str) -> dict:
    key = _api_key()
    try:
        intent = stripe.PaymentIntent.retrieve(intent_id, api_key=key)
    except stripe.InvalidRequestError as exc:
        raise PaymentError(exc.user_message or "Payment intent not found", status_code=exc.http_status or 404)
    except stripe.StripeError as exc:
        logger.error("Stripe PaymentIntent retrieve failed: %s", exc)
        raise PaymentError(exc.user_message or str(exc), status_code=exc.http_status or 500)
    return {
        "id": intent.id,
        "status": intent.status,
        "paid": intent.status == "succeeded",
        "amount": intent.amount,
        "currency": intent.currency,
    }
