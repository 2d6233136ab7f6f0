from __future__ import annotations

import logging
import time
import uuid

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from packages.features.store import data_dir, now_iso
from services.notifications.email import service as email_service
from services.payments.paymongo import service as paymongo
from services.payments.stripe import service as stripe_service
from services.storage.uploads import service as storage

logger = logging.getLogger(__name__)

router = APIRouter()

STARTED_AT = time.monotonic()

ENDPOINTS = [
    "/health",
    "/auth",
    "/admin/tours",
    "/admin/bookings",
    "/admin/featured-videos",
    "/admin/users",
    "/public/tours",
    "/api/bookings",
    "/api/countries",
    "/api/reviews",
    "/api/favorites",
    "/api/promo-banners",
    "/api/homepage-settings",
    "/api/featured-videos",
    "/api/visa-applications",
    "/api/uploads",
    "/api/upload",
    "/api/create-payment-intent",
    "/api/paymongo",
    "/api/send-booking-email",
]


def _storage_writable() -> bool:
    path = data_dir()
    marker = path / f".write-check-{uuid.uuid4().hex}"
    try:
        path.mkdir(parents=True, exist_ok=True)
        marker.write_text("ok", encoding="utf-8")
        marker.unlink()
        return True
    except OSError as exc:
        logger.warning("Data dir %s is not writable: %s", path, exc)
        return False


def services_status() -> dict:
    return {
        "stripe": stripe_service.is_configured(),
        "paymongo": paymongo.is_configured(),
        "email": email_service.provider(),
        "storageProvider": storage.provider(),
    }


@router.get("/")
def root():
    return {"message": "Discover Group API", "status": "running", "endpoints": ENDPOINTS}


@router.get("/health")
def health():
    writable = _storage_writable()
    body = {
        "ok": writable,
        "timestamp": now_iso(),
        "uptime": round(time.monotonic() - STARTED_AT, 1),
        "storage": {"dataDir": str(data_dir()), "writable": writable},
        "services": services_status(),
    }
    if not writable:
        return JSONResponse(status_code=503, content=body)
    return body
