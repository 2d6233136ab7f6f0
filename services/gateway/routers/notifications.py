from __future__ import annotations

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from services.gateway.auth import require_admin
from services.notifications.email.service import render_booking_confirmation, send_email

logger = logging.getLogger(__name__)

router = APIRouter()

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

BOOKING_EMAIL_REQUIRED = [
    "bookingId",
    "customerName",
    "customerEmail",
    "tourTitle",
    "tourDate",
    "passengers",
    "pricePerPerson",
    "totalAmount",
]


class EmailRequest(BaseModel):
    to_email: str = Field(..., min_length=3)
    subject: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    html: Optional[str] = None


@router.post("/api/notify/email", dependencies=[Depends(require_admin)])
def notify_email(req: EmailRequest):
    ok, msg = send_email(req.to_email, req.subject, req.body, html=req.html)
    if ok:
        return {"status": "ok"}
    return JSONResponse(status_code=500, content={"status": "error", "error": msg})


@router.post("/api/send-booking-email")
def send_booking_email(payload: dict):
    payload = payload if isinstance(payload, dict) else {}
    if any(not payload.get(k) for k in BOOKING_EMAIL_REQUIRED):
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields", "required": BOOKING_EMAIL_REQUIRED},
        )
    if not EMAIL_RE.match(str(payload.get("customerEmail") or "")):
        return JSONResponse(status_code=400, content={"error": "Invalid email format"})

    subject, text, html = render_booking_confirmation(payload)
    ok, msg = send_email(str(payload["customerEmail"]), subject, text, html=html)
    if not ok:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to send email", "details": msg},
        )
    logger.info("Booking confirmation sent for %s", payload.get("bookingId"))
    return {"success": True, "message": "Booking confirmation email sent successfully"}
