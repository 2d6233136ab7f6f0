from __future__ import annotations

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from packages.features.store import (
    CamelModel,
    ConflictError,
    JsonCollection,
    NotFoundError,
    apply_fields,
    now_iso,
    parse_iso,
)
from packages.features.tours.tours import list_tours, tour_summary

BOOKINGS = JsonCollection("bookings", "bkg")

STATUSES = ("pending", "confirmed", "completed", "cancelled", "payment_failed")
PAYMENT_TYPES = ("full", "downpayment", "cash-appointment")

# Statuses that count towards revenue
_REVENUE_EXCLUDED = ("cancelled", "payment_failed")


class BookingIn(CamelModel):
    tour_slug: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=3)
    customer_phone: str = Field(..., min_length=1)
    customer_passport: str = ""
    selected_date: str = Field(..., min_length=1)
    passengers: int = Field(..., ge=1)
    per_person: float = Field(..., ge=0)
    total_amount: float = Field(..., ge=0)
    paid_amount: float = Field(0, ge=0)
    payment_type: str = "full"
    status: str = "pending"
    booking_id: Optional[str] = None
    booking_date: Optional[str] = None
    payment_intent_id: Optional[str] = None
    notes: str = ""
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None
    appointment_purpose: Optional[str] = None

    @model_validator(mode="after")
    def _check(self) -> "BookingIn":
        if self.payment_type not in PAYMENT_TYPES:
            raise ValueError(f"paymentType must be one of: {', '.join(PAYMENT_TYPES)}")
        if self.status not in STATUSES:
            raise ValueError(f"status must be one of: {', '.join(STATUSES)}")
        if self.paid_amount > self.total_amount:
            raise ValueError("paidAmount cannot exceed totalAmount")
        return self


class StatusUpdate(CamelModel):
    status: str


def generate_booking_id(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    alphabet = string.ascii_uppercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(6))
    return f"DG-{now.strftime('%Y%m%d')}-{suffix}"


def _find(items: List[Dict[str, Any]], booking_id: str) -> Optional[Dict[str, Any]]:
    return next((b for b in items if str(b.get("bookingId")) == str(booking_id)), None)


def list_bookings() -> List[Dict[str, Any]]:
    return BOOKINGS.all()


def get_booking(booking_id: str) -> Optional[Dict[str, Any]]:
    return BOOKINGS.find_one(lambda b: str(b.get("bookingId")) == str(booking_id))


def list_user_bookings(user: Dict[str, Any]) -> List[Dict[str, Any]]:
    uid = str(user.get("id") or "")
    email = str(user.get("email") or "").strip().lower()

    def _mine(b: Dict[str, Any]) -> bool:
        if uid and str(b.get("userId") or "") == uid:
            return True
        return bool(email) and str(b.get("customerEmail") or "").strip().lower() == email

    return BOOKINGS.find(_mine)


def create_booking(payload: BookingIn, user: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    doc = payload.to_doc()
    doc["customerEmail"] = doc["customerEmail"].strip().lower()
    doc["bookingId"] = (doc.get("bookingId") or "").strip() or generate_booking_id()
    doc["bookingDate"] = doc.get("bookingDate") or now_iso()
    if user:
        doc["userId"] = str(user.get("id"))
    row = BOOKINGS.stamp_new(doc)

    def _insert(items: List[Dict[str, Any]]) -> None:
        if _find(items, row["bookingId"]):
            raise ConflictError(f"Booking '{row['bookingId']}' already exists")
        items.append(row)

    BOOKINGS.mutate(_insert)
    return row


def update_status(booking_id: str, status: str) -> Dict[str, Any]:
    if status not in STATUSES:
        raise ValueError(f"status must be one of: {', '.join(STATUSES)}")

    def _update(items: List[Dict[str, Any]]) -> Dict[str, Any]:
        row = _find(items, booking_id)
        if row is None:
            raise NotFoundError("Booking not found")
        return apply_fields(row, {"status": status})

    return BOOKINGS.mutate(_update)


def delete_booking(booking_id: str) -> Optional[Dict[str, Any]]:
    def _delete(items: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        for i, b in enumerate(items):
            if str(b.get("bookingId")) == str(booking_id):
                return items.pop(i)
        return None

    return BOOKINGS.mutate(_delete)


def mark_payment_status(payment_intent_id: str, status: str) -> Optional[Dict[str, Any]]:
    """Set the status of the booking linked to a payment intent, if any."""
    if not payment_intent_id or status not in STATUSES:
        return None

    def _update(items: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        row = next((b for b in items if str(b.get("paymentIntentId") or "") == str(payment_intent_id)), None)
        if row is None:
            return None
        return apply_fields(row, {"status": status})

    return BOOKINGS.mutate(_update)


# ---------- Admin views ----------
def list_with_tours() -> List[Dict[str, Any]]:
    tours = {str(t.get("slug")): t for t in list_tours()}
    out = []
    for b in list_bookings():
        t = tours.get(str(b.get("tourSlug")))
        out.append({**b, "tour": tour_summary(t) if t else None})
    return out


def _growth(current: int, previous: int) -> float:
    if previous <= 0:
        return 0
    return round((current - previous) / previous * 100, 1)


def _count_between(stamps: List[datetime], start: datetime, end: datetime) -> int:
    return sum(1 for ts in stamps if start <= ts < end)


def dashboard_stats(now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    items = BOOKINGS.load()
    today = now.date()

    by_status = {s: 0 for s in STATUSES}
    total_revenue = 0.0
    today_bookings = 0
    today_revenue = 0.0
    stamps: List[datetime] = []

    for b in items:
        status = str(b.get("status") or "pending")
        by_status[status] = by_status.get(status, 0) + 1
        amount = float(b.get("paidAmount") or 0)
        counts = status not in _REVENUE_EXCLUDED
        if counts:
            total_revenue += amount
        created = parse_iso(b.get("createdAt"))
        if created is None:
            continue
        stamps.append(created)
        if created.date() == today:
            today_bookings += 1
            if counts:
                today_revenue += amount

    week = timedelta(days=7)
    month = timedelta(days=30)
    end = now + timedelta(microseconds=1)
    return {
        "totalBookings": len(items),
        "totalRevenue": round(total_revenue, 2),
        "todayBookings": today_bookings,
        "todayRevenue": round(today_revenue, 2),
        "byStatus": by_status,
        "weeklyGrowth": _growth(
            _count_between(stamps, end - week, end),
            _count_between(stamps, end - 2 * week, end - week),
        ),
        "monthlyGrowth": _growth(
            _count_between(stamps, end - month, end),
            _count_between(stamps, end - 2 * month, end - month),
        ),
    }
