from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from services.gateway.auth import get_optional_user, require_admin, require_auth

from .bookings import (
    BookingIn,
    StatusUpdate,
    create_booking,
    dashboard_stats,
    delete_booking,
    get_booking,
    list_bookings,
    list_user_bookings,
    list_with_tours,
    update_status,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/bookings", dependencies=[Depends(require_admin)])
def bookings_list():
    return list_bookings()


@router.post("/api/bookings", status_code=201)
def bookings_create(payload: BookingIn, user: Optional[dict] = Depends(get_optional_user)):
    b = create_booking(payload, user=user)
    logger.info("Created booking %s for tour %s", b["bookingId"], b["tourSlug"])
    return b


# Declared before /{booking_id} so "mine" is not read as an id
@router.get("/api/bookings/mine")
def bookings_mine(user: dict = Depends(require_auth)):
    return list_user_bookings(user)


@router.get("/api/bookings/{booking_id}")
def bookings_get(booking_id: str):
    b = get_booking(booking_id)
    if not b:
        raise HTTPException(status_code=404, detail="Booking not found")
    return b


@router.patch("/api/bookings/{booking_id}/status", dependencies=[Depends(require_admin)])
def bookings_update_status(booking_id: str, payload: StatusUpdate):
    b = update_status(booking_id, payload.status)
    logger.info("Booking %s status -> %s", booking_id, payload.status)
    return b


@router.delete("/api/bookings/{booking_id}", dependencies=[Depends(require_admin)])
def bookings_delete(booking_id: str):
    b = delete_booking(booking_id)
    if not b:
        raise HTTPException(status_code=404, detail="Booking not found")
    logger.info("Deleted booking %s", booking_id)
    return {"message": "Booking deleted successfully", "deletedBooking": b}


# ---------- Admin ----------
@router.get("/admin/bookings", dependencies=[Depends(require_admin)])
def admin_bookings():
    return list_with_tours()


@router.get("/admin/bookings/dashboard-stats", dependencies=[Depends(require_admin)])
def admin_dashboard_stats():
    return dashboard_stats()
