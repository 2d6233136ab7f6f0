from __future__ import annotations

import math
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import Field

from packages.features.bookings.bookings import BOOKINGS
from packages.features.store import (
    CamelModel,
    JsonCollection,
    NotFoundError,
    apply_fields,
    parse_iso,
)

REVIEWS = JsonCollection("reviews", "rev")

CATEGORIES = ("tourGuide", "cleanliness", "communication", "value", "organization")
SORT_FIELDS = ("createdAt", "rating", "helpfulVotes")
TIMEFRAMES = {"7d": 7, "30d": 30, "90d": 90}


class ReviewCategories(CamelModel):
    tour_guide: Optional[int] = Field(None, ge=1, le=5)
    cleanliness: Optional[int] = Field(None, ge=1, le=5)
    communication: Optional[int] = Field(None, ge=1, le=5)
    value: Optional[int] = Field(None, ge=1, le=5)
    organization: Optional[int] = Field(None, ge=1, le=5)


class ReviewIn(CamelModel):
    name: str = ""
    tour_slug: str = ""
    tour_title: str = ""
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)
    categories: Optional[ReviewCategories] = None
    photos: List[str] = Field(default_factory=list)
    booking_id: Optional[str] = None


def _same_user(r: Dict[str, Any], user: Dict[str, Any]) -> bool:
    uid = str(user.get("id") or "")
    email = str(user.get("email") or "").strip().lower()
    if uid and str(r.get("userId") or "") == uid:
        return True
    return bool(email) and str(r.get("userEmail") or "").strip().lower() == email


def _user_booking(user: Dict[str, Any], tour_slug: str, status: Optional[str] = None,
                  booking_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
    email = str(user.get("email") or "").strip().lower()

    def _match(b: Dict[str, Any]) -> bool:
        if str(b.get("customerEmail") or "").strip().lower() != email:
            return False
        if str(b.get("tourSlug") or "") != tour_slug:
            return False
        if status and b.get("status") != status:
            return False
        return not booking_id or str(b.get("bookingId")) == booking_id

    return BOOKINGS.find_one(_match)


def list_reviews() -> List[Dict[str, Any]]:
    return REVIEWS.all()


def list_approved(limit: int = 50) -> List[Dict[str, Any]]:
    return REVIEWS.find(lambda r: r.get("isApproved") is True)[:limit]


def list_user_reviews(user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return REVIEWS.find(lambda r: _same_user(r, user))


def submit_review(payload: ReviewIn, user: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    doc = payload.to_doc()
    doc["tourSlug"] = doc["tourSlug"].strip()
    doc["comment"] = doc["comment"].strip()
    if not doc["comment"]:
        raise ValueError("Name, rating, and comment are required")

    cats = doc.get("categories") or {}
    doc["categories"] = {c: cats.get(c) or doc["rating"] for c in CATEGORIES}
    doc["helpfulVotes"] = 0

    if user is None:
        doc["name"] = doc["name"].strip()
        if not doc["name"]:
            raise ValueError("Name, rating, and comment are required")
        doc.pop("bookingId", None)
        doc["isVerifiedBooking"] = False
        doc["isApproved"] = False
        return REVIEWS.insert(doc)

    doc["name"] = str(user.get("fullName") or "").strip() or doc["name"].strip()
    doc["userId"] = str(user.get("id"))
    doc["userEmail"] = str(user.get("email") or "").strip().lower()
    verified = bool(doc.get("bookingId")) and _user_booking(
        user, doc["tourSlug"], status="completed", booking_id=str(doc["bookingId"])
    ) is not None
    doc["isVerifiedBooking"] = verified
    doc["isApproved"] = verified
    row = REVIEWS.stamp_new(doc)

    def _insert(items: List[Dict[str, Any]]) -> None:
        if any(str(r.get("tourSlug") or "") == row["tourSlug"] and _same_user(r, user) for r in items):
            raise ValueError("You have already reviewed this tour. You can only submit one review per tour.")
        items.append(row)

    REVIEWS.mutate(_insert)
    return row


def approve_review(review_id: str) -> Dict[str, Any]:
    row = REVIEWS.update(review_id, {"isApproved": True, "isRejected": False})
    if row is None:
        raise NotFoundError("Review not found")
    return row


def reject_review(review_id: str) -> Dict[str, Any]:
    """Hide a review from the public listings without deleting it."""
    row = REVIEWS.update(review_id, {"isApproved": False, "isRejected": True})
    if row is None:
        raise NotFoundError("Review not found")
    return row


def delete_review(review_id: str) -> bool:
    return REVIEWS.delete(review_id) is not None


def mark_helpful(review_id: str) -> int:
    def _inc(items: List[Dict[str, Any]]) -> int:
        row = next((r for r in items if str(r.get("id")) == str(review_id)), None)
        if row is None:
            raise NotFoundError("Review not found")
        apply_fields(row, {"helpfulVotes": int(row.get("helpfulVotes") or 0) + 1})
        return row["helpfulVotes"]

    return REVIEWS.mutate(_inc)


def _empty_stats() -> Dict[str, Any]:
    return {
        "averageRating": 0,
        "totalReviews": 0,
        "ratingDistribution": {str(n): 0 for n in range(5, 0, -1)},
        "categoryAverages": {c: 0 for c in CATEGORIES},
    }


def tour_stats(reviews: List[Dict[str, Any]]) -> Dict[str, Any]:
    total = len(reviews)
    if not total:
        return _empty_stats()
    stats = _empty_stats()
    stats["totalReviews"] = total
    stats["averageRating"] = round(sum(int(r.get("rating") or 0) for r in reviews) / total, 1)
    for r in reviews:
        key = str(int(r.get("rating") or 0))
        if key in stats["ratingDistribution"]:
            stats["ratingDistribution"][key] += 1
    for c in CATEGORIES:
        s = sum(int((r.get("categories") or {}).get(c) or 0) for r in reviews)
        stats["categoryAverages"][c] = round(s / total, 1)
    return stats


def tour_reviews(tour_slug: str, page: int = 1, limit: int = 10, sort_by: str = "createdAt") -> Dict[str, Any]:
    page = max(1, int(page or 1))
    limit = max(1, min(100, int(limit or 10)))
    if sort_by not in SORT_FIELDS:
        sort_by = "createdAt"

    approved = REVIEWS.find(lambda r: str(r.get("tourSlug") or "") == tour_slug and r.get("isApproved") is True)
    approved.sort(key=lambda r: (r.get(sort_by) or 0) if sort_by != "createdAt" else str(r.get("createdAt") or ""),
                  reverse=True)
    start = (page - 1) * limit
    total = len(approved)
    return {
        "reviews": approved[start:start + limit],
        "stats": tour_stats(approved),
        "pagination": {
            "currentPage": page,
            "totalPages": math.ceil(total / limit) if total else 0,
            "totalReviews": total,
        },
    }


def eligibility(user: Dict[str, Any], tour_slug: str) -> Dict[str, Any]:
    if REVIEWS.find_one(lambda r: str(r.get("tourSlug") or "") == tour_slug and _same_user(r, user)):
        return {"canReview": False, "reason": "already_reviewed", "message": "You have already reviewed this tour"}

    completed = _user_booking(user, tour_slug, status="completed")
    if completed:
        return {
            "canReview": True,
            "isVerified": True,
            "bookingId": completed.get("bookingId"),
            "message": "You can write a verified review for this tour",
        }

    any_booking = _user_booking(user, tour_slug)
    if any_booking:
        return {
            "canReview": True,
            "isVerified": False,
            "bookingId": any_booking.get("bookingId"),
            "message": "You can write a review for this tour (pending verification)",
        }

    return {"canReview": True, "isVerified": False, "message": "You can write a review for this tour"}


def _avg(values: List[float]) -> float:
    return round(sum(values) / len(values), 1) if values else 0


def analytics(timeframe: str = "30d") -> Dict[str, Any]:
    """Moderation counts plus rating, tour and daily breakdowns for reviews in the timeframe."""
    days = TIMEFRAMES.get(timeframe, TIMEFRAMES["30d"])
    since = datetime.now(timezone.utc) - timedelta(days=days)
    reviews = [r for r in REVIEWS.all() if (parse_iso(r.get("createdAt")) or since) >= since]

    stats = tour_stats(reviews)
    by_tour: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    by_day: Dict[str, List[int]] = defaultdict(list)
    for r in reviews:
        by_tour[str(r.get("tourSlug") or "")].append(r)
        by_day[str(r.get("createdAt") or "")[:10]].append(int(r.get("rating") or 0))

    top_tours = [
        {
            "tourSlug": slug,
            "tourTitle": rows[0].get("tourTitle") or "",
            "count": len(rows),
            "averageRating": _avg([int(r.get("rating") or 0) for r in rows]),
            "verifiedCount": sum(1 for r in rows if r.get("isVerifiedBooking")),
        }
        for slug, rows in by_tour.items()
    ]
    top_tours.sort(key=lambda t: (-t["count"], t["tourSlug"]))

    return {
        "timeframe": timeframe if timeframe in TIMEFRAMES else "30d",
        "totals": {
            "totalReviews": len(reviews),
            "approvedReviews": sum(1 for r in reviews if r.get("isApproved") is True),
            "pendingReviews": sum(1 for r in reviews if not r.get("isApproved") and not r.get("isRejected")),
            "rejectedReviews": sum(1 for r in reviews if r.get("isRejected")),
            "verifiedReviews": sum(1 for r in reviews if r.get("isVerifiedBooking")),
            "averageRating": stats["averageRating"],
        },
        "ratingDistribution": stats["ratingDistribution"],
        "categoryAverages": stats["categoryAverages"],
        "topTours": top_tours[:10],
        "timeline": [
            {"date": day, "count": len(ratings), "averageRating": _avg(ratings)}
            for day, ratings in sorted(by_day.items())
        ],
    }
