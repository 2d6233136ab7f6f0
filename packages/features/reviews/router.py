from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from services.gateway.auth import get_optional_user, require_admin, require_auth

from .reviews import (
    ReviewIn,
    analytics,
    approve_review,
    delete_review,
    eligibility,
    list_approved,
    list_reviews,
    list_user_reviews,
    mark_helpful,
    reject_review,
    submit_review,
    tour_reviews,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/reviews/approved")
def reviews_approved():
    return list_approved()


@router.get("/api/reviews", dependencies=[Depends(require_admin)])
def reviews_list():
    return list_reviews()


@router.get("/api/reviews/analytics", dependencies=[Depends(require_admin)])
def reviews_analytics(timeframe: str = "30d"):
    return analytics(timeframe)


@router.post("/api/reviews", status_code=201)
def reviews_submit(payload: ReviewIn, user: Optional[dict] = Depends(get_optional_user)):
    review = submit_review(payload, user=user)
    logger.info(
        "Review %s submitted for %s (%s)",
        review["id"],
        review.get("tourSlug") or "-",
        "verified" if review.get("isVerifiedBooking") else "unverified",
    )
    message = (
        "Thank you for your review! It has been published."
        if review.get("isApproved")
        else "Thank you for your review! It will be published after moderation."
    )
    return {"success": True, "message": message, "review": review}


@router.get("/api/reviews/tour/{tour_slug}")
def reviews_for_tour(tour_slug: str, page: int = 1, limit: int = 10, sortBy: str = "createdAt"):
    return tour_reviews(tour_slug, page=page, limit=limit, sort_by=sortBy)


@router.get("/api/reviews/user/eligibility/{tour_slug}")
def reviews_eligibility(tour_slug: str, user: dict = Depends(require_auth)):
    return eligibility(user, tour_slug)


@router.get("/api/reviews/user/my-reviews")
def reviews_mine(user: dict = Depends(require_auth)):
    return {"reviews": list_user_reviews(user)}


@router.patch("/api/reviews/{review_id}/approve", dependencies=[Depends(require_admin)])
def reviews_approve(review_id: str):
    return {"message": "Review approved", "review": approve_review(review_id)}


@router.patch("/api/reviews/{review_id}/reject", dependencies=[Depends(require_admin)])
def reviews_reject(review_id: str):
    review = reject_review(review_id)
    logger.info("Review %s rejected for %s", review_id, review.get("tourSlug") or "-")
    return {"message": "Review rejected", "review": review}


@router.put("/api/reviews/{review_id}/helpful")
def reviews_helpful(review_id: str):
    return {"success": True, "helpfulVotes": mark_helpful(review_id)}


@router.delete("/api/reviews/{review_id}", dependencies=[Depends(require_admin)])
def reviews_delete(review_id: str):
    if not delete_review(review_id):
        raise HTTPException(status_code=404, detail="Review not found")
    return {"message": "Review deleted successfully"}
