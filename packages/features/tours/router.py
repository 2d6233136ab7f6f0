from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from services.gateway.auth import require_admin

from .tours import (
    TourIn,
    TourUpdate,
    create_tour,
    delete_tour,
    get_tour,
    get_tour_by_slug,
    list_tours,
    update_tour,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------- Admin ----------
@router.get("/admin/tours", dependencies=[Depends(require_admin)])
def admin_list_tours():
    return list_tours()


@router.post("/admin/tours", status_code=201, dependencies=[Depends(require_admin)])
def admin_create_tour(payload: TourIn):
    tour = create_tour(payload)
    logger.info("Created tour %s (%s)", tour["slug"], tour["id"])
    return tour


@router.get("/admin/tours/{tour_id}", dependencies=[Depends(require_admin)])
def admin_get_tour(tour_id: str):
    tour = get_tour(tour_id)
    if not tour:
        raise HTTPException(status_code=404, detail="Tour not found")
    return tour


@router.put("/admin/tours/{tour_id}", dependencies=[Depends(require_admin)])
def admin_update_tour(tour_id: str, payload: TourUpdate):
    return update_tour(tour_id, payload)


@router.delete("/admin/tours/{tour_id}", status_code=204, dependencies=[Depends(require_admin)])
def admin_delete_tour(tour_id: str):
    if not delete_tour(tour_id):
        raise HTTPException(status_code=404, detail="Tour not found")
    logger.info("Deleted tour %s", tour_id)
    return Response(status_code=204)


# ---------- Public ----------
@router.get("/public/tours")
def public_list_tours():
    return list_tours(published_only=True)


@router.get("/public/tours/{slug}")
def public_get_tour(slug: str):
    tour = get_tour_by_slug(slug, published_only=True)
    if not tour:
        raise HTTPException(status_code=404, detail="Tour not found")
    return tour
