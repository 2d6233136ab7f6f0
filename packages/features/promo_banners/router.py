from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from services.gateway.auth import require_admin

from .promo_banners import (
    BannerIn,
    BannerUpdate,
    active_banner,
    create_banner,
    delete_banner,
    get_banner,
    list_banners,
    toggle_banner,
    update_banner,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/promo-banners/active")
def banners_active():
    return {"banner": active_banner()}


@router.get("/api/promo-banners", dependencies=[Depends(require_admin)])
def banners_list():
    return {"banners": list_banners()}


@router.get("/api/promo-banners/{banner_id}", dependencies=[Depends(require_admin)])
def banners_get(banner_id: str):
    b = get_banner(banner_id)
    if not b:
        raise HTTPException(status_code=404, detail="Banner not found")
    return {"banner": b}


@router.post("/api/promo-banners", status_code=201, dependencies=[Depends(require_admin)])
def banners_create(payload: BannerIn):
    b = create_banner(payload)
    logger.info("Created promo banner %s (enabled=%s)", b["id"], b["isEnabled"])
    return {"banner": b, "message": "Promo banner created successfully"}


@router.put("/api/promo-banners/{banner_id}", dependencies=[Depends(require_admin)])
def banners_update(banner_id: str, payload: BannerUpdate):
    return {"banner": update_banner(banner_id, payload), "message": "Promo banner updated successfully"}


@router.patch("/api/promo-banners/{banner_id}/toggle", dependencies=[Depends(require_admin)])
def banners_toggle(banner_id: str):
    b = toggle_banner(banner_id)
    state = "enabled" if b.get("isEnabled") else "disabled"
    logger.info("Promo banner %s %s", banner_id, state)
    return {"banner": b, "message": f"Banner {state} successfully"}


@router.delete("/api/promo-banners/{banner_id}", dependencies=[Depends(require_admin)])
def banners_delete(banner_id: str):
    if not delete_banner(banner_id):
        raise HTTPException(status_code=404, detail="Banner not found")
    return {"message": "Banner deleted successfully"}
