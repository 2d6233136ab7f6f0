from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from services.gateway.auth import require_admin

from .homepage import SettingsUpdate, get_settings, update_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/homepage-settings")
def homepage_settings_get():
    return get_settings()


@router.put("/api/homepage-settings", dependencies=[Depends(require_admin)])
def homepage_settings_put(payload: SettingsUpdate):
    settings = update_settings(payload)
    logger.info("Homepage settings updated")
    return {"message": "Settings updated successfully", "settings": settings}
