from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import Field

from packages.features.store import (
    CamelModel,
    JsonCollection,
    NotFoundError,
    apply_fields,
    now_iso,
    parse_iso,
)

BANNERS = JsonCollection("promo_banners", "bnr")


class BannerIn(CamelModel):
    is_enabled: bool = False
    title: str = Field("Limited Time Offer", min_length=1)
    message: str = Field("Up to 30% off on European Tours!", min_length=1)
    cta_text: str = "Book Now"
    cta_link: str = "/deals"
    background_color: str = "#1e40af"
    text_color: str = "#ffffff"
    discount_percentage: float = Field(0, ge=0, le=100)
    discounted_tours: List[str] = Field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class BannerUpdate(CamelModel):
    is_enabled: Optional[bool] = None
    title: Optional[str] = Field(None, min_length=1)
    message: Optional[str] = Field(None, min_length=1)
    cta_text: Optional[str] = None
    cta_link: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    discounted_tours: Optional[List[str]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


def _check_window(doc: Dict[str, Any]) -> None:
    start = parse_iso(doc.get("startDate"))
    end = parse_iso(doc.get("endDate"))
    if start and end and end < start:
        raise ValueError("endDate must be on or after startDate")


def _save_hook(items: List[Dict[str, Any]], row: Dict[str, Any]) -> None:
    """Only one banner may be enabled: enabling ``row`` disables the rest."""
    if not row.get("isEnabled"):
        return
    ts = now_iso()
    for b in items:
        if b is not row and str(b.get("id")) != str(row.get("id")) and b.get("isEnabled"):
            b["isEnabled"] = False
            b["updatedAt"] = ts


def list_banners() -> List[Dict[str, Any]]:
    return BANNERS.all()


def get_banner(banner_id: str) -> Optional[Dict[str, Any]]:
    return BANNERS.get(banner_id)


def active_banner(now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    now = now or datetime.now(timezone.utc)
    banner = BANNERS.find_one(lambda b: b.get("isEnabled") is True)
    if not banner:
        return None
    start = parse_iso(banner.get("startDate"))
    end = parse_iso(banner.get("endDate"))
    if start and now < start:
        return None
    if end and now > end:
        return None
    return banner


def create_banner(payload: BannerIn) -> Dict[str, Any]:
    doc = payload.to_doc()
    _check_window(doc)
    row = BANNERS.stamp_new(doc)

    def _insert(items: List[Dict[str, Any]]) -> None:
        _save_hook(items, row)
        items.append(row)

    BANNERS.mutate(_insert)
    return row


def _change(banner_id: str, fn) -> Dict[str, Any]:
    def _apply(items: List[Dict[str, Any]]) -> Dict[str, Any]:
        row = next((b for b in items if str(b.get("id")) == str(banner_id)), None)
        if row is None:
            raise NotFoundError("Banner not found")
        fields = fn(row)
        _check_window({**row, **fields})
        apply_fields(row, fields)
        _save_hook(items, row)
        return row

    return BANNERS.mutate(_apply)


def update_banner(banner_id: str, payload: BannerUpdate) -> Dict[str, Any]:
    fields = payload.to_doc(partial=True)
    for required in ("isEnabled", "title", "message"):
        if required in fields and fields[required] is None:
            fields.pop(required)
    return _change(banner_id, lambda row: fields)


def toggle_banner(banner_id: str) -> Dict[str, Any]:
    return _change(banner_id, lambda row: {"isEnabled": not row.get("isEnabled")})


def delete_banner(banner_id: str) -> bool:
    return BANNERS.delete(banner_id) is not None
