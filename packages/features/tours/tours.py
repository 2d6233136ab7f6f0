from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from packages.features.store import (
    CamelModel,
    ConflictError,
    JsonCollection,
    NotFoundError,
    apply_fields,
    slugify,
)

TOURS = JsonCollection("tours", "tour")


class ItineraryDay(CamelModel):
    day: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    activities: List[str] = Field(default_factory=list)


class AdditionalInfo(CamelModel):
    countries_visited: List[str] = Field(default_factory=list)
    starting_point: str = ""
    ending_point: str = ""


class TravelWindow(CamelModel):
    start: Optional[date] = None
    end: Optional[date] = None


class TourIn(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = None
    duration_days: int = Field(..., ge=1, le=365)
    summary: str = ""
    description: str = ""
    line: str = ""
    highlights: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    guaranteed_departure: bool = False
    regular_price_per_person: Optional[float] = Field(None, ge=0)
    promo_price_per_person: Optional[float] = Field(None, ge=0)
    base_price_per_day: Optional[float] = Field(None, ge=0)
    allows_downpayment: bool = False
    published: bool = True
    additional_info: AdditionalInfo = Field(default_factory=AdditionalInfo)
    itinerary: List[ItineraryDay] = Field(default_factory=list)
    departure_dates: List[date] = Field(default_factory=list)
    travel_window: Optional[TravelWindow] = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v


class TourUpdate(TourIn):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    duration_days: Optional[int] = Field(None, ge=1, le=365)


def _check_prices(doc: Dict[str, Any]) -> None:
    regular = doc.get("regularPricePerPerson")
    promo = doc.get("promoPricePerPerson")
    if regular is not None and promo is not None and float(promo) > float(regular):
        raise ValueError("Promo price cannot exceed the regular price")


def _resolve_slug(doc: Dict[str, Any]) -> str:
    slug = slugify(doc.get("slug") or "") or slugify(doc.get("title") or "")
    if not slug:
        raise ValueError("Slug could not be generated from title")
    return slug


def _slug_taken(items: List[Dict[str, Any]], slug: str, exclude_id: str = "") -> bool:
    return any(str(t.get("slug")) == slug and str(t.get("id")) != exclude_id for t in items)


def list_tours(published_only: bool = False) -> List[Dict[str, Any]]:
    if published_only:
        return TOURS.find(lambda t: t.get("published", True) is not False)
    return TOURS.all()


def get_tour(tour_id: str) -> Optional[Dict[str, Any]]:
    return TOURS.get(tour_id)


def get_tour_by_slug(slug: str, published_only: bool = False) -> Optional[Dict[str, Any]]:
    tour = TOURS.find_one(lambda t: str(t.get("slug")) == str(slug))
    if tour and published_only and tour.get("published", True) is False:
        return None
    return tour


def create_tour(payload: TourIn) -> Dict[str, Any]:
    doc = payload.to_doc()
    doc["slug"] = _resolve_slug(doc)
    _check_prices(doc)
    row = TOURS.stamp_new(doc)

    def _insert(items: List[Dict[str, Any]]) -> None:
        if _slug_taken(items, row["slug"]):
            raise ConflictError(f"A tour with slug '{row['slug']}' already exists")
        items.append(row)

    TOURS.mutate(_insert)
    return row


def update_tour(tour_id: str, payload: TourUpdate) -> Dict[str, Any]:
    fields = payload.to_doc(partial=True)
    for required in ("title", "durationDays"):
        if required in fields and fields[required] is None:
            fields.pop(required)
    if "slug" in fields:
        fields["slug"] = slugify(fields.get("slug") or "")
        if not fields["slug"]:
            fields.pop("slug")

    def _update(items: List[Dict[str, Any]]) -> Dict[str, Any]:
        row = next((t for t in items if str(t.get("id")) == str(tour_id)), None)
        if row is None:
            raise NotFoundError("Tour not found")
        merged = {**row, **fields}
        _check_prices(merged)
        if "slug" in fields and _slug_taken(items, fields["slug"], exclude_id=str(tour_id)):
            raise ConflictError(f"A tour with slug '{fields['slug']}' already exists")
        return apply_fields(row, fields)

    return TOURS.mutate(_update)


def delete_tour(tour_id: str) -> bool:
    return TOURS.delete(tour_id) is not None


def tour_summary(tour: Dict[str, Any]) -> Dict[str, Any]:
    keys = (
        "id",
        "slug",
        "title",
        "durationDays",
        "summary",
        "highlights",
        "images",
        "guaranteedDeparture",
        "allowsDownpayment",
        "additionalInfo",
    )
    return {k: tour.get(k) for k in keys if k in tour}
