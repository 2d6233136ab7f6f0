from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field

from packages.features.store import CamelModel, JsonDocument, new_id

DEFAULTS: Dict[str, Any] = {
    "statistics": {
        "travelers": 30000,
        "packages": 75,
        "rating": 4.9,
        "destinations": 25,
    },
    "hero": {
        "title": "Experience the Magic of European Adventures",
        "subtitle": "Discover breathtaking destinations with expertly crafted tours",
        "ctaText": "Explore Tours",
        "ctaLink": "#tours",
        "promoText": "Limited Time Offer: Up to 30% off on European Tours!",
        "promoButtonText": "Book Now",
    },
    "features": [],
    "testimonials": [],
    "logo": {
        "url": "/logo.png",
        "height": 64,
    },
}

SETTINGS = JsonDocument("homepage_settings", DEFAULTS)


class Feature(CamelModel):
    id: Optional[str] = None
    title: str = ""
    description: str = ""
    icon: str = ""


class Testimonial(CamelModel):
    id: Optional[str] = None
    name: str = ""
    location: str = ""
    rating: float = Field(5, ge=0, le=5)
    text: str = ""
    image: str = ""


class SettingsUpdate(CamelModel):
    # Section dicts are shallow-merged; list sections replace.
    statistics: Optional[Dict[str, Any]] = None
    hero: Optional[Dict[str, Any]] = None
    features: Optional[List[Feature]] = None
    testimonials: Optional[List[Testimonial]] = None
    logo: Optional[Dict[str, Any]] = None


def _fill_missing(doc: Dict[str, Any]) -> Dict[str, Any]:
    # Sections missing from older files
    for key, value in SETTINGS.default().items():
        doc.setdefault(key, value)
    return doc


def get_settings() -> Dict[str, Any]:
    if not SETTINGS.exists():
        return SETTINGS.save(SETTINGS.default())
    return _fill_missing(SETTINGS.load())


def update_settings(payload: SettingsUpdate) -> Dict[str, Any]:
    def _apply(doc: Dict[str, Any]) -> Dict[str, Any]:
        _fill_missing(doc)
        for key in ("statistics", "hero", "logo"):
            patch = getattr(payload, key)
            if patch:
                doc[key] = {**(doc.get(key) or {}), **patch}
        if payload.features is not None:
            doc["features"] = [
                {**f.to_doc(), "id": f.id or new_id("feat")} for f in payload.features
            ]
        if payload.testimonials is not None:
            doc["testimonials"] = [
                {**t.to_doc(), "id": t.id or new_id("tst")} for t in payload.testimonials
            ]
        return doc

    return SETTINGS.update(_apply)
