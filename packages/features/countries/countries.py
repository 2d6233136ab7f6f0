from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field

from packages.features.store import (
    CamelModel,
    ConflictError,
    JsonCollection,
    NotFoundError,
    apply_fields,
    new_id,
    slugify,
)

COUNTRIES = JsonCollection("countries", "ctry")

# Embedded lists: attractions / testimonials
SUBDOCS = {
    "attractions": ("attr", "Attraction"),
    "testimonials": ("tst", "Testimonial"),
}


class AttractionIn(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    image_url: str = ""
    display_order: int = 0


class AttractionUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = None
    display_order: Optional[int] = None


class TestimonialIn(CamelModel):
    quote: str = Field(..., min_length=1)
    author: str = ""
    display_order: int = 0


class TestimonialUpdate(CamelModel):
    quote: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = None
    display_order: Optional[int] = None


class CountryIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)
    slug: Optional[str] = None
    description: str = Field(..., min_length=1)
    best_time: str = Field(..., min_length=1)
    currency: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1)
    hero_image_url: str = ""
    hero_images: List[str] = Field(default_factory=list)
    hero_query: str = ""
    visa_info: str = ""
    attractions: List[AttractionIn] = Field(default_factory=list)
    testimonials: List[TestimonialIn] = Field(default_factory=list)
    is_active: bool = True


class CountryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    slug: Optional[str] = None
    description: Optional[str] = Field(None, min_length=1)
    best_time: Optional[str] = Field(None, min_length=1)
    currency: Optional[str] = Field(None, min_length=1)
    language: Optional[str] = Field(None, min_length=1)
    hero_image_url: Optional[str] = None
    hero_images: Optional[List[str]] = None
    hero_query: Optional[str] = None
    visa_info: Optional[str] = None
    is_active: Optional[bool] = None


def _sort_subdocs(country: Dict[str, Any]) -> None:
    for key in SUBDOCS:
        items = country.get(key) or []
        items.sort(key=lambda x: int(x.get("displayOrder") or 0))
        country[key] = items


def _with_ids(items: List[Dict[str, Any]], prefix: str) -> List[Dict[str, Any]]:
    return [{**x, "id": x.get("id") or new_id(prefix)} for x in items]


def _check_unique(items: List[Dict[str, Any]], doc: Dict[str, Any], exclude_id: str = "") -> None:
    for c in items:
        if str(c.get("id")) == exclude_id:
            continue
        if "name" in doc and str(c.get("name") or "").strip().lower() == str(doc["name"]).strip().lower():
            raise ConflictError(f"Country '{doc['name']}' already exists")
        if "slug" in doc and str(c.get("slug")) == doc["slug"]:
            raise ConflictError(f"A country with slug '{doc['slug']}' already exists")


def list_countries(active_only: bool = True) -> List[Dict[str, Any]]:
    items = COUNTRIES.load()
    if active_only:
        items = [c for c in items if c.get("isActive", True)]
    items.sort(key=lambda c: str(c.get("name") or "").lower())
    return items


def get_country_by_slug(slug: str, active_only: bool = True) -> Optional[Dict[str, Any]]:
    c = COUNTRIES.find_one(lambda x: str(x.get("slug")) == str(slug))
    if c and active_only and not c.get("isActive", True):
        return None
    return c


def create_country(payload: CountryIn) -> Dict[str, Any]:
    doc = payload.to_doc()
    doc["name"] = doc["name"].strip()
    doc["slug"] = slugify(doc.get("slug") or "") or slugify(doc["name"])
    if not doc["slug"]:
        raise ValueError("Slug could not be generated from name")
    for key, (prefix, _) in SUBDOCS.items():
        doc[key] = _with_ids(doc.get(key) or [], prefix)
    _sort_subdocs(doc)
    row = COUNTRIES.stamp_new(doc)

    def _insert(items: List[Dict[str, Any]]) -> None:
        _check_unique(items, row)
        items.append(row)

    COUNTRIES.mutate(_insert)
    return row


def update_country(country_id: str, payload: CountryUpdate) -> Dict[str, Any]:
    fields = {k: v for k, v in payload.to_doc(partial=True).items() if v is not None}
    if "slug" in fields:
        fields["slug"] = slugify(fields["slug"])
        if not fields["slug"]:
            fields.pop("slug")

    def _update(items: List[Dict[str, Any]]) -> Dict[str, Any]:
        row = next((c for c in items if str(c.get("id")) == str(country_id)), None)
        if row is None:
            raise NotFoundError("Country not found")
        _check_unique(items, fields, exclude_id=str(country_id))
        return apply_fields(row, fields)

    return COUNTRIES.mutate(_update)


def delete_country(country_id: str) -> bool:
    return COUNTRIES.delete(country_id) is not None


# ---------- Embedded documents ----------
def _mutate_subdocs(country_id: str, key: str, fn) -> Dict[str, Any]:
    prefix, label = SUBDOCS[key]

    def _apply(items: List[Dict[str, Any]]) -> Dict[str, Any]:
        row = next((c for c in items if str(c.get("id")) == str(country_id)), None)
        if row is None:
            raise NotFoundError("Country not found")
        subdocs = list(row.get(key) or [])
        fn(subdocs, prefix, label)
        row[key] = subdocs
        _sort_subdocs(row)
        return apply_fields(row, {})

    return COUNTRIES.mutate(_apply)


def add_subdoc(country_id: str, key: str, data: Dict[str, Any]) -> Dict[str, Any]:
    def _add(subdocs, prefix, label):
        subdocs.append({**data, "id": new_id(prefix)})

    return _mutate_subdocs(country_id, key, _add)


def update_subdoc(country_id: str, key: str, sub_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    def _update(subdocs, prefix, label):
        sub = next((s for s in subdocs if str(s.get("id")) == str(sub_id)), None)
        if sub is None:
            raise NotFoundError(f"{label} not found")
        sub.update({k: v for k, v in data.items() if k != "id" and v is not None})

    return _mutate_subdocs(country_id, key, _update)


def delete_subdoc(country_id: str, key: str, sub_id: str) -> Dict[str, Any]:
    def _delete(subdocs, prefix, label):
        before = len(subdocs)
        subdocs[:] = [s for s in subdocs if str(s.get("id")) != str(sub_id)]
        if len(subdocs) == before:
            raise NotFoundError(f"{label} not found")

    return _mutate_subdocs(country_id, key, _delete)
