from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from services.gateway.auth import require_admin

from .countries import (
    AttractionIn,
    AttractionUpdate,
    CountryIn,
    CountryUpdate,
    TestimonialIn,
    TestimonialUpdate,
    add_subdoc,
    create_country,
    delete_country,
    delete_subdoc,
    get_country_by_slug,
    list_countries,
    update_country,
    update_subdoc,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/countries")
def countries_list():
    return list_countries(active_only=True)


@router.get("/api/countries/{slug}")
def countries_get(slug: str):
    c = get_country_by_slug(slug, active_only=True)
    if not c:
        raise HTTPException(status_code=404, detail="Country not found")
    return c


@router.post("/api/countries", status_code=201, dependencies=[Depends(require_admin)])
def countries_create(payload: CountryIn):
    c = create_country(payload)
    logger.info("Created country %s", c["slug"])
    return c


@router.put("/api/countries/{country_id}", dependencies=[Depends(require_admin)])
def countries_update(country_id: str, payload: CountryUpdate):
    return update_country(country_id, payload)


@router.delete("/api/countries/{country_id}", dependencies=[Depends(require_admin)])
def countries_delete(country_id: str):
    if not delete_country(country_id):
        raise HTTPException(status_code=404, detail="Country not found")
    return {"message": "Country deleted successfully"}


# ---------- Attractions ----------
@router.post("/api/countries/{country_id}/attractions", status_code=201, dependencies=[Depends(require_admin)])
def attractions_add(country_id: str, payload: AttractionIn):
    return add_subdoc(country_id, "attractions", payload.to_doc())


@router.put("/api/countries/{country_id}/attractions/{attraction_id}", dependencies=[Depends(require_admin)])
def attractions_update(country_id: str, attraction_id: str, payload: AttractionUpdate):
    return update_subdoc(country_id, "attractions", attraction_id, payload.to_doc(partial=True))


@router.delete("/api/countries/{country_id}/attractions/{attraction_id}", dependencies=[Depends(require_admin)])
def attractions_delete(country_id: str, attraction_id: str):
    return delete_subdoc(country_id, "attractions", attraction_id)


# ---------- Testimonials ----------
@router.post("/api/countries/{country_id}/testimonials", status_code=201, dependencies=[Depends(require_admin)])
def testimonials_add(country_id: str, payload: TestimonialIn):
    return add_subdoc(country_id, "testimonials", payload.to_doc())


@router.put("/api/countries/{country_id}/testimonials/{testimonial_id}", dependencies=[Depends(require_admin)])
def testimonials_update(country_id: str, testimonial_id: str, payload: TestimonialUpdate):
    return update_subdoc(country_id, "testimonials", testimonial_id, payload.to_doc(partial=True))


@router.delete("/api/countries/{country_id}/testimonials/{testimonial_id}", dependencies=[Depends(require_admin)])
def testimonials_delete(country_id: str, testimonial_id: str):
    return delete_subdoc(country_id, "testimonials", testimonial_id)
