from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from services.gateway.auth import require_admin
from services.storage.uploads.service import store_upload

from .visa import (
    DOCUMENT_KINDS,
    EstimateIn,
    StatusIn,
    VisaApplicationIn,
    VisaUpdate,
    attach_document,
    create_application,
    delete_application,
    estimate_cost,
    get_application,
    list_applications,
    set_status,
    stats,
    update_application,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/visa-applications", status_code=201)
def visa_create(payload: VisaApplicationIn):
    row = create_application(payload)
    logger.info("Visa application %s for %s", row["id"], row["destinationCountry"])
    return row


@router.post("/api/visa-applications/estimate")
def visa_estimate(payload: EstimateIn):
    return {
        "destinationCountry": payload.destination_country,
        "visaType": payload.visa_type,
        "urgency": payload.urgency,
        "estimatedCost": estimate_cost(payload.destination_country, payload.visa_type, payload.urgency),
    }


# ---------- Admin ----------
@router.get("/api/visa-applications", dependencies=[Depends(require_admin)])
def visa_list(status: str = "", q: str = ""):
    return list_applications(status=status, q=q)


@router.get("/api/visa-applications/stats", dependencies=[Depends(require_admin)])
def visa_stats():
    return stats()


@router.get("/api/visa-applications/{app_id}", dependencies=[Depends(require_admin)])
def visa_get(app_id: str):
    return get_application(app_id)


@router.put("/api/visa-applications/{app_id}", dependencies=[Depends(require_admin)])
def visa_update(app_id: str, payload: VisaUpdate):
    return update_application(app_id, payload)


@router.patch("/api/visa-applications/{app_id}/status", dependencies=[Depends(require_admin)])
def visa_set_status(app_id: str, payload: StatusIn):
    row = set_status(app_id, payload.status)
    logger.info("Visa application %s status -> %s", app_id, payload.status)
    return row


@router.post("/api/visa-applications/{app_id}/documents", dependencies=[Depends(require_admin)])
async def visa_upload_document(app_id: str, kind: str = Form(...), file: UploadFile = File(...)):
    if kind not in DOCUMENT_KINDS:
        raise HTTPException(status_code=400, detail=f"Invalid document kind. Must be one of: {', '.join(DOCUMENT_KINDS)}")
    get_application(app_id)
    data = await file.read()
    stored = await run_in_threadpool(
        store_upload, file.filename or "", file.content_type or "", data, folder=f"visa/{app_id}", label=kind
    )
    logger.info("Stored %s for visa application %s", kind, app_id)
    return attach_document(app_id, kind, stored["url"])


@router.delete("/api/visa-applications/{app_id}", dependencies=[Depends(require_admin)])
def visa_delete(app_id: str):
    if not delete_application(app_id):
        raise HTTPException(status_code=404, detail="Visa application not found")
    return {"message": "Visa application deleted successfully"}
