from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from packages.features.store import (
    CamelModel,
    JsonCollection,
    NotFoundError,
    apply_fields,
    now_iso,
)

VISAS = JsonCollection("visa_applications", "visa")

STATUSES = ("pending", "under_review", "documents_requested", "approved", "rejected", "completed")
DOCUMENT_KINDS = ("passport", "photo", "bankStatement", "employmentCertificate", "itr")

# ---------- Cost estimate ----------
BASE_COST = 8500

COUNTRY_FACTORS = {
    "usa": 1.8,
    "canada": 1.6,
    "uk": 1.5,
    "australia": 1.4,
    "germany": 1.3,
    "france": 1.3,
    "italy": 1.2,
    "spain": 1.2,
    "japan": 1.4,
    "south korea": 1.2,
}

TYPE_FACTORS = {"Tourist": 1.0, "Business": 1.3, "Student": 1.5, "Work": 2.0, "Transit": 0.6}
URGENCY_FACTORS = {"standard": 1.0, "rush": 1.5, "emergency": 2.0}

VisaType = Literal["Tourist", "Business", "Student", "Work", "Transit"]
Urgency = Literal["standard", "rush", "emergency"]


def estimate_cost(country: str, visa_type: str = "Tourist", urgency: str = "standard") -> int:
    factor = COUNTRY_FACTORS.get(str(country or "").strip().lower(), 1.0)
    factor *= TYPE_FACTORS.get(visa_type, 1.0)
    factor *= URGENCY_FACTORS.get(urgency, 1.0)
    return int(round(BASE_COST * factor))


class VisaApplicationIn(CamelModel):
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=3)
    customer_phone: str = Field(..., min_length=1)
    nationality: str = "Filipino"
    destination_country: str = Field(..., min_length=1)
    visa_type: VisaType = "Tourist"
    urgency: Urgency = "standard"
    additional_services: List[str] = Field(default_factory=list)
    tour_reference: str = ""
    notes: str = ""


class EstimateIn(CamelModel):
    destination_country: str = Field(..., min_length=1)
    visa_type: VisaType = "Tourist"
    urgency: Urgency = "standard"


class VisaUpdate(CamelModel):
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    additional_services: Optional[List[str]] = None
    tour_reference: Optional[str] = None


class StatusIn(CamelModel):
    status: str


def create_application(payload: VisaApplicationIn) -> Dict[str, Any]:
    doc = payload.to_doc()
    doc["customerEmail"] = doc["customerEmail"].strip().lower()
    doc["destinationCountry"] = doc["destinationCountry"].strip()
    doc.update(
        {
            "status": "pending",
            "assignedTo": "",
            "applicationDate": now_iso(),
            "estimatedCost": estimate_cost(doc["destinationCountry"], doc["visaType"], doc["urgency"]),
            "documents": {k: "" for k in DOCUMENT_KINDS},
        }
    )
    return VISAS.insert(doc)


def list_applications(status: str = "", q: str = "") -> List[Dict[str, Any]]:
    status = (status or "").strip()
    q = (q or "").strip().lower()

    def _match(v: Dict[str, Any]) -> bool:
        if status and v.get("status") != status:
            return False
        if not q:
            return True
        hay = " ".join(
            str(v.get(k) or "") for k in ("customerName", "customerEmail", "destinationCountry", "tourReference")
        ).lower()
        return q in hay

    return VISAS.find(_match)


def get_application(app_id: str) -> Dict[str, Any]:
    return VISAS.require(app_id, "Visa application")


def update_application(app_id: str, payload: VisaUpdate) -> Dict[str, Any]:
    fields = {k: v for k, v in payload.to_doc(partial=True).items() if v is not None}
    row = VISAS.update(app_id, fields)
    if row is None:
        raise NotFoundError("Visa application not found")
    return row


def set_status(app_id: str, status: str) -> Dict[str, Any]:
    if status not in STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(STATUSES)}")
    row = VISAS.update(app_id, {"status": status})
    if row is None:
        raise NotFoundError("Visa application not found")
    return row


def attach_document(app_id: str, kind: str, url: str) -> Dict[str, Any]:
    if kind not in DOCUMENT_KINDS:
        raise ValueError(f"Invalid document kind. Must be one of: {', '.join(DOCUMENT_KINDS)}")

    def _attach(items: List[Dict[str, Any]]) -> Dict[str, Any]:
        row = next((v for v in items if str(v.get("id")) == str(app_id)), None)
        if row is None:
            raise NotFoundError("Visa application not found")
        docs = dict(row.get("documents") or {})
        docs[kind] = url
        return apply_fields(row, {"documents": docs})

    return VISAS.mutate(_attach)


def delete_application(app_id: str) -> bool:
    return VISAS.delete(app_id) is not None


def stats() -> Dict[str, Any]:
    counts = {s: 0 for s in STATUSES}
    items = VISAS.load()
    for v in items:
        s = str(v.get("status") or "pending")
        counts[s] = counts.get(s, 0) + 1
    return {"total": len(items), "byStatus": counts}
