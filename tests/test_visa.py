"""
Visa application intake, cost estimates and admin processing.
"""

from __future__ import annotations

import asyncio

import pytest

from packages.features.visa.visa import estimate_cost
from services.storage.uploads import service as storage

URL = "/api/visa-applications"

APPLICATION = {
    "customerName": "Maria Santos",
    "customerEmail": "Maria@Example.com",
    "customerPhone": "+63 917 000 0000",
    "destinationCountry": "Japan",
    "visaType": "Tourist",
    "urgency": "rush",
}


@pytest.fixture
def application(client):
    resp = client.post(URL, json=APPLICATION)
    assert resp.status_code == 201
    return resp.json()


class TestEstimate:
    def test_factors(self):
        assert estimate_cost("USA", "Work", "emergency") == 61200
        assert estimate_cost("Japan", "Tourist", "rush") == 17850
        assert estimate_cost("Narnia") == 8500

    def test_endpoint(self, client):
        body = {"destinationCountry": "France", "visaType": "Business"}
        resp = client.post(f"{URL}/estimate", json=body)
        assert resp.json()["estimatedCost"] == 14365

    def test_unknown_visa_type(self, client):
        resp = client.post(f"{URL}/estimate", json={"destinationCountry": "France", "visaType": "Diplomatic"})
        assert resp.status_code == 400


class TestApplications:
    def test_create(self, application):
        assert application["status"] == "pending"
        assert application["customerEmail"] == "maria@example.com"
        assert application["estimatedCost"] == 17850
        assert application["documents"]["passport"] == ""

    def test_admin_only(self, client, user_headers, application):
        assert client.get(URL, headers=user_headers).status_code == 403
        assert client.get(f"{URL}/{application['id']}").status_code == 401

    def test_list_filters(self, client, admin_headers, application):
        client.post(URL, json={**APPLICATION, "customerName": "Pedro", "destinationCountry": "Canada"})
        assert len(client.get(URL, headers=admin_headers).json()) == 2
        found = client.get(f"{URL}?q=canada", headers=admin_headers).json()
        assert [a["customerName"] for a in found] == ["Pedro"]
        assert client.get(f"{URL}?status=approved", headers=admin_headers).json() == []

    def test_status(self, client, admin_headers, application):
        url = f"{URL}/{application['id']}/status"
        assert client.patch(url, json={"status": "approved"}, headers=admin_headers).json()["status"] == "approved"
        assert client.patch(url, json={"status": "lost"}, headers=admin_headers).status_code == 400
        stats = client.get(f"{URL}/stats", headers=admin_headers).json()
        assert stats["total"] == 1
        assert stats["byStatus"]["approved"] == 1

    def test_update(self, client, admin_headers, application):
        resp = client.put(f"{URL}/{application['id']}", json={"assignedTo": "Agent Lee"}, headers=admin_headers)
        assert resp.json()["assignedTo"] == "Agent Lee"
        assert resp.json()["status"] == "pending"

    def test_missing(self, client, admin_headers):
        resp = client.get(f"{URL}/nope", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Visa application not found"}

    def test_upload_document(self, client, admin_headers, application):
        resp = client.post(
            f"{URL}/{application['id']}/documents",
            data={"kind": "passport"},
            files={"file": ("passport.png", b"\x89PNG", "image/png")},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        url = resp.json()["documents"]["passport"]
        assert f"/uploads/visa/{application['id']}/passport-" in url

    def test_upload_document_off_event_loop(self, client, admin_headers, application, monkeypatch):
        seen = []

        def _put(key, data, content_type):
            try:
                asyncio.get_running_loop()
                seen.append("loop")
            except RuntimeError:
                seen.append("worker")
            return f"http://testserver/uploads/{key}"

        monkeypatch.setattr(storage, "put_object", _put)
        client.post(
            f"{URL}/{application['id']}/documents",
            data={"kind": "photo"},
            files={"file": ("me.png", b"\x89PNG", "image/png")},
            headers=admin_headers,
        )
        assert seen == ["worker"]

    def test_upload_document_bad_kind(self, client, admin_headers, application):
        resp = client.post(
            f"{URL}/{application['id']}/documents",
            data={"kind": "selfie"},
            files={"file": ("a.png", b"\x89PNG", "image/png")},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_delete(self, client, admin_headers, application):
        assert client.delete(f"{URL}/{application['id']}", headers=admin_headers).status_code == 200
        assert client.delete(f"{URL}/{application['id']}", headers=admin_headers).status_code == 404
