"""
Promo banner administration and the single-enabled-banner rule.
"""

from __future__ import annotations

from datetime import datetime, timezone

from packages.features.promo_banners.promo_banners import BANNERS, BannerIn, active_banner, create_banner

URL = "/api/promo-banners"


def _enabled_ids():
    return [b["id"] for b in BANNERS.load() if b.get("isEnabled")]


class TestAdminBanners:
    def test_create_defaults(self, client, admin_headers):
        resp = client.post(URL, json={}, headers=admin_headers)
        assert resp.status_code == 201
        banner = resp.json()["banner"]
        assert banner["title"] == "Limited Time Offer"
        assert banner["isEnabled"] is False
        assert banner["ctaLink"] == "/deals"

    def test_requires_admin(self, client, user_headers):
        assert client.get(URL, headers=user_headers).status_code == 403

    def test_list_and_get(self, client, admin_headers):
        banner = client.post(URL, json={"title": "Summer"}, headers=admin_headers).json()["banner"]
        assert [b["id"] for b in client.get(URL, headers=admin_headers).json()["banners"]] == [banner["id"]]
        assert client.get(f"{URL}/{banner['id']}", headers=admin_headers).json()["banner"]["title"] == "Summer"
        resp = client.get(f"{URL}/nope", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Banner not found"}

    def test_discount_range(self, client, admin_headers):
        assert client.post(URL, json={"discountPercentage": 120}, headers=admin_headers).status_code == 400

    def test_end_before_start(self, client, admin_headers):
        body = {"startDate": "2025-06-10T00:00:00Z", "endDate": "2025-06-01T00:00:00Z"}
        resp = client.post(URL, json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "endDate must be on or after startDate"

    def test_update(self, client, admin_headers):
        banner = client.post(URL, json={}, headers=admin_headers).json()["banner"]
        resp = client.put(f"{URL}/{banner['id']}", json={"message": "50% off"}, headers=admin_headers)
        assert resp.json()["banner"]["message"] == "50% off"
        assert resp.json()["banner"]["title"] == "Limited Time Offer"

    def test_delete(self, client, admin_headers):
        banner = client.post(URL, json={}, headers=admin_headers).json()["banner"]
        assert client.delete(f"{URL}/{banner['id']}", headers=admin_headers).status_code == 200
        assert client.delete(f"{URL}/{banner['id']}", headers=admin_headers).status_code == 404


class TestSingleEnabled:
    def test_create_enabled_disables_others(self, client, admin_headers):
        first = client.post(URL, json={"isEnabled": True}, headers=admin_headers).json()["banner"]
        second = client.post(URL, json={"isEnabled": True}, headers=admin_headers).json()["banner"]
        assert _enabled_ids() == [second["id"]]
        assert first["id"] != second["id"]

    def test_update_enables_one(self, client, admin_headers):
        first = client.post(URL, json={"isEnabled": True}, headers=admin_headers).json()["banner"]
        second = client.post(URL, json={}, headers=admin_headers).json()["banner"]
        client.put(f"{URL}/{second['id']}", json={"isEnabled": True}, headers=admin_headers)
        assert _enabled_ids() == [second["id"]]
        assert first["id"] not in _enabled_ids()

    def test_toggle(self, client, admin_headers):
        first = client.post(URL, json={"isEnabled": True}, headers=admin_headers).json()["banner"]
        second = client.post(URL, json={}, headers=admin_headers).json()["banner"]

        resp = client.patch(f"{URL}/{second['id']}/toggle", headers=admin_headers)
        assert resp.json()["message"] == "Banner enabled successfully"
        assert _enabled_ids() == [second["id"]]

        resp = client.patch(f"{URL}/{second['id']}/toggle", headers=admin_headers)
        assert resp.json()["message"] == "Banner disabled successfully"
        assert _enabled_ids() == []
        assert first["id"] not in _enabled_ids()


class TestActiveBanner:
    def test_none(self, client):
        assert client.get("/api/promo-banners/active").json() == {"banner": None}

    def test_enabled_without_window(self, client, admin_headers):
        banner = client.post(URL, json={"isEnabled": True}, headers=admin_headers).json()["banner"]
        assert client.get("/api/promo-banners/active").json()["banner"]["id"] == banner["id"]

    def test_date_window(self):
        create_banner(BannerIn(
            is_enabled=True,
            start_date=datetime(2025, 6, 1, tzinfo=timezone.utc),
            end_date=datetime(2025, 6, 30, tzinfo=timezone.utc),
        ))
        assert active_banner(datetime(2025, 5, 31, tzinfo=timezone.utc)) is None
        assert active_banner(datetime(2025, 6, 15, tzinfo=timezone.utc)) is not None
        assert active_banner(datetime(2025, 7, 1, tzinfo=timezone.utc)) is None
