from __future__ import annotations

from services.gateway.routers import health


class TestHealth:
    def test_root(self, client):
        data = client.get("/").json()
        assert data["message"] == "Discover Group API"
        assert "/api/bookings" in data["endpoints"]

    def test_health(self, client, data_dir):
        data = client.get("/health").json()
        assert data["ok"] is True
        assert data["storage"] == {"dataDir": str(data_dir), "writable": True}
        assert data["services"] == {"stripe": False, "paymongo": False, "email": "none", "storageProvider": "local"}

    def test_services_reflect_env(self, client, monkeypatch):
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test")
        monkeypatch.setenv("STORAGE_PROVIDER", "nonsense")
        services = client.get("/health").json()["services"]
        assert services["stripe"] is True
        assert services["storageProvider"] == "local"

    def test_unwritable_storage(self, client, monkeypatch):
        monkeypatch.setattr(health, "_storage_writable", lambda: False)
        resp = client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["ok"] is False

    def test_unknown_route(self, client):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not Found"}
