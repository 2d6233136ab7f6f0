"""Shared pytest fixtures.

Fixture overview
----------------
data_dir        points DATA_DIR at a per-test tmp directory
client          FastAPI TestClient over the gateway app
admin_user      an admin account stored in the tmp data dir
admin_headers   bearer headers for ``admin_user``
user            a client (customer) account
user_headers    bearer headers for ``user``
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

# Importing the app loads .env; the autouse fixture below then scrubs vendor settings.
from services.gateway.app import app
from services.gateway.auth import create_access_token
from packages.features.users.users import create_user

VENDOR_ENV = (
    "STRIPE_SECRET_KEY",
    "PAYMONGO_SECRET_KEY",
    "PAYMONGO_WEBHOOK_SECRET",
    "SENDGRID_API_KEY",
    "SENDGRID_FROM_EMAIL",
    "SMTP_URL",
    "SMTP_USER",
    "SMTP_PASS",
    "SMTP_FROM",
    "STORAGE_PROVIDER",
    "S3_REGION",
    "S3_BUCKET",
    "S3_ACCESS_KEY_ID",
    "S3_SECRET_ACCESS_KEY",
    "R2_ENDPOINT",
    "R2_BUCKET_NAME",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "R2_PUBLIC_URL",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_KEY",
    "SUPABASE_BUCKET",
    "CLIENT_URL",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    for name in VENDOR_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("JWT_SECRET", "test-secret-that-is-long-enough-for-hs256")
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://testserver")
    return tmp_path / "data"


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def admin_user():
    return create_user("admin@example.com", "admin-pass", "Admin User", role="admin")


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user)}"}


@pytest.fixture
def user():
    return create_user("juan@example.com", "juan-pass", "Juan Dela Cruz")


@pytest.fixture
def user_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}
