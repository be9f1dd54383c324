"""Shared fixtures.

Environment variables are set before any ``salon`` import so the global
settings instance picks up the in-memory backend.
"""

import os

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("ADMIN_PASSWORD", "test-password")
os.environ.setdefault("CRON_SECRET", "")
os.environ.setdefault("EMAIL_USER", "")
os.environ.setdefault("EMAIL_PASS", "")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from salon.app.core.config import settings  # noqa: E402
from salon.app.main import create_app  # noqa: E402


class FakeClock:
    """Manually advanced time source for the rate limiter."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(settings, "storage_backend", "memory")
    monkeypatch.setattr(settings, "admin_password", "test-password")
    monkeypatch.setattr(settings, "cron_secret", "")
    monkeypatch.setattr(settings, "email_user", "")
    monkeypatch.setattr(settings, "twilio_account_sid", "")
    with TestClient(create_app(), base_url="https://testserver") as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    resp = client.post("/api/auth/login", json={"password": "test-password"})
    assert resp.status_code == 200
    return client


@pytest.fixture
def human_form() -> dict:
    """A booking as the public form submits it."""
    return {
        "clientName": "Anna",
        "phone": "+371 20000000",
        "service": "Coloring",
        "date": "2030-05-10",
        "time": "10:00",
        "_antiSpam": {"timeSpent": 8000, "userActivity": {"clicks": 3, "focuses": 4}},
    }
