"""Shared test fixtures and helpers."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.main import app
from app.services.booking_service import BookingService
from app.services.db_service import InMemoryBookingStore

ADMIN_TOKEN = "test-admin-token"

# Wednesday of the week 2025-03-10 .. 2025-03-16
FIXED_NOW = datetime(2025, 3, 12, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return InMemoryBookingStore(clock=lambda: FIXED_NOW)


@pytest.fixture
def service(store):
    return BookingService(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def admin_headers(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_API_TOKEN", ADMIN_TOKEN)
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def client(store):
    app.state.store = store
    with TestClient(app) as test_client:
        yield test_client
    app.state.store = None


def booking_payload(date="2025-03-10", time="4:30 PM", name="Jane Doe", phone="555-123-4567"):
    return {"date": date, "time": time, "name": name, "phone": phone}
