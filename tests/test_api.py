"""
Tests for the HTTP surface: public reads, registration, admin gating and export
"""

import asyncio
import io
from datetime import date

import pandas as pd
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import models  # noqa: F401
from app.api.deps import catalog_cache
from app.api.ws import REGISTRATIONS_CHANNEL, WebSocketManager
from app.core.config import settings
from app.core.db import Base, get_db
from app.utils.security import rate_limiter
from main import app

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_api.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_PASSWORD = "correct horse"
THURSDAY = "2025-03-06"

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client(monkeypatch):
    """Client against a fresh database with a known admin password"""
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", ADMIN_PASSWORD)
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db
    catalog_cache.invalidate()
    rate_limiter.clear()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        catalog_cache.invalidate()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def admin(client):
    response = client.post("/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client

@pytest.fixture
def catalog(admin):
    """Mercy Cafe on Thursdays with two tables"""
    admin.post("/admin/venues", json={"id": "mercy", "name": "Mercy Cafe", "weekday": 4, "time": "19:30"})
    admin.post("/admin/tables", json={"id": "free-talk", "title": "Free Talk", "sort_order": 1, "venue_ids": ["mercy"]})
    admin.post("/admin/tables", json={"id": "it", "title": "AI / IT", "sort_order": 2, "capacity": 1, "venue_ids": ["mercy"]})
    return admin

def registration(name, table="free-talk", event_date=THURSDAY, **extra):
    return {"user_name": name, "table_id": table, "event_date": event_date, "venue_id": "mercy", **extra}

def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}

def test_admin_routes_require_session(client):
    response = client.post("/admin/venues", json={"id": "x", "name": "X", "weekday": 1})
    assert response.status_code == 401
    assert response.json()["error_code"] == "auth_failure"

    assert client.get("/admin/registrations", params={"date": THURSDAY}).status_code == 401

def test_wrong_password_is_rejected(client):
    response = client.post("/admin/login", json={"password": "guess"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid password"
    assert client.get("/admin/session").json()["data"] == {"is_admin": False}

def test_login_sets_cookie_and_logout_clears_it(client):
    response = client.post("/admin/login", json={"password": ADMIN_PASSWORD})
    cookie_header = response.headers["set-cookie"]

    assert settings.ADMIN_COOKIE_NAME in cookie_header
    assert "HttpOnly" in cookie_header
    assert "samesite=strict" in cookie_header.lower()
    assert client.get("/admin/session").json()["data"] == {"is_admin": True}

    client.post("/admin/logout")
    assert client.get("/admin/session").json()["data"] == {"is_admin": False}

def test_forged_cookie_is_not_an_admin_session(client):
    client.cookies.set(settings.ADMIN_COOKIE_NAME, "true")
    assert client.post("/admin/venues", json={"id": "x", "name": "X", "weekday": 1}).status_code == 401

def test_public_venue_listing(catalog):
    venues = catalog.get("/venues").json()["data"]

    assert [v["id"] for v in venues] == ["mercy"]
    assert venues[0]["table_ids"] == ["free-talk", "it"]
    assert venues[0]["tables"][1]["capacity"] == 1
    assert catalog.get("/venues/nowhere").status_code == 404

def test_upcoming_schedule_falls_on_the_venue_weekday(catalog):
    data = catalog.get("/schedule/upcoming", params={"count": 3}).json()["data"]

    assert data["exceptions_applied"] is True
    days = [date.fromisoformat(o["date"]) for o in data["occurrences"]]
    assert len(days) == 3
    assert all(d.isoweekday() == 4 for d in days)
    assert data["occurrences"][0]["is_next"] is True

def test_month_uses_zero_based_months(catalog):
    data = catalog.get("/schedule/month", params={"year": 2025, "month": 2}).json()["data"]
    assert [o["date"] for o in data["occurrences"]] == ["2025-03-06", "2025-03-13", "2025-03-20", "2025-03-27"]

    assert catalog.get("/schedule/month", params={"year": 2025, "month": 12}).status_code == 422

def test_cancelling_an_occurrence(catalog):
    response = catalog.put("/admin/schedule/mercy/2025-03-13", json={"is_cancelled": True, "note": "Holiday"})
    assert response.status_code == 200

    occurrences = catalog.get("/schedule/month", params={"year": 2025, "month": 2}).json()["data"]["occurrences"]
    cancelled = {o["date"]: o for o in occurrences if o["is_cancelled"]}
    assert list(cancelled) == ["2025-03-13"]
    assert cancelled["2025-03-13"]["note"] == "Holiday"

    catalog.delete("/admin/schedule/mercy/2025-03-13")
    occurrences = catalog.get("/schedule/month", params={"year": 2025, "month": 2}).json()["data"]["occurrences"]
    assert not any(o["is_cancelled"] for o in occurrences)

def test_exception_must_fall_on_meeting_day(catalog):
    response = catalog.put("/admin/schedule/mercy/2025-03-07", json={"is_cancelled": True})
    assert response.status_code == 422
    assert response.json()["details"] == {"field": "date"}

def test_register_then_duplicate(catalog):
    response = catalog.post("/registrations", json=registration(
        "Aiko", language="Other", other_language="Thai", marketing_source="Instagram", is_first_time=True,
    ))
    assert response.status_code == 201
    body = response.json()["data"]
    assert body["language_goals"] == "Other: Thai"
    assert body["venue_id"] == "mercy"

    duplicate = catalog.post("/registrations", json=registration("Aiko", table="it"))
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == f"You have already registered for {THURSDAY}!"

def test_register_without_table_is_rejected(catalog):
    response = catalog.post("/registrations", json=registration("Aiko", table=""))
    assert response.status_code == 422
    assert response.json()["details"] == {"field": "table_id"}

def test_register_is_rate_limited(catalog, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_PER_MINUTE", 2)
    for name in ("A", "B"):
        assert catalog.post("/registrations", json=registration(name)).status_code == 201

    response = catalog.post("/registrations", json=registration("C"))
    assert response.status_code == 429
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "rate_limited"
    assert body["message"] == "Rate limit exceeded. Please try again later."

def test_malformed_date_uses_error_envelope(catalog):
    response = catalog.post("/registrations", json=registration("Aiko", event_date="06/03/2025"))

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "validation_error"
    assert body["details"]["field"] == "event_date"
    assert "event_date" in body["message"]

def test_out_of_range_month_uses_error_envelope(catalog):
    body = catalog.get("/schedule/month", params={"year": 2025, "month": 12}).json()

    assert body["error_code"] == "validation_error"
    assert body["details"]["field"] == "month"

def test_counts_and_availability(catalog):
    catalog.post("/registrations", json=registration("Aiko", table="it"))
    catalog.put("/admin/table-exceptions/mercy/free-talk/2025-03-06", json={"is_cancelled": True})

    counts = catalog.get("/registrations/counts", params={"date": THURSDAY, "venue_id": "mercy"}).json()["data"]
    assert counts == {"free-talk": 0, "it": 1}

    tables = catalog.get("/venues/mercy/availability", params={"date": THURSDAY}).json()["data"]["tables"]
    by_id = {t["table_id"]: t for t in tables}
    assert by_id["it"]["is_full"] is True
    assert by_id["free-talk"]["is_cancelled"] is True

    catalog.put("/admin/table-exceptions/mercy/free-talk/2025-03-06", json={"is_cancelled": False})
    assert catalog.get("/admin/table-exceptions/mercy/2025-03-06").json()["data"] == []

def test_admin_registrations_and_summary(catalog):
    catalog.post("/registrations", json=registration("Aiko", language="English", is_first_time=True))
    catalog.post("/registrations", json=registration("Ben", table="it", language="Japanese"))

    rows = catalog.get("/admin/registrations", params={"date": THURSDAY, "venue_id": "mercy"}).json()["data"]
    assert [r["user_name"] for r in rows] == ["Aiko", "Ben"]

    summary = catalog.get("/admin/analytics/date", params={"date": THURSDAY}).json()["data"]
    assert summary["total"] == 2
    assert summary["new_vs_returning"] == {"new": 1, "returning": 1}

def test_excel_export(catalog):
    catalog.post("/registrations", json=registration("Aiko", language="English"))
    catalog.post("/registrations", json=registration("Ben", event_date="2025-03-13"))

    response = catalog.get("/admin/export/registrations.xlsx", params={"start": "2025-03-01", "end": "2025-03-31"})
    assert response.status_code == 200
    assert response.content[:2] == b"PK"
    assert "registrations_2025-03-01_2025-03-31.xlsx" in response.headers["content-disposition"]

    df = pd.read_excel(io.BytesIO(response.content), sheet_name="Registrations")
    assert list(df["Name"]) == ["Aiko", "Ben"]
    assert df["Language Goals"].iloc[0] == "English"

def test_comments_are_public_but_deletion_is_admin_only(catalog):
    created = catalog.post("/comments", json={"user_name": "Aiko", "message": "Great night!"})
    assert created.status_code == 201
    comment_id = created.json()["data"]["id"]

    assert [c["message"] for c in catalog.get("/comments").json()["data"]] == ["Great night!"]

    catalog.post("/admin/logout")
    assert catalog.delete(f"/admin/comments/{comment_id}").status_code == 401

def test_websocket_greets_and_answers_ping(client):
    with client.websocket_connect("/ws/registrations") as websocket:
        greeting = websocket.receive_json()
        assert greeting["type"] == "connection"
        assert greeting["channel"] == REGISTRATIONS_CHANNEL

        websocket.send_json({"type": "ping", "timestamp": 123})
        assert websocket.receive_json() == {"type": "pong", "timestamp": 123}

class FakeSocket:
    def __init__(self, broken=False):
        self.broken = broken
        self.sent = []

    async def accept(self):
        pass

    async def send_text(self, text):
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(text)

def test_broadcast_drops_broken_sockets():
    manager = WebSocketManager()
    healthy, broken = FakeSocket(), FakeSocket(broken=True)

    async def scenario():
        await manager.connect(healthy, REGISTRATIONS_CHANNEL)
        await manager.connect(broken, REGISTRATIONS_CHANNEL)
        await manager.broadcast(REGISTRATIONS_CHANNEL, {"type": "registration"})

    asyncio.run(scenario())

    assert healthy.sent == ['{"type": "registration"}']
    assert manager.get_connection_count(REGISTRATIONS_CHANNEL) == 1
