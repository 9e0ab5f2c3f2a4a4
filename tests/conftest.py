import itertools

import mongomock
import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext

import security
from database import get_db
from main import app

API_PREFIX = "/api"

_emails = itertools.count()


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(security, "pwd_context", CryptContext(schemes=["bcrypt"], bcrypt__rounds=4))


@pytest.fixture
def db():
    return mongomock.MongoClient()["fixit_test"]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    def _register(role="client", password="secret123", **extra):
        body = {
            "email": f"user{next(_emails)}@example.com",
            "password": password,
            "first_name": "Test",
            "last_name": role.title(),
            "role": role,
            **extra,
        }
        resp = client.post(f"{API_PREFIX}/auth/register", json=body)
        assert resp.status_code == 201, resp.json()
        data = resp.json()["data"]
        return data["user"], data["token"]
    return _register


@pytest.fixture
def make_service(client):
    def _make_service(token, **overrides):
        body = {
            "title": "Leaky faucet repair",
            "description": "Fix dripping kitchen or bathroom faucets",
            "category": "plumbing",
            "price": 80.0,
            "duration": 60,
            "tags": ["faucet"],
            **overrides,
        }
        resp = client.post(f"{API_PREFIX}/services", json=body, headers=auth(token))
        assert resp.status_code == 201, resp.json()
        return resp.json()["data"]
    return _make_service


@pytest.fixture
def make_booking(client):
    def _make_booking(token, service_id, **overrides):
        body = {
            "service_id": service_id,
            "scheduled_date": "2026-11-02T09:30:00Z",
            "address": {"street": "12 Rue de la Paix", "city": "Paris", "zip_code": "75002", "country": "FR"},
            "notes": "Ring twice",
            **overrides,
        }
        resp = client.post(f"{API_PREFIX}/bookings", json=body, headers=auth(token))
        assert resp.status_code == 201, resp.json()
        return resp.json()["data"]
    return _make_booking


@pytest.fixture
def completed_booking(client, make_booking):
    def _completed_booking(client_token, helper_token, service_id):
        booking = make_booking(client_token, service_id)
        resp = client.put(
            f"{API_PREFIX}/bookings/{booking['id']}/status",
            json={"status": "completed"},
            headers=auth(helper_token),
        )
        assert resp.status_code == 200, resp.json()
        return resp.json()["data"]
    return _completed_booking
