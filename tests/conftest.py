"""
Shared fixtures.

The household API is never called for real: FakeHouseholdApi answers
through httpx.MockTransport and records every request it sees.
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from divwelly.app import create_app
from divwelly.core.apiclient import HouseholdApi
from divwelly.core.config import Settings
from divwelly.core.session import SESSION_COOKIE, SessionCookie

API_URL = "http://api.test"


class FakeHouseholdApi:
    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, method, path, status=200, json=None, headers=None):
        self.routes[(method, path)] = (status, json, headers)
        return self

    def handle(self, method, path, fn):
        self.routes[(method, path)] = fn
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, request.url.path, body, request.headers.get("cookie")))
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "Not found"})
        if callable(route):
            return route(request)
        status, payload, headers = route
        if payload is None:
            return httpx.Response(status, headers=headers)
        return httpx.Response(status, json=payload, headers=headers)

    def sent(self, method, path):
        return [c for c in self.calls if c[0] == method and c[1] == path]


# ---------- sample payloads ----------
HOUSEHOLD = {
    "id": "h1",
    "name": "Flat 42",
    "inviteCode": "abc123",
    "createdAt": "2024-01-05T10:00:00.000Z",
    "address": "42 Green Lane",
    "postcode": None,
    "wifiName": "Flat42",
    "wifiPassword": "hunter2",
}

MEMBERS = [
    {"id": "u1", "name": "Alice Smith", "email": "alice@example.com", "role": "admin"},
    {"id": "u2", "name": "Bob Jones", "email": "bob@example.com", "role": "member"},
]

EXPENSES = [
    {"id": "e1", "description": "Groceries", "amount": 4250, "paidById": "u1",
     "paidByName": "Alice Smith", "createdAt": "2024-02-01T09:00:00.000Z"},
    {"id": "e2", "description": "Electricity", "amount": 9000, "paidById": "u2",
     "paidByName": "Bob Jones", "createdAt": "2024-02-03T09:00:00.000Z",
     "dueDate": "2024-02-28T00:00:00.000Z"},
]

BALANCES = [{"from": "Bob Jones", "to": "Alice Smith", "amount": 2125}]

PAYMENTS = [
    {"payment": {"id": "p1", "amount": 2125, "is_paid": True,
                 "paid_at": "2024-02-02T12:00:00.000Z", "receipt_url": None},
     "user": {"id": "u1", "name": "Alice Smith", "email": "alice@example.com"}},
    {"payment": {"id": "p2", "amount": 2125, "is_paid": False,
                 "paid_at": None, "receipt_url": None},
     "user": {"id": "u2", "name": "Bob Jones", "email": "bob@example.com"}},
]

RECURRING = [
    {"id": "r1", "description": "Rent", "amount": 120000, "frequency": "monthly",
     "startDate": "2024-01-01T00:00:00.000Z", "endDate": None, "dayOfMonth": 1,
     "dayOfWeek": None, "isActive": True, "lastGenerated": "2024-02-01T00:00:00.000Z"},
]

SESSION = {"user": {"id": "u1", "name": "Alice Smith", "email": "alice@example.com"},
           "session": {"id": "s1"}}


def seed_household(fake, household_id="h1"):
    base = f"/api/households/{household_id}"
    fake.on("GET", base, json={"household": HOUSEHOLD})
    fake.on("GET", f"{base}/members", json={"members": MEMBERS})
    fake.on("GET", f"{base}/expenses", json={"expenses": EXPENSES})
    fake.on("GET", f"{base}/balances", json={"balances": BALANCES})
    fake.on("GET", f"/api/recurring-expenses/household/{household_id}",
            json={"recurringExpenses": RECURRING})
    return fake


@pytest.fixture
def fake_api():
    return FakeHouseholdApi()


@pytest.fixture
def api(fake_api):
    client = HouseholdApi(
        API_URL,
        session=SessionCookie(SESSION_COOKIE, "tok-123"),
        transport=httpx.MockTransport(fake_api),
    )
    yield client
    client.close()


@pytest.fixture
def settings():
    return Settings(api_url=API_URL)


@pytest.fixture
def app(settings, fake_api):
    return create_app(settings, api_transport=httpx.MockTransport(fake_api))


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def logged_in(client, fake_api):
    """A browser holding a valid session cookie."""
    fake_api.on("GET", "/api/auth/get-session", json=SESSION)
    client.cookies.set(SESSION_COOKIE, "tok-123")
    return client
