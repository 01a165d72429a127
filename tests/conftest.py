"""
Shared fixtures: an app built on an in-memory SQLite database, a fake
payment gateway and helpers to create confirmed, logged-in users.
"""

import json
from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient

from deaf_assistant.api.deps import get_payment_gateway
from deaf_assistant.core.config import Settings
from deaf_assistant.main import create_app
from deaf_assistant.services.payment_service import (
    PaymentError,
    PaymentResult,
    WebhookVerificationError,
)

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Admin@123456"
DEFAULT_PASSWORD = "secret123"
VALID_SIGNATURE = "t=1,v1=valid"


class FakePaymentGateway:
    """In-process stand-in for Stripe. ``status`` / ``error`` steer the next charge."""

    publishable_key = "pk_test_fake"

    def __init__(self):
        self.status = "succeeded"
        self.error = None
        self.intents = []
        self.customers = []
        self.charges = []

    def create_payment_intent(self, amount, currency, description, metadata=None):
        if self.error:
            raise PaymentError(self.error)
        self.intents.append(
            {"amount": amount, "currency": currency, "metadata": metadata or {}}
        )
        return f"pi_{len(self.intents)}_secret"

    def create_customer(self, email, name):
        self.customers.append({"email": email, "name": name})
        return f"cus_{len(self.customers)}"

    def process_payment(self, payment_method_id, customer_id, amount, currency, description):
        if self.error:
            raise PaymentError(self.error)
        self.charges.append({"customer_id": customer_id, "amount": amount})
        return PaymentResult(payment_id=f"pi_{len(self.charges)}", status=self.status)

    def construct_event(self, payload, signature):
        if signature != VALID_SIGNATURE:
            raise WebhookVerificationError("Invalid signature")
        return json.loads(payload)


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "DATABASE_URL": "sqlite://",
        "SECRET_KEY": "test-secret-key",
        "ADMIN_EMAIL": ADMIN_EMAIL,
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
        "MAIL_SUPPRESS_SEND": True,
        "RETURN_TOKENS_IN_RESPONSE": True,
        "UPLOAD_DIR": str(tmp_path / "uploads"),
        "APP_BASE_URL": "http://testserver",
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def app(settings, gateway):
    app = create_app(settings)
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session(app, client):
    """A separate session on the app's database (started by ``client``)."""
    db = app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def login(client, email, password=DEFAULT_PASSWORD):
    resp = client.post("/api/account/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, email, password=DEFAULT_PASSWORD, **fields):
    payload = {
        "email": email,
        "password": password,
        "confirm_password": password,
        "first_name": fields.pop("first_name", "Test"),
        "last_name": fields.pop("last_name", "User"),
    }
    payload.update(fields)
    return client.post("/api/account/register", json=payload)


def create_user(client, email, password=DEFAULT_PASSWORD):
    """Register, confirm and log in; returns ``(headers, user_id)``."""
    resp = register(client, email, password)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    user_id = body["user"]["id"]

    resp = client.post(
        "/api/account/confirm-email",
        json={"user_id": user_id, "token": body["confirmation_token"]},
    )
    assert resp.status_code == 200, resp.text

    return auth_headers(login(client, email, password)["token"]), user_id


@pytest.fixture
def admin_headers(client):
    return auth_headers(login(client, ADMIN_EMAIL, ADMIN_PASSWORD)["token"])


@pytest.fixture
def user(client):
    return create_user(client, "user@example.com")


@pytest.fixture
def user_headers(user):
    return user[0]


@contextmanager
def other_session(app):
    """A second session on the app's database, standing in for a concurrent request."""
    db = app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
