import hashlib
import hmac
import json
import time
from types import SimpleNamespace
from unittest.mock import patch

import jwt
import pytest
from fastapi.testclient import TestClient

from subsync.core.app_factory import create_application
from subsync.core.config import Settings
from subsync.infrastructure.persistence.sqlite import SQLiteSubscriptionStore
from subsync.services.customer_directory import CustomerDirectory
from subsync.services.stripe_service import StripeGateway

WEBHOOK_SECRET = "whsec_test_signing_secret"
AUTH_SECRET = "test-auth-secret-that-is-long-enough-for-hs256"
PRICE_ID = "price_monthly_test"
FRONTEND_ORIGIN = "http://localhost:3000"


@pytest.fixture
def settings(monkeypatch, tmp_path):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_dummy")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setenv("STRIPE_PRICE_ID", PRICE_ID)
    monkeypatch.setenv("AUTH_TOKEN_SECRET", AUTH_SECRET)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "app.db"))
    monkeypatch.setenv("FRONTEND_BASE_URL", FRONTEND_ORIGIN)
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", f"{FRONTEND_ORIGIN},https://app.example.com")
    return Settings()


@pytest.fixture
def price_id():
    return PRICE_ID


@pytest.fixture
def auth_secret():
    return AUTH_SECRET


@pytest.fixture
def store(tmp_path):
    store = SQLiteSubscriptionStore(tmp_path / "store.db")
    yield store
    store.close()


@pytest.fixture
def gateway():
    return StripeGateway(secret_key="sk_test_dummy", webhook_secret=WEBHOOK_SECRET)


@pytest.fixture
def customer_directory(store, gateway):
    return CustomerDirectory(store, gateway)


@pytest.fixture
def stripe_api():
    """Patch every Stripe SDK call the gateway makes; no network is used."""
    with patch("stripe.Customer.list") as customer_list, patch(
        "stripe.Customer.create"
    ) as customer_create, patch("stripe.checkout.Session.create") as session_create, patch(
        "stripe.Subscription.list"
    ) as subscription_list, patch(
        "stripe.Subscription.modify"
    ) as subscription_modify:
        customer_list.return_value = SimpleNamespace(data=[])
        customer_create.return_value = SimpleNamespace(id="cus_new")
        session_create.return_value = SimpleNamespace(
            id="cs_test_123",
            url="https://checkout.stripe.com/c/pay/cs_test_123",
        )
        subscription_list.return_value = SimpleNamespace(data=[SimpleNamespace(id="sub_123")])
        subscription_modify.return_value = SimpleNamespace(id="sub_123")
        yield SimpleNamespace(
            customer_list=customer_list,
            customer_create=customer_create,
            session_create=session_create,
            subscription_list=subscription_list,
            subscription_modify=subscription_modify,
        )


def _signature_header(payload: bytes, secret: str, timestamp: int) -> str:
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def sign():
    """Build a Stripe-Signature header for a payload."""

    def _sign(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
        return _signature_header(payload, secret, timestamp or int(time.time()))

    return _sign


@pytest.fixture
def make_event():
    """Serialize a Stripe event envelope around ``obj``."""
    counter = iter(range(1, 10_000))

    def _make(event_type: str, obj: dict) -> bytes:
        event = {
            "id": f"evt_test_{next(counter)}",
            "object": "event",
            "type": event_type,
            "data": {"object": obj},
        }
        return json.dumps(event).encode("utf-8")

    return _make


@pytest.fixture
def make_token():
    def _make(subject="user-1", email="user1@example.com", secret=AUTH_SECRET, **claims) -> str:
        payload = {"sub": subject, "exp": int(time.time()) + 3600, **claims}
        if email is not None:
            payload["email"] = email
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token):
    def _headers(subject="user-1", email="user1@example.com") -> dict:
        return {"Authorization": f"Bearer {make_token(subject=subject, email=email)}"}

    return _headers


@pytest.fixture
def client(settings, stripe_api):
    app = create_application(settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def app_store(client):
    """Store wired into the running test application."""
    return client.app.state.container.store
