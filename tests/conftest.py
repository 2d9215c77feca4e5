import os

# Settings are cached on first use, so the test environment goes in first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["SHIPROCKET_API_KEY"] = "sr_test_key"
os.environ["SHIPROCKET_API_SECRET"] = "sr_test_secret"
os.environ["JWT_SECRET"] = "jwt-test-secret"
os.environ["ADMIN_PASSWORD"] = "static-admin-pass"

import pytest
from fastapi.testclient import TestClient

from storefront.api import deps
from storefront.infrastructure.db import SessionLocal, drop_models, init_models
from storefront.main import app
from storefront.seed import seed_catalog
from tests.fakes import FakeCheckoutTokens, FakeGateway, FakeShiprocket

CUSTOMER = {
    "name": "Asha Rao",
    "email": "asha@example.com",
    "phone": "9876543210",
    "address": {
        "line1": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
    },
}

STATIC_ADMIN = {"X-Admin-Password": "static-admin-pass"}

@pytest.fixture(autouse=True)
def database():
    init_models()
    yield
    drop_models()

@pytest.fixture
def db(database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def catalog(db):
    seed_catalog(db)
    return db

@pytest.fixture
def gateway():
    return FakeGateway()

@pytest.fixture
def shiprocket():
    return FakeShiprocket()

@pytest.fixture
def checkout_tokens():
    return FakeCheckoutTokens()

@pytest.fixture
def client(gateway, shiprocket, checkout_tokens):
    app.dependency_overrides[deps.get_payment_gateway] = lambda: gateway
    app.dependency_overrides[deps.get_shipping_provider] = lambda: shiprocket
    app.dependency_overrides[deps.get_checkout_provider] = lambda: shiprocket
    app.dependency_overrides[deps.get_checkout_token_provider] = lambda: checkout_tokens
    yield TestClient(app)
    app.dependency_overrides.clear()
