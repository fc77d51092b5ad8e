"""Shared fixtures: in-memory store, dummy keys, no network."""
from __future__ import annotations

import os
from datetime import datetime, timezone

# Set env vars BEFORE any app imports: settings is a module-level singleton
os.environ["STORE_BACKEND"] = "memory"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_dummy"
os.environ["OPENROUTER_API_KEY"] = "test-key"
os.environ["AI_MAX_RETRIES"] = "0"

import pytest

from loveblooms.db import get_store, reset_store
from loveblooms.services import product_assistant

NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _fresh_store():
    """Every test starts with an empty memory store and no chat sessions."""
    reset_store()
    product_assistant.reset_sessions()
    yield
    reset_store()


@pytest.fixture()
def store():
    return get_store()


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def client():
    """FastAPI TestClient (sync)."""
    from fastapi.testclient import TestClient
    from loveblooms.main import app
    return TestClient(app)


@pytest.fixture()
def admin_headers():
    return {"Authorization": "Bearer test-admin-token"}


# ---------- catalog / promotion builders ----------

@pytest.fixture()
def make_product():
    from loveblooms.services.products import create_product

    def _make(name="Velvet Red Romance", price=89.99, **extra):
        return create_product({"name": name, "price": price, **extra})
    return _make


@pytest.fixture()
def roses(make_product):
    return make_product(
        "Velvet Red Romance", 30.00,
        categoryName="Roses",
        stockQuantity=50,
        images=[{"url": "https://img/roses.jpg", "alt": "roses", "isPrimary": True}],
        variants=[
            {"id": "v1", "name": "Standard", "priceModifier": 0},
            {"id": "v2", "name": "Deluxe", "priceModifier": 15},
            {"id": "v3", "name": "Sold out", "priceModifier": 40, "inStock": False},
        ],
    )


@pytest.fixture()
def lilies(make_product):
    return make_product("Peaceful White Lilies", 12.50, categoryName="Mixed Bouquets", stockQuantity=8)


@pytest.fixture()
def make_coupon():
    from loveblooms.services.coupons import create_coupon

    def _make(code="SAVE10", discountType="percentage", discountValue=10, **extra):
        return create_coupon({"code": code, "discountType": discountType,
                              "discountValue": discountValue, **extra})
    return _make


@pytest.fixture()
def make_gift_card():
    from loveblooms.services.gift_cards import issue_gift_card

    def _make(balance=20.00, **extra):
        return issue_gift_card({"initialBalance": balance, **extra})
    return _make


@pytest.fixture()
def london_zone():
    from loveblooms.services.delivery import create_zone
    return create_zone({
        "name": "Greater London",
        "postcodes": ["E", "EC", "N", "SW", "W"],
        "deliveryFee": 5.99,
        "freeDeliveryThreshold": 60,
        "sameDayAvailable": True,
    })
