"""Pytest configuration and fixtures"""
import os
from unittest.mock import Mock

import httpx
import pytest

# Set test environment variables
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test_key")
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")
os.environ.setdefault("CART_API_URL", "http://testserver")

from api.index import app  # noqa: E402
from bkpop.cart import CartApiClient, LocalCartBackend, LocalCartStorage, ProductRef  # noqa: E402
from bkpop.routers.deps import get_cart_repository  # noqa: E402


class FakeRedis:
    """Dict-backed stand-in for the sync Upstash client."""

    def __init__(self):
        self.data = {}
        self.expiry = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed


class InMemoryCartRepository:
    """CartRepository double keeping rows in a list."""

    def __init__(self, users=(7,)):
        self.users = set(users)
        self.rows = []
        self.fail = False
        self.add_calls = 0
        self._next_id = 100
        self._seq = 0

    def _check(self):
        if self.fail:
            raise ConnectionError("database down")

    def _stamp(self):
        self._seq += 1
        return f"2025-01-01T00:00:{self._seq:02d}+00:00"

    async def user_exists(self, user_id):
        self._check()
        return user_id in self.users

    async def list_by_user(self, user_id):
        self._check()
        rows = [dict(row) for row in self.rows if row["user_id"] == user_id]
        return sorted(rows, key=lambda row: row["created_at"], reverse=True)

    async def get_by_id(self, line_id):
        self._check()
        return next((dict(row) for row in self.rows if row["id"] == line_id), None)

    async def add_or_increment(self, user_id, product_id, title, image, size, price, quantity):
        self._check()
        self.add_calls += 1
        for row in self.rows:
            if row["user_id"] == user_id and row["product_id"] == product_id:
                row["quantity"] += quantity
                row["updated_at"] = self._stamp()
                return
        self._next_id += 1
        stamp = self._stamp()
        self.rows.append({
            "id": self._next_id,
            "user_id": user_id,
            "product_id": product_id,
            "title": title,
            "image": image,
            "size": size,
            "price": price,
            "quantity": quantity,
            "created_at": stamp,
            "updated_at": stamp,
        })

    async def update_quantity(self, line_id, quantity):
        self._check()
        for row in self.rows:
            if row["id"] == line_id:
                row["quantity"] = quantity

    async def delete(self, line_id):
        self._check()
        self.rows = [row for row in self.rows if row["id"] != line_id]

    async def delete_by_user(self, user_id):
        self._check()
        self.rows = [row for row in self.rows if row["user_id"] != user_id]


@pytest.fixture
def fake_redis():
    """In-memory Redis"""
    return FakeRedis()


@pytest.fixture
def failing_redis():
    """Redis client whose every call fails"""
    redis = Mock()
    redis.get.side_effect = ConnectionError("redis down")
    redis.set.side_effect = ConnectionError("redis down")
    redis.delete.side_effect = ConnectionError("redis down")
    return redis


@pytest.fixture
def local_storage(fake_redis):
    """Anonymous snapshot storage for session 'sess-1'"""
    return LocalCartStorage("sess-1", redis=fake_redis)


@pytest.fixture
def local_backend(local_storage):
    return LocalCartBackend(local_storage)


@pytest.fixture
def cart_repo():
    """Server-side cart rows; user 7 exists"""
    return InMemoryCartRepository(users=(7,))


@pytest.fixture
def api_app(cart_repo):
    """Cart API app backed by the in-memory repository"""
    app.dependency_overrides[get_cart_repository] = lambda: cart_repo
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def cart_api(api_app):
    """Remote cart client talking to the app in-process"""
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=api_app), base_url="http://testserver")
    return CartApiClient(client=client)


@pytest.fixture
def business_card():
    """Sample product: business card"""
    return ProductRef(
        id=1,
        title="Premium business card",
        image="/images/business-card.jpg",
        size="90x50mm",
        display_price="5,000원",
    )


@pytest.fixture
def flyer():
    """Sample product: flyer"""
    return ProductRef(
        id=2,
        title="A4 flyer",
        image="/images/flyer.jpg",
        size="210x297mm",
        display_price="12,000원",
    )
