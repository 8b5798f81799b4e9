"""
tests.conftest

Shared fixtures: an isolated app per test (temporary SQLite file), an httpx client bound
to it in-process, and small helpers for the common signup/login/catalog steps.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

import httpx
import pytest

from pos_backend.api.app import create_app
from pos_backend.settings import Settings

TEST_SECRET = "test-secret-0123456789abcdef0123456789"
PASSWORD = "secret123"


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "env": "test",
            "database_url": f"sqlite+aiosqlite:///{tmp_path / 'pos.db'}",
            "jwt_secret": TEST_SECRET,
            "log_level": "WARNING",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@asynccontextmanager
async def serve(settings: Settings) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not manage lifespan automatically; do it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture
async def client(make_settings) -> AsyncIterator[httpx.AsyncClient]:
    async with serve(make_settings()) as c:
        yield c


@pytest.fixture
def serve_app():
    return serve


@pytest.fixture
def login_as():
    async def _login(client: httpx.AsyncClient, username: str, role: str) -> dict[str, str]:
        r = await client.post(
            "/auth/signup", json={"username": username, "password": PASSWORD, "role": role}
        )
        assert r.status_code == 201, r.text
        r = await client.post("/auth/login", json={"username": username, "password": PASSWORD})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _login


@pytest.fixture
def create_item():
    async def _create(
        client: httpx.AsyncClient,
        headers: dict[str, str],
        *,
        name: str = "Pancakes",
        price: str = "10.00",
        stock: int = 5,
        category: str = "Breakfast",
    ) -> dict[str, Any]:
        r = await client.post(
            "/items",
            headers=headers,
            json={"name": name, "category": category, "price": price, "stock": stock},
        )
        assert r.status_code == 201, r.text
        return r.json()

    return _create


@pytest.fixture
def order_body():
    def _body(*lines: tuple[str, int, str], charges: tuple[tuple[str, str], ...] = ()) -> dict:
        subtotal = sum((Decimal(price) * qty for _, qty, price in lines), Decimal("0"))
        total = subtotal + sum((Decimal(amount) for _, amount in charges), Decimal("0"))
        return {
            "items": [
                {"item_id": item_id, "quantity": qty, "price": price}
                for item_id, qty, price in lines
            ],
            "additional_payments": [{"description": d, "amount": a} for d, a in charges],
            "subtotal": str(subtotal),
            "total_amount": str(total),
            "payment_method": "cash",
        }

    return _body
