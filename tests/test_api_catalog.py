"""
tests.test_api_catalog

Catalog and stock endpoints over HTTP.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import httpx
import pytest


@pytest.mark.asyncio
async def test_catalog_crud(client: httpx.AsyncClient, login_as, create_item) -> None:
    admin = await login_as(client, "root", "admin")

    item = await create_item(client, admin, name="Tapsilog", price="155.50", stock=12)
    assert item["available_quantity"] == 12
    assert Decimal(item["price"]) == Decimal("155.50")
    assert item["is_available"] is True

    r = await client.get(f"/items/{item['id']}")
    assert r.status_code == 200
    assert r.json()["name"] == "Tapsilog"

    r = await client.put(
        f"/items/{item['id']}",
        headers=admin,
        json={"price": "160.00", "description": "Beef tapa, egg, garlic rice"},
    )
    assert r.status_code == 200
    assert Decimal(r.json()["price"]) == Decimal("160.00")
    assert r.json()["description"] == "Beef tapa, egg, garlic rice"
    # Updates never touch stock.
    assert r.json()["available_quantity"] == 12

    r = await client.delete(f"/items/{item['id']}", headers=admin)
    assert r.status_code == 200
    assert (await client.get(f"/items/{item['id']}")).status_code == 404
    assert (await client.delete(f"/items/{item['id']}", headers=admin)).status_code == 404


@pytest.mark.asyncio
async def test_default_stock_applies_when_omitted(client: httpx.AsyncClient, login_as) -> None:
    admin = await login_as(client, "root", "admin")
    r = await client.post(
        "/items", headers=admin, json={"name": "Iced tea", "category": "Drinks", "price": "45.00"}
    )
    assert r.status_code == 201
    assert r.json()["available_quantity"] == 999


@pytest.mark.asyncio
async def test_menu_hides_unavailable_items(client: httpx.AsyncClient, login_as, create_item) -> None:
    admin = await login_as(client, "root", "admin")
    shown = await create_item(client, admin, name="Lumpia")
    hidden = await create_item(client, admin, name="Lechon")
    await client.put(f"/items/{hidden['id']}", headers=admin, json={"is_available": False})

    names = {i["name"] for i in (await client.get("/items")).json()}
    assert names == {shown["name"]}

    r = await client.get("/items", params={"include_unavailable": True})
    assert {i["name"] for i in r.json()} == {"Lumpia", "Lechon"}


@pytest.mark.asyncio
async def test_best_rated_listing(client: httpx.AsyncClient, login_as) -> None:
    admin = await login_as(client, "root", "admin")
    for name, rating in (("Arroz caldo", 3.5), ("Bibingka", 4.8), ("Champorado", 0)):
        r = await client.post(
            "/items",
            headers=admin,
            json={"name": name, "category": "Snack", "price": "50.00", "rating": rating},
        )
        assert r.status_code == 201
        assert r.json()["rating"] == rating

    r = await client.get("/items", params={"best_rated": True})
    assert [i["name"] for i in r.json()] == ["Bibingka", "Arroz caldo", "Champorado"]

    r = await client.post(
        "/items",
        headers=admin,
        json={"name": "Overrated", "category": "Snack", "price": "1.00", "rating": 6},
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_staff_cannot_write_catalog(client: httpx.AsyncClient, login_as, create_item) -> None:
    admin = await login_as(client, "root", "admin")
    staff = await login_as(client, "sam", "staff")
    item = await create_item(client, admin)

    r = await client.post(
        "/items", headers=staff, json={"name": "Sneaky", "category": "Snack", "price": "1.00"}
    )
    assert r.status_code == 403
    assert r.json()["detail"]["error"] == "InsufficientRole"

    r = await client.put(f"/items/{item['id']}", headers=staff, json={"price": "0.01"})
    assert r.status_code == 403
    assert (await client.delete(f"/items/{item['id']}", headers=staff)).status_code == 403

    assert [i["name"] for i in (await client.get("/items")).json()] == ["Pancakes"]
    assert Decimal((await client.get(f"/items/{item['id']}")).json()["price"]) == Decimal("10.00")


@pytest.mark.asyncio
async def test_catalog_write_requires_a_token(client: httpx.AsyncClient) -> None:
    r = await client.post(
        "/items", json={"name": "Anon", "category": "Snack", "price": "1.00"}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_restock_and_stock_read(client: httpx.AsyncClient, login_as, create_item) -> None:
    admin = await login_as(client, "root", "admin")
    manager = await login_as(client, "mila", "manager")
    cashier = await login_as(client, "cora", "cashier")
    item = await create_item(client, admin, stock=2)

    r = await client.post(f"/items/{item['id']}/restock", headers=manager, json={"delta": 8})
    assert r.status_code == 200
    assert r.json() == {"item_id": item["id"], "available_quantity": 10}

    r = await client.get(f"/items/{item['id']}/stock", headers=manager)
    assert r.json()["available_quantity"] == 10

    assert (await client.get(f"/items/{item['id']}/stock", headers=cashier)).status_code == 403
    r = await client.post(f"/items/{item['id']}/restock", headers=cashier, json={"delta": 1})
    assert r.status_code == 403

    r = await client.post(f"/items/{item['id']}/restock", headers=manager, json={"delta": 0})
    assert r.status_code == 422

    r = await client.post(f"/items/{uuid.uuid4()}/restock", headers=manager, json={"delta": 1})
    assert r.status_code == 404
    assert r.json()["detail"]["error"] == "ItemNotFound"
