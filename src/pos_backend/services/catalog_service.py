"""
pos_backend.services.catalog_service

Catalog management service.

Responsibilities:
- Create, update and delete catalog items.
- Route every stock change through the stock ledger.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any

from returns.result import Failure, Result, Success
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.db.models import Category, Item
from pos_backend.db.repositories.items import ItemRepo
from pos_backend.db.stores import SqlItemStore
from pos_backend.errors import ItemNotFound, StockError
from pos_backend.inventory.ledger import StockLedger
from pos_backend.inventory.locks import ItemLockRegistry
from pos_backend.observability.logging import get_logger
from pos_backend.orders.models import to_money

log = get_logger(__name__)


class CatalogService:
    def __init__(self, *, session: AsyncSession, locks: ItemLockRegistry) -> None:
        self._session = session
        self._items = ItemRepo(session)
        self._ledger = StockLedger(SqlItemStore(session), locks)

    async def create_item(
        self,
        *,
        name: str,
        category: Category,
        price: Decimal,
        stock: int,
        description: str = "",
        image_ref: str | None = None,
        is_available: bool = True,
        rating: float = 0.0,
        actor: str,
    ) -> Item:
        item = await self._items.create(
            name=name,
            category=category,
            price=to_money(price),
            stock=stock,
            description=description,
            image_ref=image_ref,
            is_available=is_available,
            rating=rating,
        )
        await self._session.commit()
        log.info("item_created", item_id=str(item.id), name=name, stock=stock, actor=actor)
        return item

    async def update_item(
        self, item_id: uuid.UUID, changes: dict[str, Any], *, actor: str
    ) -> Result[Item, StockError]:
        if "price" in changes:
            changes = {**changes, "price": to_money(changes["price"])}
        item = await self._items.update(item_id, changes)
        if item is None:
            await self._session.rollback()
            return Failure(ItemNotFound(item_id=item_id))
        await self._session.commit()
        log.info("item_updated", item_id=str(item_id), fields=sorted(changes), actor=actor)
        return Success(item)

    async def delete_item(self, item_id: uuid.UUID, *, actor: str) -> Result[None, StockError]:
        if not await self._items.delete(item_id):
            await self._session.rollback()
            return Failure(ItemNotFound(item_id=item_id))
        await self._session.commit()
        log.info("item_deleted", item_id=str(item_id), actor=actor)
        return Success(None)

    async def restock(self, item_id: uuid.UUID, delta: int, *, actor: str) -> Result[int, StockError]:
        outcome = await self._ledger.restock(item_id, delta)
        if isinstance(outcome, Failure):
            await self._session.rollback()
            return outcome
        await self._session.commit()
        log.info("item_restocked", item_id=str(item_id), delta=delta, stock=outcome.unwrap(), actor=actor)
        return outcome

    async def available(self, item_id: uuid.UUID) -> Result[int, StockError]:
        return await self._ledger.get_available(item_id)
