"""
pos_backend.db.repositories.items

Repository for catalog `Item` entities.

Responsibilities:
- Create/read/update/delete catalog entries.

Stock is not writable here: quantity changes go through the stock ledger
(`pos_backend.db.stores.SqlItemStore`).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.db.models import Category, Item

# Columns a catalog update may touch.
UPDATABLE_FIELDS = frozenset(
    {"name", "category", "price", "description", "image_ref", "is_available", "rating"}
)


class ItemRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
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
    ) -> Item:
        item = Item(
            name=name,
            category=category,
            price=price,
            stock=stock,
            description=description,
            image_ref=image_ref,
            is_available=is_available,
            rating=rating,
        )
        self._session.add(item)
        await self._session.flush()
        return item

    async def get(self, item_id: uuid.UUID) -> Item | None:
        return await self._session.get(Item, item_id)

    async def list_all(self, *, only_available: bool = True, best_rated: bool = False) -> list[Item]:
        if best_rated:
            stmt = select(Item).order_by(desc(Item.rating), Item.name)
        else:
            stmt = select(Item).order_by(Item.category, Item.name)
        if only_available:
            stmt = stmt.where(Item.is_available.is_(True))
        return list((await self._session.execute(stmt)).scalars().all())

    async def update(self, item_id: uuid.UUID, changes: dict[str, Any]) -> Item | None:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"not updatable: {sorted(unknown)}")
        item = await self._session.get(Item, item_id, with_for_update=True)
        if item is None:
            return None
        for key, value in changes.items():
            setattr(item, key, value)
        item.updated_at = datetime.utcnow()
        await self._session.flush()
        return item

    async def delete(self, item_id: uuid.UUID) -> bool:
        item = await self._session.get(Item, item_id)
        if item is None:
            return False
        await self._session.delete(item)
        await self._session.flush()
        return True
