"""
pos_backend.db.stores

SQL-backed implementations of the core store protocols.

Responsibilities:
- `SqlItemStore`: `ItemStore` over the `items` table, with the conditional stock
  update done by the database in a single statement.
- `SqlOrderStore`: `OrderStore` over `orders` / `order_lines` / `order_charges`.
- Map ORM rows to the domain `Order`.

Both stores work inside the caller's session and never commit; the service that
owns the session decides commit vs rollback.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.db import models as orm
from pos_backend.inventory.store import StockRecord, StockUpdate
from pos_backend.orders.models import ExtraCharge, Order, OrderLine


class SqlItemStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, item_id: uuid.UUID) -> StockRecord | None:
        # Column select: always reads the row, never a stale identity-map object.
        stmt = select(
            orm.Item.id,
            orm.Item.name,
            orm.Item.price,
            orm.Item.stock,
            orm.Item.is_available,
            orm.Item.category,
        ).where(orm.Item.id == item_id)
        row = (await self._session.execute(stmt)).one_or_none()
        if row is None:
            return None
        return StockRecord(
            item_id=row.id,
            name=row.name,
            price=row.price,
            quantity=row.stock,
            is_available=row.is_available,
            category=row.category.value,
        )

    async def atomic_update(
        self, item_id: uuid.UUID, delta: int, *, require_available: bool = False
    ) -> StockUpdate | None:
        # Guarded UPDATE: the database evaluates `stock + delta >= 0` against the row it
        # writes, so concurrent sessions cannot both spend the same stock.
        criteria = [orm.Item.id == item_id, orm.Item.stock + delta >= 0]
        if require_available:
            criteria.append(orm.Item.is_available.is_(True))
        stmt = (
            update(orm.Item)
            .where(*criteria)
            .values(stock=orm.Item.stock + delta, updated_at=datetime.utcnow())
            .returning(
                orm.Item.id,
                orm.Item.name,
                orm.Item.price,
                orm.Item.stock,
                orm.Item.is_available,
                orm.Item.category,
            )
            .execution_options(synchronize_session=False)
        )
        row = (await self._session.execute(stmt)).one_or_none()
        if row is not None:
            return StockUpdate(
                record=StockRecord(
                    item_id=row.id,
                    name=row.name,
                    price=row.price,
                    quantity=row.stock,
                    is_available=row.is_available,
                    category=row.category.value,
                ),
                applied=True,
            )

        current = await self.get(item_id)
        if current is None:
            return None
        return StockUpdate(record=current, applied=False)


class SqlOrderStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def put(self, order: Order) -> None:
        row = orm.Order(
            id=order.id,
            order_type=order.order_type,
            payment_method=order.payment_method,
            status=order.status,
            subtotal=order.subtotal,
            total=order.total,
            created_by_id=order.created_by_id,
            created_by_username=order.created_by_username,
            created_at=order.created_at.replace(tzinfo=None),
            lines=[
                orm.OrderLine(
                    position=i,
                    item_id=line.item_id,
                    name_snapshot=line.name_snapshot,
                    category_snapshot=line.category_snapshot,
                    price_snapshot=line.price_snapshot,
                    quantity=line.quantity,
                )
                for i, line in enumerate(order.lines)
            ],
            charges=[
                orm.OrderCharge(position=i, description=c.description, amount=c.amount)
                for i, c in enumerate(order.extra_charges)
            ],
        )
        # Savepoint: a failed insert rolls back only itself, leaving the session usable
        # for the settlement engine's compensating restocks.
        async with self._session.begin_nested():
            self._session.add(row)

    async def get(self, order_id: uuid.UUID) -> Order | None:
        row = await self._session.get(orm.Order, order_id)
        return order_from_row(row) if row is not None else None


def order_from_row(row: orm.Order) -> Order:
    return Order(
        id=row.id,
        lines=tuple(
            OrderLine(
                item_id=line.item_id,
                name_snapshot=line.name_snapshot,
                category_snapshot=line.category_snapshot,
                price_snapshot=line.price_snapshot,
                quantity=line.quantity,
            )
            for line in row.lines
        ),
        extra_charges=tuple(
            ExtraCharge(description=c.description, amount=c.amount) for c in row.charges
        ),
        subtotal=row.subtotal,
        total=row.total,
        payment_method=row.payment_method,
        order_type=row.order_type,
        status=row.status,
        created_by_id=row.created_by_id,
        created_by_username=row.created_by_username,
        created_at=row.created_at,
    )
