"""
pos_backend.db.repositories.orders

Repository for persisted `Order` entities (read side + status updates).

Orders are created only by the settlement engine through `SqlOrderStore`.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.db.models import Order
from pos_backend.orders.models import OrderStatus


class OrderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, order_id: uuid.UUID) -> Order | None:
        return await self._session.get(Order, order_id)

    async def list_all(self, *, limit: int = 200) -> list[Order]:
        # Newest-first for the order history screen.
        stmt = select(Order).order_by(desc(Order.created_at)).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())

    async def set_status(self, order_id: uuid.UUID, status: OrderStatus) -> Order | None:
        order = await self._session.get(Order, order_id, with_for_update=True)
        if order is None:
            return None
        order.status = status
        order.updated_at = datetime.utcnow()
        await self._session.flush()
        return order
