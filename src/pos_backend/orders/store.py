"""
pos_backend.orders.store

Order store capability used by the settlement engine.
"""

from __future__ import annotations

import uuid
from typing import Protocol

from pos_backend.orders.models import Order


class OrderStore(Protocol):
    async def put(self, order: Order) -> None:
        """Persist a settled order. Raises on storage failure."""
        ...

    async def get(self, order_id: uuid.UUID) -> Order | None: ...


class InMemoryOrderStore:
    def __init__(self) -> None:
        self._orders: dict[uuid.UUID, Order] = {}

    async def put(self, order: Order) -> None:
        if order.id in self._orders:
            raise KeyError(f"order {order.id} already exists")
        self._orders[order.id] = order

    async def get(self, order_id: uuid.UUID) -> Order | None:
        return self._orders.get(order_id)

    def __len__(self) -> int:
        return len(self._orders)
