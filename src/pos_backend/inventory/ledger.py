"""
pos_backend.inventory.ledger

Item stock ledger: the authoritative per-item available quantity.

Responsibilities:
- Read available quantity.
- Atomically reserve (decrement) stock, rejecting anything that would go negative.
- Restock (additive increase).
- Serialize same-item operations, including for the duration of a whole order.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

from returns.result import Failure, Result, Success

from pos_backend.errors import (
    InsufficientStock,
    InvalidQuantity,
    InvalidRestock,
    ItemNotFound,
    ItemUnavailable,
    StockError,
)
from pos_backend.inventory.locks import ItemLockRegistry
from pos_backend.inventory.store import ItemStore, StockRecord


class HeldStock:
    """
    Ledger view valid while the caller holds the locks of a fixed set of items.
    """

    def __init__(self, ledger: StockLedger, item_ids: frozenset[uuid.UUID]) -> None:
        self._ledger = ledger
        self._item_ids = item_ids

    def _check_held(self, item_id: uuid.UUID) -> None:
        if item_id not in self._item_ids:
            raise RuntimeError(f"item {item_id} is not locked by this scope")

    async def reserve_decrement(
        self, item_id: uuid.UUID, quantity: int
    ) -> Result[StockRecord, StockError]:
        self._check_held(item_id)
        return await self._ledger._reserve(item_id, quantity)

    async def restock(self, item_id: uuid.UUID, delta: int) -> Result[int, StockError]:
        self._check_held(item_id)
        return await self._ledger._restock(item_id, delta)


class StockLedger:
    def __init__(self, store: ItemStore, locks: ItemLockRegistry | None = None) -> None:
        self._store = store
        # Locks must be shared across requests (app-scoped) to serialize anything.
        self._locks = locks if locks is not None else ItemLockRegistry()

    async def get_available(self, item_id: uuid.UUID) -> Result[int, StockError]:
        record = await self._store.get(item_id)
        if record is None:
            return Failure(ItemNotFound(item_id=item_id))
        return Success(record.quantity)

    async def reserve_decrement(
        self, item_id: uuid.UUID, quantity: int
    ) -> Result[StockRecord, StockError]:
        async with self.locked([item_id]) as held:
            return await held.reserve_decrement(item_id, quantity)

    async def restock(self, item_id: uuid.UUID, delta: int) -> Result[int, StockError]:
        async with self.locked([item_id]) as held:
            return await held.restock(item_id, delta)

    @asynccontextmanager
    async def locked(self, item_ids: Iterable[uuid.UUID]) -> AsyncIterator[HeldStock]:
        ids = frozenset(item_ids)
        async with self._locks.hold(ids):
            yield HeldStock(self, ids)

    async def _reserve(self, item_id: uuid.UUID, quantity: int) -> Result[StockRecord, StockError]:
        if quantity <= 0:
            return Failure(InvalidQuantity(item_id=item_id, quantity=quantity))
        outcome = await self._store.atomic_update(item_id, -quantity, require_available=True)
        if outcome is None:
            return Failure(ItemNotFound(item_id=item_id))
        if not outcome.applied:
            if not outcome.record.is_available:
                return Failure(ItemUnavailable(item_id=item_id))
            return Failure(
                InsufficientStock(
                    item_id=item_id,
                    requested=quantity,
                    available=outcome.record.quantity,
                )
            )
        return Success(outcome.record)

    async def _restock(self, item_id: uuid.UUID, delta: int) -> Result[int, StockError]:
        if delta <= 0:
            return Failure(InvalidRestock(delta=delta))
        outcome = await self._store.atomic_update(item_id, delta)
        if outcome is None:
            return Failure(ItemNotFound(item_id=item_id))
        return Success(outcome.record.quantity)


# --- Module Notes -----------------------------------------------------------
# The settlement engine uses `locked(...)` to keep every line item of an order locked
# across its reservation phase and any compensation.
