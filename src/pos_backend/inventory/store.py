"""
pos_backend.inventory.store

Item store capability used by the stock ledger.

Responsibilities:
- Define the `ItemStore` protocol: `get`, `atomic_update`.
- Provide an in-process implementation (tests, tooling, single-process demos).

The SQL implementation lives in `pos_backend.db.stores`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Protocol


@dataclass(frozen=True, slots=True)
class StockRecord:
    # Point-in-time view of an item; name/price/category double as order-line snapshots.
    item_id: uuid.UUID
    name: str
    price: Decimal
    quantity: int
    is_available: bool = True
    category: str | None = None


@dataclass(frozen=True, slots=True)
class StockUpdate:
    """
    Outcome of `atomic_update` for an existing item.

    `record` is the post-update view when `applied`, otherwise the unchanged
    current view that caused the rejection.
    """

    record: StockRecord
    applied: bool


class ItemStore(Protocol):
    async def get(self, item_id: uuid.UUID) -> StockRecord | None: ...

    async def atomic_update(
        self, item_id: uuid.UUID, delta: int, *, require_available: bool = False
    ) -> StockUpdate | None:
        """
        Add `delta` to the item's quantity iff the result stays >= 0 (and, when
        `require_available`, the item is marked available). Returns None when the
        item does not exist. Check and write happen as one indivisible step.
        """
        ...


class InMemoryItemStore:
    def __init__(self, records: list[StockRecord] | None = None) -> None:
        self._records: dict[uuid.UUID, StockRecord] = {r.item_id: r for r in records or []}

    async def get(self, item_id: uuid.UUID) -> StockRecord | None:
        return self._records.get(item_id)

    async def atomic_update(
        self, item_id: uuid.UUID, delta: int, *, require_available: bool = False
    ) -> StockUpdate | None:
        # No await between read and write: atomic with respect to the event loop.
        current = self._records.get(item_id)
        if current is None:
            return None
        if current.quantity + delta < 0 or (require_available and not current.is_available):
            return StockUpdate(record=current, applied=False)
        updated = replace(current, quantity=current.quantity + delta)
        self._records[item_id] = updated
        return StockUpdate(record=updated, applied=True)


# --- Module Notes -----------------------------------------------------------
# `atomic_update` is a conditional add rather than a read-modify-write callback so
# SQL backends can express it as one `UPDATE ... WHERE stock + :delta >= 0`.
