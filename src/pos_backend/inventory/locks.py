"""
pos_backend.inventory.locks

Per-item asyncio locks shared by every request in the process.

An entry exists only while some task holds or waits for that item's lock, so ids
that are never seen again (including ids of items that do not exist) leave nothing
behind.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncIterator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager


class ItemLockRegistry:
    def __init__(self) -> None:
        self._locks: dict[uuid.UUID, asyncio.Lock] = {}
        # Holders + waiters per item id.
        self._users: dict[uuid.UUID, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def _lease(self, item_id: uuid.UUID) -> AsyncIterator[None]:
        # Registered before awaiting the lock so a waiter keeps the entry alive.
        lock = self._locks.setdefault(item_id, asyncio.Lock())
        self._users[item_id] = self._users.get(item_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[item_id] -= 1
            if self._users[item_id] == 0:
                del self._users[item_id]
                del self._locks[item_id]

    @asynccontextmanager
    async def hold(self, item_ids: Iterable[uuid.UUID]) -> AsyncIterator[None]:
        # Acquire in a global (sorted) order so overlapping orders cannot deadlock.
        ordered = sorted(set(item_ids), key=str)
        async with AsyncExitStack() as stack:
            for item_id in ordered:
                await stack.enter_async_context(self._lease(item_id))
            yield
