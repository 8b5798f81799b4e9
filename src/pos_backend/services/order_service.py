"""
pos_backend.services.order_service

Order placement service (transaction owner around the settlement engine).

Responsibilities:
- Wire the settlement engine to SQL stores bound to the request session.
- Commit on successful settlement, roll back otherwise.
- Read and status-update persisted orders.
"""

from __future__ import annotations

import uuid

from returns.result import Failure, Result, Success
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.auth.models import CallerIdentity
from pos_backend.clock import Clock, utcnow
from pos_backend.db.repositories.orders import OrderRepo
from pos_backend.db.stores import SqlItemStore, SqlOrderStore, order_from_row
from pos_backend.errors import OrderError, OrderNotFound, PersistenceFailure
from pos_backend.inventory.ledger import StockLedger
from pos_backend.inventory.locks import ItemLockRegistry
from pos_backend.observability.logging import get_logger
from pos_backend.orders.models import Order, OrderRequest, OrderStatus
from pos_backend.orders.settlement import SettlementEngine

log = get_logger(__name__)


class OrderService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        locks: ItemLockRegistry,
        clock: Clock = utcnow,
    ) -> None:
        self._session = session
        self._orders = OrderRepo(session)
        self._engine = SettlementEngine(
            ledger=StockLedger(SqlItemStore(session), locks),
            orders=SqlOrderStore(session),
            clock=clock,
        )

    async def place(
        self, request: OrderRequest, identity: CallerIdentity
    ) -> Result[Order, OrderError]:
        outcome = await self._engine.settle(request, identity)
        if isinstance(outcome, Failure):
            # The engine already compensated; rollback discards anything left in the session.
            await self._session.rollback()
            log.info("order_rejected", error=outcome.failure().code)
            return outcome

        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            # A failed commit rolls back the reservations together with the order rows.
            log.error("order_commit_failed", exc_info=True)
            await self._session.rollback()
            return Failure(PersistenceFailure(reason=f"{type(e).__name__}: {e}"))
        return outcome

    async def get(self, order_id: uuid.UUID) -> Result[Order, OrderError]:
        row = await self._orders.get(order_id)
        if row is None:
            return Failure(OrderNotFound(order_id=order_id))
        return Success(order_from_row(row))

    async def list_recent(self, *, limit: int = 200) -> list[Order]:
        return [order_from_row(row) for row in await self._orders.list_all(limit=limit)]

    async def set_status(
        self, order_id: uuid.UUID, status: OrderStatus, *, actor: str
    ) -> Result[Order, OrderError]:
        # Status is the only field of a settled order that may change; stock is untouched.
        row = await self._orders.set_status(order_id, status)
        if row is None:
            await self._session.rollback()
            return Failure(OrderNotFound(order_id=order_id))
        await self._session.commit()
        log.info("order_status_changed", order_id=str(order_id), status=status.value, actor=actor)
        return Success(order_from_row(row))


# --- Module Notes -----------------------------------------------------------
# Item locks are app-scoped (see `api.app`) while the engine and stores are built per
# request around the request's session.
