"""
pos_backend.orders.settlement

Order settlement engine: order request + caller -> persisted order and stock decrements,
all-or-nothing.

Responsibilities:
- Validate the request (lines present, positive quantities, self-consistent totals).
- Reserve stock for every line while holding the locks of all line items.
- Compensate (restock) every prior reservation on any failure, including persistence
  failure and task cancellation.
- Snapshot item name/price/category at reservation time into the order lines.
"""

from __future__ import annotations

import asyncio
import uuid

from returns.result import Failure, Result, Success

from pos_backend.auth.models import CallerIdentity
from pos_backend.clock import Clock, utcnow
from pos_backend.errors import (
    EmptyOrder,
    InvalidQuantity,
    InvalidTotals,
    OrderError,
    PersistenceFailure,
)
from pos_backend.inventory.ledger import HeldStock, StockLedger
from pos_backend.observability.logging import get_logger
from pos_backend.orders.models import (
    Order,
    OrderLine,
    OrderRequest,
    money_matches,
    money_sum,
    to_money,
)
from pos_backend.orders.store import OrderStore

log = get_logger(__name__)


def validate_request(request: OrderRequest) -> OrderError | None:
    if not request.lines:
        return EmptyOrder()

    for line in request.lines:
        if line.quantity <= 0:
            return InvalidQuantity(item_id=line.item_id, quantity=line.quantity)

    declared_subtotal = money_sum(to_money(line.price * line.quantity) for line in request.lines)
    if not money_matches(request.subtotal, declared_subtotal):
        return InvalidTotals(
            field="subtotal", declared=to_money(request.subtotal), expected=declared_subtotal
        )

    expected_total = money_sum(
        [declared_subtotal, *(charge.amount for charge in request.extra_charges)]
    )
    if not money_matches(request.total, expected_total):
        return InvalidTotals(field="total", declared=to_money(request.total), expected=expected_total)

    return None


class SettlementEngine:
    def __init__(self, *, ledger: StockLedger, orders: OrderStore, clock: Clock = utcnow) -> None:
        self._ledger = ledger
        self._orders = orders
        self._clock = clock

    async def settle(
        self, request: OrderRequest, identity: CallerIdentity
    ) -> Result[Order, OrderError]:
        invalid = validate_request(request)
        if invalid is not None:
            return Failure(invalid)

        async with self._ledger.locked(line.item_id for line in request.lines) as held:
            reserved: list[OrderLine] = []
            try:
                return await self._settle_locked(held, request, identity, reserved)
            except asyncio.CancelledError:
                # Request timeout mid-settlement: undo what was taken, then keep cancelling.
                log.warning("settlement_cancelled", reserved_lines=len(reserved))
                await asyncio.shield(self._compensate(held, reserved))
                raise

    async def _settle_locked(
        self,
        held: HeldStock,
        request: OrderRequest,
        identity: CallerIdentity,
        reserved: list[OrderLine],
    ) -> Result[Order, OrderError]:
        for line in request.lines:
            try:
                outcome = await held.reserve_decrement(line.item_id, line.quantity)
            except Exception as e:
                log.error("stock_reservation_failed", item_id=str(line.item_id), exc_info=True)
                await self._compensate(held, reserved)
                return Failure(PersistenceFailure(reason=f"{type(e).__name__}: {e}"))
            if isinstance(outcome, Failure):
                await self._compensate(held, reserved)
                return Failure(outcome.failure())
            snapshot = outcome.unwrap()
            reserved.append(
                OrderLine(
                    item_id=line.item_id,
                    name_snapshot=snapshot.name,
                    price_snapshot=to_money(snapshot.price),
                    quantity=line.quantity,
                    category_snapshot=snapshot.category,
                )
            )

        subtotal = money_sum(line.line_total for line in reserved)
        if not money_matches(subtotal, request.subtotal):
            # Catalog price changed since the client priced the order.
            await self._compensate(held, reserved)
            return Failure(
                InvalidTotals(field="subtotal", declared=to_money(request.subtotal), expected=subtotal)
            )

        order = Order(
            id=uuid.uuid4(),
            lines=tuple(reserved),
            extra_charges=request.extra_charges,
            subtotal=subtotal,
            total=money_sum([subtotal, *(c.amount for c in request.extra_charges)]),
            payment_method=request.payment_method,
            order_type=request.order_type,
            created_by_id=identity.user_id,
            created_by_username=identity.username,
            created_at=self._clock(),
        )

        try:
            await self._orders.put(order)
        except Exception as e:
            log.error("order_persist_failed", order_id=str(order.id), exc_info=True)
            await self._compensate(held, reserved)
            return Failure(PersistenceFailure(reason=f"{type(e).__name__}: {e}"))

        log.info(
            "order_settled",
            order_id=str(order.id),
            lines=len(order.lines),
            total=str(order.total),
            created_by=identity.username,
        )
        return Success(order)

    async def _compensate(self, held: HeldStock, reserved: list[OrderLine]) -> None:
        if not reserved:
            return
        log.warning("settlement_compensating", lines=len(reserved))
        # Pop as we go so an interrupted compensation is never replayed twice.
        while reserved:
            line = reserved.pop()
            try:
                outcome = await held.restock(line.item_id, line.quantity)
            except Exception:
                # Remaining lines are still restocked.
                log.error(
                    "settlement_compensation_failed",
                    item_id=str(line.item_id),
                    quantity=line.quantity,
                    exc_info=True,
                )
                continue
            if isinstance(outcome, Failure):
                # Only possible if the item vanished while locked; surface loudly.
                log.error(
                    "settlement_compensation_failed",
                    item_id=str(line.item_id),
                    quantity=line.quantity,
                    error=outcome.failure().code,
                )


# --- Module Notes -----------------------------------------------------------
# Step order: validate -> lock all items -> reserve each line -> re-price from
# snapshots -> persist. Anything after the first successful reservation that fails,
# including a store raising mid-reservation, goes through `_compensate` before returning.
