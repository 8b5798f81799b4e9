"""
tests.test_settlement

Order settlement over in-memory stores: all-or-nothing stock effects, validation and
compensation on every failure path.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from returns.result import Failure, Success

from pos_backend.auth.models import CallerIdentity, Role
from pos_backend.errors import (
    EmptyOrder,
    InsufficientStock,
    InvalidQuantity,
    InvalidTotals,
    ItemNotFound,
    PersistenceFailure,
)
from pos_backend.inventory.ledger import StockLedger
from pos_backend.inventory.store import InMemoryItemStore, StockRecord
from pos_backend.orders.models import (
    ExtraCharge,
    Order,
    OrderLineRequest,
    OrderRequest,
    OrderStatus,
    PaymentMethod,
)
from pos_backend.orders.settlement import SettlementEngine, validate_request
from pos_backend.orders.store import InMemoryOrderStore

A = uuid.uuid4()
B = uuid.uuid4()
NOW = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)
CASHIER = CallerIdentity(
    user_id=uuid.uuid4(),
    username="cashier-1",
    role=Role.cashier,
    issued_at=NOW,
    expires_at=NOW + timedelta(hours=8),
)


def _records(a_qty: int = 5, b_qty: int = 5) -> list[StockRecord]:
    return [
        StockRecord(
            item_id=A, name="Sinigang", price=Decimal("10.00"), quantity=a_qty, category="Lunch"
        ),
        StockRecord(
            item_id=B, name="Halo-halo", price=Decimal("4.50"), quantity=b_qty, category="Dessert"
        ),
    ]


def _store(a_qty: int = 5, b_qty: int = 5) -> InMemoryItemStore:
    return InMemoryItemStore(_records(a_qty, b_qty))


def _request(*lines: tuple[uuid.UUID, int, str], charges: tuple[ExtraCharge, ...] = ()) -> OrderRequest:
    subtotal = sum((Decimal(p) * q for _, q, p in lines), Decimal("0"))
    return OrderRequest(
        lines=tuple(OrderLineRequest(item_id=i, quantity=q, price=Decimal(p)) for i, q, p in lines),
        subtotal=subtotal,
        total=subtotal + sum((c.amount for c in charges), Decimal("0")),
        payment_method=PaymentMethod.cash,
        extra_charges=charges,
    )


def _engine(items: InMemoryItemStore, orders=None) -> tuple[SettlementEngine, StockLedger]:
    ledger = StockLedger(items)
    engine = SettlementEngine(
        ledger=ledger,
        orders=orders if orders is not None else InMemoryOrderStore(),
        clock=lambda: NOW,
    )
    return engine, ledger


async def _qty(ledger: StockLedger, item_id: uuid.UUID) -> int:
    return (await ledger.get_available(item_id)).unwrap()


class FlakyItemStore(InMemoryItemStore):
    """Raises on the n-th `atomic_update` call (1-based)."""

    def __init__(self, records: list[StockRecord], *, fail_on_call: int) -> None:
        super().__init__(records)
        self._calls = 0
        self._fail_on_call = fail_on_call

    async def atomic_update(self, item_id, delta, *, require_available=False):
        self._calls += 1
        if self._calls == self._fail_on_call:
            raise ConnectionError("store went away")
        return await super().atomic_update(item_id, delta, require_available=require_available)


class RestockRefusingItemStore(InMemoryItemStore):
    """Reservations work; putting stock back raises for one item."""

    def __init__(self, records: list[StockRecord], *, broken: uuid.UUID) -> None:
        super().__init__(records)
        self._broken = broken

    async def atomic_update(self, item_id, delta, *, require_available=False):
        if delta > 0 and item_id == self._broken:
            raise ConnectionError("restock rejected")
        return await super().atomic_update(item_id, delta, require_available=require_available)


class FailingOrderStore(InMemoryOrderStore):
    async def put(self, order: Order) -> None:
        raise RuntimeError("disk full")


class BlockingOrderStore(InMemoryOrderStore):
    def __init__(self) -> None:
        super().__init__()
        self.entered = asyncio.Event()

    async def put(self, order: Order) -> None:
        self.entered.set()
        await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_successful_order_decrements_and_persists() -> None:
    orders = InMemoryOrderStore()
    engine, ledger = _engine(_store(a_qty=5), orders)

    outcome = await engine.settle(_request((A, 3, "10.00")), CASHIER)

    assert isinstance(outcome, Success)
    order = outcome.unwrap()
    assert order.subtotal == Decimal("30.00")
    assert order.total == Decimal("30.00")
    assert order.status is OrderStatus.placed
    assert order.created_by_id == CASHIER.user_id
    assert order.created_by_username == "cashier-1"
    assert order.created_at == NOW
    assert order.lines[0].name_snapshot == "Sinigang"
    assert order.lines[0].price_snapshot == Decimal("10.00")
    assert order.lines[0].category_snapshot == "Lunch"
    assert await _qty(ledger, A) == 2
    assert await orders.get(order.id) == order


@pytest.mark.asyncio
async def test_insufficient_stock_has_no_effect() -> None:
    orders = InMemoryOrderStore()
    engine, ledger = _engine(_store(a_qty=2), orders)

    outcome = await engine.settle(_request((A, 3, "10.00")), CASHIER)

    assert isinstance(outcome, Failure)
    assert outcome.failure() == InsufficientStock(item_id=A, requested=3, available=2)
    assert await _qty(ledger, A) == 2
    assert len(orders) == 0


@pytest.mark.asyncio
async def test_later_line_failure_restores_earlier_lines() -> None:
    orders = InMemoryOrderStore()
    engine, ledger = _engine(_store(a_qty=5, b_qty=1), orders)

    outcome = await engine.settle(_request((A, 2, "10.00"), (B, 3, "4.50")), CASHIER)

    assert isinstance(outcome.failure(), InsufficientStock)
    assert await _qty(ledger, A) == 5
    assert await _qty(ledger, B) == 1
    assert len(orders) == 0


@pytest.mark.asyncio
async def test_unknown_item_restores_earlier_lines() -> None:
    ghost = uuid.uuid4()
    engine, ledger = _engine(_store(a_qty=5))

    outcome = await engine.settle(_request((A, 2, "10.00"), (ghost, 1, "1.00")), CASHIER)

    assert outcome.failure() == ItemNotFound(item_id=ghost)
    assert await _qty(ledger, A) == 5


@pytest.mark.asyncio
async def test_same_item_on_two_lines() -> None:
    engine, ledger = _engine(_store(a_qty=5))

    ok = await engine.settle(_request((A, 2, "10.00"), (A, 2, "10.00")), CASHIER)
    assert isinstance(ok, Success)
    assert await _qty(ledger, A) == 1

    rejected = await engine.settle(_request((A, 1, "10.00"), (A, 1, "10.00")), CASHIER)
    assert isinstance(rejected.failure(), InsufficientStock)
    assert await _qty(ledger, A) == 1


@pytest.mark.asyncio
async def test_extra_charges_add_to_total() -> None:
    engine, _ = _engine(_store())
    charges = (ExtraCharge(description="Service charge", amount=Decimal("2.25")),)

    outcome = await engine.settle(_request((A, 1, "10.00"), (B, 2, "4.50"), charges=charges), CASHIER)

    order = outcome.unwrap()
    assert order.subtotal == Decimal("19.00")
    assert order.total == Decimal("21.25")
    assert order.extra_charges == charges


def test_validation_rules() -> None:
    empty = OrderRequest(
        lines=(), subtotal=Decimal("0"), total=Decimal("0"), payment_method=PaymentMethod.card
    )
    assert validate_request(empty) == EmptyOrder()

    zero = _request((A, 1, "10.00"))
    zero = OrderRequest(
        lines=(OrderLineRequest(item_id=A, quantity=0, price=Decimal("10.00")),),
        subtotal=zero.subtotal,
        total=zero.total,
        payment_method=zero.payment_method,
    )
    assert validate_request(zero) == InvalidQuantity(item_id=A, quantity=0)

    good = _request((A, 3, "10.00"))
    assert validate_request(good) is None

    bad_subtotal = OrderRequest(
        lines=good.lines, subtotal=Decimal("29.00"), total=Decimal("29.00"), payment_method=good.payment_method
    )
    err = validate_request(bad_subtotal)
    assert isinstance(err, InvalidTotals)
    assert err.field == "subtotal"
    assert err.expected == Decimal("30.00")

    bad_total = OrderRequest(
        lines=good.lines, subtotal=Decimal("30.00"), total=Decimal("31.00"), payment_method=good.payment_method
    )
    err = validate_request(bad_total)
    assert isinstance(err, InvalidTotals)
    assert err.field == "total"


def test_sub_cent_differences_are_tolerated() -> None:
    good = _request((A, 3, "10.00"))
    fuzzy = OrderRequest(
        lines=good.lines,
        subtotal=Decimal("30.001"),
        total=Decimal("29.999"),
        payment_method=good.payment_method,
    )
    assert validate_request(fuzzy) is None


@pytest.mark.asyncio
async def test_invalid_request_touches_nothing() -> None:
    orders = InMemoryOrderStore()
    engine, ledger = _engine(_store(a_qty=5), orders)
    good = _request((A, 3, "10.00"))
    bad = OrderRequest(
        lines=good.lines, subtotal=Decimal("1.00"), total=Decimal("1.00"), payment_method=good.payment_method
    )

    outcome = await engine.settle(bad, CASHIER)

    assert isinstance(outcome.failure(), InvalidTotals)
    assert await _qty(ledger, A) == 5
    assert len(orders) == 0


@pytest.mark.asyncio
async def test_stale_client_price_is_compensated() -> None:
    engine, ledger = _engine(_store(a_qty=5))

    # Client still shows 9.00; the catalog now says 10.00.
    outcome = await engine.settle(_request((A, 2, "9.00")), CASHIER)

    err = outcome.failure()
    assert isinstance(err, InvalidTotals)
    assert err.declared == Decimal("18.00")
    assert err.expected == Decimal("20.00")
    assert await _qty(ledger, A) == 5


@pytest.mark.asyncio
async def test_persistence_failure_restores_stock() -> None:
    engine, ledger = _engine(_store(a_qty=5, b_qty=5), FailingOrderStore())

    outcome = await engine.settle(_request((A, 2, "10.00"), (B, 1, "4.50")), CASHIER)

    err = outcome.failure()
    assert isinstance(err, PersistenceFailure)
    assert "disk full" in err.reason
    assert await _qty(ledger, A) == 5
    assert await _qty(ledger, B) == 5


@pytest.mark.asyncio
async def test_cancellation_restores_stock_and_propagates() -> None:
    orders = BlockingOrderStore()
    engine, ledger = _engine(_store(a_qty=5, b_qty=5), orders)

    task = asyncio.create_task(engine.settle(_request((A, 2, "10.00"), (B, 1, "4.50")), CASHIER))
    await orders.entered.wait()
    assert await _qty(ledger, A) == 3

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert await _qty(ledger, A) == 5
    assert await _qty(ledger, B) == 5


@pytest.mark.asyncio
async def test_concurrent_orders_never_oversell() -> None:
    orders = InMemoryOrderStore()
    engine, ledger = _engine(_store(a_qty=7, b_qty=100), orders)

    results = await asyncio.gather(
        *(engine.settle(_request((B, 1, "4.50"), (A, 2, "10.00")), CASHIER) for _ in range(6))
    )

    placed = [r for r in results if isinstance(r, Success)]
    assert len(placed) == 3
    assert len(orders) == 3
    assert await _qty(ledger, A) == 1
    assert await _qty(ledger, B) == 97


@pytest.mark.asyncio
async def test_store_error_mid_reservation_restores_earlier_lines() -> None:
    orders = InMemoryOrderStore()
    items = FlakyItemStore(_records(), fail_on_call=2)
    engine, ledger = _engine(items, orders)

    outcome = await engine.settle(_request((A, 2, "10.00"), (B, 1, "4.50")), CASHIER)

    err = outcome.failure()
    assert isinstance(err, PersistenceFailure)
    assert "store went away" in err.reason
    assert await _qty(ledger, A) == 5
    assert await _qty(ledger, B) == 5
    assert len(orders) == 0


@pytest.mark.asyncio
async def test_failed_restock_does_not_abandon_other_lines() -> None:
    records = _records()
    engine, ledger = _engine(RestockRefusingItemStore(records, broken=B), FailingOrderStore())

    outcome = await engine.settle(_request((A, 2, "10.00"), (B, 1, "4.50")), CASHIER)

    assert isinstance(outcome.failure(), PersistenceFailure)
    # B's restock raised; A is still put back.
    assert await _qty(ledger, A) == 5
    assert await _qty(ledger, B) == 4
