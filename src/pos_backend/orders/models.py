"""
pos_backend.orders.models

Order value types and money arithmetic.

Responsibilities:
- Describe an incoming order request and the settled, immutable order.
- Keep all money as cent-quantized `Decimal`s.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
# Half a cent: anything that differs once quantized to cents is a mismatch.
MONEY_EPSILON = Decimal("0.005")


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Decimal]) -> Decimal:
    return to_money(sum(values, Decimal("0")))


def money_matches(a: Decimal, b: Decimal) -> bool:
    return abs(to_money(a) - to_money(b)) < MONEY_EPSILON


class OrderType(enum.StrEnum):
    dine_in = "dine-in"
    take_out = "take-out"
    delivery = "delivery"


class PaymentMethod(enum.StrEnum):
    cash = "cash"
    card = "card"
    e_wallet = "e-wallet"
    other = "other"


class OrderStatus(enum.StrEnum):
    placed = "placed"
    completed = "completed"
    cancelled = "cancelled"


@dataclass(frozen=True, slots=True)
class ExtraCharge:
    description: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class OrderLineRequest:
    # `price` is what the client displayed; the catalog price is re-checked at settlement.
    item_id: uuid.UUID
    quantity: int
    price: Decimal


@dataclass(frozen=True, slots=True)
class OrderRequest:
    lines: tuple[OrderLineRequest, ...]
    subtotal: Decimal
    total: Decimal
    payment_method: PaymentMethod
    order_type: OrderType = OrderType.dine_in
    extra_charges: tuple[ExtraCharge, ...] = ()


@dataclass(frozen=True, slots=True)
class OrderLine:
    item_id: uuid.UUID
    name_snapshot: str
    price_snapshot: Decimal
    quantity: int
    category_snapshot: str | None = None

    @property
    def line_total(self) -> Decimal:
        return to_money(self.price_snapshot * self.quantity)


@dataclass(frozen=True, slots=True)
class Order:
    id: uuid.UUID
    lines: tuple[OrderLine, ...]
    subtotal: Decimal
    total: Decimal
    payment_method: PaymentMethod
    order_type: OrderType
    created_by_id: uuid.UUID
    created_by_username: str
    created_at: datetime
    extra_charges: tuple[ExtraCharge, ...] = ()
    status: OrderStatus = OrderStatus.placed
