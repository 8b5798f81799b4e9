"""
pos_backend.api.routers.orders

Order endpoints.

Responsibilities:
- Place an order (settlement: stock reservation + persistence, all-or-nothing).
- Read order history and single orders.
- Update an order's status.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from returns.result import Failure
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from pos_backend.api.deps import db_session, item_locks_dep
from pos_backend.api.errors import http_error
from pos_backend.auth.deps import require
from pos_backend.auth.models import CallerIdentity
from pos_backend.auth.policy import Operation
from pos_backend.inventory.locks import ItemLockRegistry
from pos_backend.orders.models import (
    ExtraCharge,
    Order,
    OrderLineRequest,
    OrderRequest,
    OrderStatus,
    OrderType,
    PaymentMethod,
)
from pos_backend.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


class OrderLineIn(BaseModel):
    item_id: uuid.UUID
    quantity: int = Field(gt=0)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class ExtraChargeIn(BaseModel):
    description: str = Field(min_length=1, max_length=256)
    amount: Decimal = Field(max_digits=12, decimal_places=2)


class OrderCreateRequest(BaseModel):
    # Empty `items` is accepted here and rejected by settlement as EmptyOrder.
    items: list[OrderLineIn] = Field(default_factory=list)
    additional_payments: list[ExtraChargeIn] = Field(default_factory=list)
    subtotal: Decimal = Field(max_digits=12, decimal_places=2)
    total_amount: Decimal = Field(max_digits=12, decimal_places=2)
    payment_method: PaymentMethod
    order_type: OrderType = OrderType.dine_in

    def to_domain(self) -> OrderRequest:
        return OrderRequest(
            lines=tuple(
                OrderLineRequest(item_id=i.item_id, quantity=i.quantity, price=i.price)
                for i in self.items
            ),
            extra_charges=tuple(
                ExtraCharge(description=c.description, amount=c.amount)
                for c in self.additional_payments
            ),
            subtotal=self.subtotal,
            total=self.total_amount,
            payment_method=self.payment_method,
            order_type=self.order_type,
        )


class StatusUpdateRequest(BaseModel):
    status: OrderStatus


class OrderLineOut(BaseModel):
    item_id: uuid.UUID
    name: str
    category: str | None
    price: Decimal
    quantity: int


class ExtraChargeOut(BaseModel):
    description: str
    amount: Decimal


class OrderResponse(BaseModel):
    id: uuid.UUID
    order_type: OrderType
    status: OrderStatus
    items: list[OrderLineOut]
    additional_payments: list[ExtraChargeOut]
    subtotal: Decimal
    total_amount: Decimal
    payment_method: PaymentMethod
    created_by: str
    created_by_id: uuid.UUID
    created_at: datetime

    @classmethod
    def from_domain(cls, order: Order) -> OrderResponse:
        return cls(
            id=order.id,
            order_type=order.order_type,
            status=order.status,
            items=[
                OrderLineOut(
                    item_id=line.item_id,
                    name=line.name_snapshot,
                    category=line.category_snapshot,
                    price=line.price_snapshot,
                    quantity=line.quantity,
                )
                for line in order.lines
            ],
            additional_payments=[
                ExtraChargeOut(description=c.description, amount=c.amount)
                for c in order.extra_charges
            ],
            subtotal=order.subtotal,
            total_amount=order.total,
            payment_method=order.payment_method,
            created_by=order.created_by_username,
            created_by_id=order.created_by_id,
            created_at=order.created_at,
        )


def order_service(
    session: AsyncSession = Depends(db_session),
    locks: ItemLockRegistry = Depends(item_locks_dep),
) -> OrderService:
    return OrderService(session=session, locks=locks)


@router.post("", response_model=OrderResponse, status_code=HTTP_201_CREATED)
async def create_order(
    body: OrderCreateRequest,
    identity: CallerIdentity = Depends(require(Operation.order_create)),
    svc: OrderService = Depends(order_service),
) -> OrderResponse:
    outcome = await svc.place(body.to_domain(), identity)
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    return OrderResponse.from_domain(outcome.unwrap())


@router.get(
    "",
    response_model=list[OrderResponse],
    dependencies=[Depends(require(Operation.order_read))],
)
async def list_orders(
    limit: int = Query(default=200, ge=1, le=1000),
    svc: OrderService = Depends(order_service),
) -> list[OrderResponse]:
    return [OrderResponse.from_domain(o) for o in await svc.list_recent(limit=limit)]


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    dependencies=[Depends(require(Operation.order_read))],
)
async def get_order(order_id: uuid.UUID, svc: OrderService = Depends(order_service)) -> OrderResponse:
    outcome = await svc.get(order_id)
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    return OrderResponse.from_domain(outcome.unwrap())


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    body: StatusUpdateRequest,
    identity: CallerIdentity = Depends(require(Operation.order_update_status)),
    svc: OrderService = Depends(order_service),
) -> OrderResponse:
    outcome = await svc.set_status(order_id, body.status, actor=identity.username)
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    return OrderResponse.from_domain(outcome.unwrap())
