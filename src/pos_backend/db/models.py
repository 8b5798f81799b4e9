"""
pos_backend.db.models

Persistence schema for the POS backend.

Responsibilities:
- Define ORM models:
  - User: login credential + role
  - Item: catalog entry with its available stock
  - Order: settled order header
  - OrderLine / OrderCharge: rows owned by an order (no independent lifecycle)
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid as SAUuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pos_backend.auth.models import Role
from pos_backend.db.base import Base
from pos_backend.orders.models import OrderStatus, OrderType, PaymentMethod


def _utcnow() -> datetime:
    # Persist naive UTC timestamps for simplicity.
    return datetime.utcnow()


Money = Numeric(12, 2)


class Category(enum.StrEnum):
    breakfast = "Breakfast"
    lunch = "Lunch"
    dinner = "Dinner"
    dessert = "Dessert"
    drinks = "Drinks"
    snack = "Snack"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role), nullable=False)
    profile_image: Mapped[str] = mapped_column(String(512), nullable=False, default="/profile.jpg")

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)


class Item(Base):
    __tablename__ = "items"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    category: Mapped[Category] = mapped_column(Enum(Category), nullable=False, index=True)
    price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_ref: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_available: Mapped[bool] = mapped_column(nullable=False, default=True, index=True)
    # 0-5, drives the "Best Rated" menu listing.
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    # Mutated only through the stock ledger (settlement decrements and restocks).
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_items_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_items_price_non_negative"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_items_rating_range"),
    )


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), primary_key=True)
    order_type: Mapped[OrderType] = mapped_column(Enum(OrderType), nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(Enum(PaymentMethod), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(Enum(OrderStatus), nullable=False, index=True)

    subtotal: Mapped[Decimal] = mapped_column(Money, nullable=False)
    total: Mapped[Decimal] = mapped_column(Money, nullable=False)

    # Audit references; a deleted user must not erase order history.
    created_by_id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), nullable=False, index=True)
    created_by_username: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    lines: Mapped[list[OrderLine]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
        lazy="selectin",
    )
    charges: Mapped[list[OrderCharge]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderCharge.position",
        lazy="selectin",
    )

    __table_args__ = (Index("ix_orders_created_at", "created_at"),)


class OrderLine(Base):
    __tablename__ = "order_lines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("orders.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    # Not a foreign key: items may be deleted while their order history remains.
    item_id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), nullable=False, index=True)
    name_snapshot: Mapped[str] = mapped_column(String(256), nullable=False)
    category_snapshot: Mapped[str | None] = mapped_column(String(32), nullable=True)
    price_snapshot: Mapped[Decimal] = mapped_column(Money, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped[Order] = relationship(back_populates="lines")

    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),)


class OrderCharge(Base):
    __tablename__ = "order_charges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("orders.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(String(256), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)

    order: Mapped[Order] = relationship(back_populates="charges")


# --- Module Notes -----------------------------------------------------------
# Order lines and charges are child rows rather than JSON because money must stay
# `Decimal` end-to-end; JSON columns would round-trip through float.
