"""
pos_backend.errors

Typed failure values returned (never raised) by core operations.

Responsibilities:
- Define the auth, stock, order and account failure taxonomies.
- Give every failure a stable `code` and a human-readable `message`.

Core functions return `returns.result.Failure(<error>)`; only the API layer turns
these values into HTTP responses (see `pos_backend.api.errors`).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from typing import Any


class CoreError:
    """Base for all typed failures."""

    @property
    def code(self) -> str:
        return type(self).__name__

    @property
    def message(self) -> str:
        return self.code

    def as_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.code, "message": self.message}
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if isinstance(value, (uuid.UUID, Decimal, datetime)):
                value = str(value)
            body[f.name] = value
        return body


class AuthError(CoreError):
    pass


class StockError(CoreError):
    pass


class OrderError(CoreError):
    pass


class AccountError(CoreError):
    pass


# --- auth -------------------------------------------------------------------


@dataclass(frozen=True)
class MissingCredential(AuthError):
    @property
    def message(self) -> str:
        return "Access denied. No token provided."


@dataclass(frozen=True)
class ExpiredCredential(AuthError):
    expired_at: datetime | None = None

    @property
    def message(self) -> str:
        return "Token expired"


@dataclass(frozen=True)
class MalformedCredential(AuthError):
    reason: str = ""

    @property
    def message(self) -> str:
        return f"Malformed token: {self.reason}" if self.reason else "Malformed token"


@dataclass(frozen=True)
class InsufficientRole(AuthError):
    role: str
    allowed: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"Access denied. Role '{self.role}' is not one of: {', '.join(self.allowed)}"


# --- stock (shared with settlement) ----------------------------------------


@dataclass(frozen=True)
class ItemNotFound(StockError, OrderError):
    item_id: uuid.UUID

    @property
    def message(self) -> str:
        return f"Item {self.item_id} not found"


@dataclass(frozen=True)
class ItemUnavailable(StockError, OrderError):
    item_id: uuid.UUID

    @property
    def message(self) -> str:
        return f"Item {self.item_id} is not available for sale"


@dataclass(frozen=True)
class InsufficientStock(StockError, OrderError):
    item_id: uuid.UUID
    requested: int
    available: int

    @property
    def message(self) -> str:
        return (
            f"Insufficient stock for item {self.item_id}: "
            f"requested {self.requested}, available {self.available}"
        )


@dataclass(frozen=True)
class InvalidRestock(StockError):
    delta: int

    @property
    def message(self) -> str:
        return f"Restock delta must be positive, got {self.delta}"


# --- orders -----------------------------------------------------------------


@dataclass(frozen=True)
class EmptyOrder(OrderError):
    @property
    def message(self) -> str:
        return "No items provided for the order"


@dataclass(frozen=True)
class InvalidQuantity(StockError, OrderError):
    item_id: uuid.UUID
    quantity: int

    @property
    def message(self) -> str:
        return f"Quantity for item {self.item_id} must be positive, got {self.quantity}"


@dataclass(frozen=True)
class InvalidTotals(OrderError):
    field: str
    declared: Decimal
    expected: Decimal

    @property
    def message(self) -> str:
        return f"Declared {self.field} {self.declared} does not match computed {self.expected}"


@dataclass(frozen=True)
class PersistenceFailure(OrderError):
    reason: str = ""

    @property
    def message(self) -> str:
        return "Failed to create order"


@dataclass(frozen=True)
class OrderNotFound(OrderError):
    order_id: uuid.UUID

    @property
    def message(self) -> str:
        return "Order not found"


# --- accounts ---------------------------------------------------------------


@dataclass(frozen=True)
class InvalidSignup(AccountError):
    reason: str

    @property
    def message(self) -> str:
        return self.reason


@dataclass(frozen=True)
class UsernameTaken(AccountError):
    username: str

    @property
    def message(self) -> str:
        return "Username already exists"


@dataclass(frozen=True)
class InvalidLogin(AccountError):
    @property
    def message(self) -> str:
        return "Invalid credentials"


@dataclass(frozen=True)
class WrongPassword(AccountError):
    @property
    def message(self) -> str:
        return "Current password is incorrect"


@dataclass(frozen=True)
class UserNotFound(AccountError):
    user_id: uuid.UUID

    @property
    def message(self) -> str:
        return "User not found"
