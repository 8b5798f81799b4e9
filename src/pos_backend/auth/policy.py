"""
pos_backend.auth.policy

Versioned mapping from protected operations to the roles allowed to perform them.

Responsibilities:
- Name every role-gated operation.
- Ship the known deployment policies ("v1", "v2").
- Resolve the effective policy from settings (version + per-operation overrides).
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pos_backend.auth.models import Role


class Operation(enum.StrEnum):
    catalog_write = "catalog.write"
    stock_read = "stock.read"
    stock_restock = "stock.restock"
    order_create = "order.create"
    order_read = "order.read"
    order_update_status = "order.update_status"
    user_list = "user.list"
    user_set_role = "user.set_role"


ALL_ROLES: frozenset[Role] = frozenset(Role)

_ADMIN = frozenset({Role.admin})
_MANAGEMENT = frozenset({Role.admin, Role.manager})

# v1: back-office deployment. Only admins/managers ring up and read orders.
_V1: dict[Operation, frozenset[Role]] = {
    Operation.catalog_write: _ADMIN,
    Operation.stock_read: _MANAGEMENT,
    Operation.stock_restock: _MANAGEMENT,
    Operation.order_create: _MANAGEMENT,
    Operation.order_read: _MANAGEMENT,
    Operation.order_update_status: _MANAGEMENT,
    Operation.user_list: _ADMIN,
    Operation.user_set_role: _ADMIN,
}

# v2: floor deployment. Every staff role can place and view orders and see stock.
_V2: dict[Operation, frozenset[Role]] = {
    **_V1,
    Operation.stock_read: ALL_ROLES,
    Operation.order_create: ALL_ROLES,
    Operation.order_read: ALL_ROLES,
}

POLICIES: Mapping[str, Mapping[Operation, frozenset[Role]]] = MappingProxyType(
    {"v1": MappingProxyType(_V1), "v2": MappingProxyType(_V2)}
)


class UnknownPolicyError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class RolePolicy:
    version: str
    rules: Mapping[Operation, frozenset[Role]] = field(default_factory=dict)

    def allowed_roles(self, operation: Operation) -> frozenset[Role]:
        # Operations missing from a policy are closed to everyone.
        return self.rules.get(operation, frozenset())

    @classmethod
    def resolve(
        cls,
        version: str,
        overrides: Mapping[str, list[Role]] | None = None,
    ) -> RolePolicy:
        try:
            base = POLICIES[version]
        except KeyError:
            raise UnknownPolicyError(f"unknown role policy version: {version!r}") from None

        rules = dict(base)
        for op_name, roles in (overrides or {}).items():
            try:
                op = Operation(op_name)
            except ValueError:
                raise UnknownPolicyError(f"unknown operation in overrides: {op_name!r}") from None
            rules[op] = frozenset(roles)
        return cls(version=version, rules=MappingProxyType(rules))


# --- Module Notes -----------------------------------------------------------
# Adding a policy version is additive: never edit a shipped version in place, since
# deployments pin one via POS_ROLE_POLICY_VERSION.
