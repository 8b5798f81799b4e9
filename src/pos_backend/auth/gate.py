"""
pos_backend.auth.gate

Role gate: allow/deny a caller for a set of allowed roles.
"""

from __future__ import annotations

from collections.abc import Collection

from returns.result import Failure, Result, Success

from pos_backend.auth.models import CallerIdentity, Role
from pos_backend.errors import AuthError, InsufficientRole


def authorize(identity: CallerIdentity, allowed_roles: Collection[Role]) -> Result[None, AuthError]:
    # No implicit admin bypass: admins are allowed only where the policy lists them.
    if identity.role in allowed_roles:
        return Success(None)
    return Failure(
        InsufficientRole(
            role=identity.role.value,
            allowed=tuple(sorted(r.value for r in allowed_roles)),
        )
    )
