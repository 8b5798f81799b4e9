"""
pos_backend.auth.models

Auth domain models.

Responsibilities:
- Define the closed set of staff roles.
- Define the authenticated identity type (`CallerIdentity`) injected into endpoints.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime


class Role(enum.StrEnum):
    # Values are persisted and embedded in tokens; treat as stable API contract.
    admin = "admin"
    manager = "manager"
    staff = "staff"
    cashier = "cashier"
    chief = "chief"


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    """
    Authenticated caller identity, valid for one request.
    """

    user_id: uuid.UUID
    username: str
    role: Role
    issued_at: datetime
    expires_at: datetime


# --- Module Notes -----------------------------------------------------------
# Keep this model minimal; it is used across API, services, and the settlement engine.
