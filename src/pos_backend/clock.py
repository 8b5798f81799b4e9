"""
pos_backend.clock

Time source shared by token verification and order settlement.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(tz=UTC)
