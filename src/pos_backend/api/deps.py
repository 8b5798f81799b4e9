"""
pos_backend.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions, the role policy and item locks.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pos_backend.auth.policy import RolePolicy
from pos_backend.inventory.locks import ItemLockRegistry
from pos_backend.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The app factory pins its Settings on app.state so tests can run isolated apps.
    return request.app.state.settings  # type: ignore[attr-defined]


def role_policy_dep(request: Request) -> RolePolicy:
    return request.app.state.role_policy  # type: ignore[attr-defined]


def item_locks_dep(request: Request) -> ItemLockRegistry:
    return request.app.state.item_locks  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created in the app lifespan (`pos_backend.api.app.create_app`).
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session
