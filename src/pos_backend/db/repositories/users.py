"""
pos_backend.db.repositories.users

Repository for `User` entities.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.auth.models import Role
from pos_backend.db.models import User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, username: str, password_hash: str, role: Role) -> User:
        user = User(username=username, password_hash=password_hash, role=role)
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.username == username)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_all(self, *, limit: int = 500) -> list[User]:
        stmt = select(User).order_by(desc(User.created_at)).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())

    async def set_password_hash(self, user_id: uuid.UUID, password_hash: str) -> User | None:
        user = await self._session.get(User, user_id, with_for_update=True)
        if user is None:
            return None
        user.password_hash = password_hash
        return user

    async def set_role(self, user_id: uuid.UUID, role: Role) -> User | None:
        user = await self._session.get(User, user_id, with_for_update=True)
        if user is None:
            return None
        user.role = role
        return user
